# bot_core.nav package
# src/bot_core/nav/__init__.py
"""
Navigation helpers for bot_core.

Path planning itself lives in the game sidecar; this package only owns the
"issue a goal, then wait for arrival" protocol used by handlers.
"""

from __future__ import annotations

from .approach import ApproachOutcome, await_arrival

__all__ = [
    "ApproachOutcome",
    "await_arrival",
]
