# bot_core domain errors
# src/bot_core/errors.py
"""
Domain errors for bot_core.

Action-level failures (equip, dig, attack) are expected to happen all the
time in a live world; callers treat them as best-effort and never let them
escape the arbitration loop. BotCoreError exists so those failures carry a
stable `code` instead of a transport-specific exception type.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass
class BotCoreError(RuntimeError):
    """
    Domain-level error raised by game clients.

    Examples:
        - not_connected: a command was issued without a live session
        - request_timeout: the bridge did not answer in time
        - remote_error: the bridge reported a failure (block gone, no path...)
    """

    code: str
    details: Dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"BotCoreError(code={self.code!r}, details={self.details!r})"


__all__ = ["BotCoreError"]
