# bot_core.net package
# src/bot_core/net/__init__.py
"""
Network layer for bot_core.

This package provides:
- GameWorld / MovementController protocols (common interface)
- IpcGameClient: JSON-lines bridge to a game-protocol sidecar
- Factory helper wired to the companion configuration.
"""

from __future__ import annotations

from .client import (
    EventSink,
    GameWorld,
    MovementController,
    create_game_client,
)

__all__ = [
    "EventSink",
    "GameWorld",
    "MovementController",
    "create_game_client",
]
