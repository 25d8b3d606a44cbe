# bot_core package
# src/bot_core/__init__.py
"""
bot_core package.

Exports:
    - world value types (Vec3, Entity, Item, Block, GameEvent)
    - GameWorld / MovementController interfaces
    - BotCoreError: domain-level error type for client failures
"""

from __future__ import annotations

from .errors import BotCoreError
from .net import EventSink, GameWorld, MovementController
from .snapshot import Block, Entity, GameEvent, Item, Vec3

__all__ = [
    "BotCoreError",
    "EventSink",
    "GameWorld",
    "MovementController",
    "Block",
    "Entity",
    "GameEvent",
    "Item",
    "Vec3",
]
