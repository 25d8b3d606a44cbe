# World value types shared by bot_core and the agent
# src/bot_core/snapshot.py
"""
Snapshot structures for bot_core.

This module defines the small, immutable value types the companion reads from
the game: positions, entities, inventory items, blocks and inbound
notifications. They are deliberately plain so that:

- the bridge client can build them straight from decoded JSON,
- the in-memory fakes can build them by hand in tests,
- the agent never touches wire payloads directly.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Vec3:
    """A point in world space (block coordinates are integral floats)."""

    x: float
    y: float
    z: float

    def distance_to(self, other: "Vec3") -> float:
        return math.sqrt(
            (self.x - other.x) ** 2
            + (self.y - other.y) ** 2
            + (self.z - other.z) ** 2
        )

    def rounded(self) -> Dict[str, int]:
        """Integer view used for status reporting."""
        return {"x": round(self.x), "y": round(self.y), "z": round(self.z)}

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z}

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Vec3":
        return cls(float(data["x"]), float(data["y"]), float(data["z"]))


# ---------------------------------------------------------------------------
# World objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Entity:
    """
    An entity visible to the bot.

    `name` is the entity type ("zombie", "creeper", "player", ...). Players
    additionally carry their `username`.
    """

    entity_id: int
    name: str
    position: Vec3
    kind: str = "mob"
    username: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Entity":
        return cls(
            entity_id=int(data["entity_id"]),
            name=str(data.get("name", "unknown")),
            position=Vec3.from_mapping(data["position"]),
            kind=str(data.get("kind", "mob")),
            username=data.get("username"),
        )


@dataclass(frozen=True)
class Item:
    """One inventory stack."""

    name: str
    count: int = 1
    slot: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Item":
        slot = data.get("slot")
        return cls(
            name=str(data["name"]),
            count=int(data.get("count", 1)),
            slot=int(slot) if slot is not None else None,
        )


@dataclass(frozen=True)
class Block:
    """A block at a fixed position. `name == "air"` means nothing is there."""

    name: str
    position: Vec3
    diggable: bool = True

    @property
    def is_air(self) -> bool:
        return self.name == "air"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Block":
        return cls(
            name=str(data["name"]),
            position=Vec3.from_mapping(data["position"]),
            diggable=bool(data.get("diggable", True)),
        )


# ---------------------------------------------------------------------------
# Inbound notifications
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GameEvent:
    """
    A discrete notification from the game session.

    Known kinds:
        login, spawn, health, chat, player_joined, player_left,
        death, error, end
    """

    kind: str
    data: Dict[str, Any] = field(default_factory=dict)


__all__ = ["Vec3", "Entity", "Item", "Block", "GameEvent"]
