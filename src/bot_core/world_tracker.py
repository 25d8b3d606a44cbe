# track entities/inventory/vitals from bridge messages
# src/bot_core/world_tracker.py
"""
World tracker for bot_core.

Consumes normalized messages pushed by the game bridge and maintains a raw,
incrementally updated mirror of the parts of the world the companion reads
synchronously (self vitals, entities, inventory). Block queries are not
mirrored; they go to the bridge on demand.

Rules:
- Never interpret behavior here (the agent owns that).
- Malformed messages are ignored, never raised.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from .snapshot import Entity, Item, Vec3

log = logging.getLogger(__name__)


@dataclass
class _SelfState:
    """Minimal tracked state for the bot itself."""

    position: Optional[Vec3] = None
    health: float = 20.0
    food: float = 20.0


class WorldTracker:
    """
    Maintains the mirrored world view.

    Message types handled (payload shapes in each handler):

        - "state"          → self position / health / food
        - "entities"       → full entity list replacement
        - "entity_update"  → one entity created or moved
        - "entity_gone"    → one or more entities removed
        - "inventory"      → full inventory replacement
    """

    MESSAGE_TYPES = ("state", "entities", "entity_update", "entity_gone", "inventory")

    def __init__(self) -> None:
        self._self = _SelfState()
        self._entities: Dict[int, Entity] = {}
        self._inventory: List[Item] = []

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def handles(self, message_type: str) -> bool:
        return message_type in self.MESSAGE_TYPES

    def apply(self, message_type: str, payload: Mapping[str, Any]) -> None:
        handler = getattr(self, f"_handle_{message_type}", None)
        if handler is None:
            return
        try:
            handler(payload)
        except (KeyError, TypeError, ValueError):
            log.warning("WorldTracker ignoring malformed %s: %r", message_type, payload)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _handle_state(self, payload: Mapping[str, Any]) -> None:
        """
        Expected fields (all optional):
            - "position": {"x", "y", "z"}
            - "health", "food": float
        """
        if payload.get("position") is not None:
            self._self.position = Vec3.from_mapping(payload["position"])
        if "health" in payload:
            self._self.health = float(payload["health"])
        if "food" in payload:
            self._self.food = float(payload["food"])

    def _handle_entities(self, payload: Mapping[str, Any]) -> None:
        """Expected fields: "entities": list of entity mappings."""
        entities = [Entity.from_mapping(e) for e in payload.get("entities", [])]
        self._entities = {e.entity_id: e for e in entities}

    def _handle_entity_update(self, payload: Mapping[str, Any]) -> None:
        entity = Entity.from_mapping(payload)
        self._entities[entity.entity_id] = entity

    def _handle_entity_gone(self, payload: Mapping[str, Any]) -> None:
        """Expected fields: "entity_ids": iterable of ints."""
        for raw_id in payload.get("entity_ids", []):
            self._entities.pop(int(raw_id), None)

    def _handle_inventory(self, payload: Mapping[str, Any]) -> None:
        """Expected fields: "items": list of item mappings."""
        self._inventory = [Item.from_mapping(i) for i in payload.get("items", [])]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def position(self) -> Optional[Vec3]:
        return self._self.position

    @property
    def health(self) -> float:
        return self._self.health

    @property
    def food(self) -> float:
        return self._self.food

    def entities(self) -> List[Entity]:
        return list(self._entities.values())

    def entity(self, entity_id: int) -> Optional[Entity]:
        return self._entities.get(entity_id)

    def player(self, username: str) -> Optional[Entity]:
        for entity in self._entities.values():
            if entity.kind == "player" and entity.username == username:
                return entity
        return None

    def inventory(self) -> List[Item]:
        return list(self._inventory)

    def clear(self) -> None:
        """Forget everything (new session)."""
        self._self = _SelfState()
        self._entities.clear()
        self._inventory = []


__all__ = ["WorldTracker"]
