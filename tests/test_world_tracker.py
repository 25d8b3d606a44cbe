# tests/test_world_tracker.py
"""
Unit tests for WorldTracker.

Covers:
- state
- entities / entity_update / entity_gone
- inventory
- malformed payloads are ignored
"""

from __future__ import annotations

from bot_core.snapshot import Vec3
from bot_core.world_tracker import WorldTracker


def test_state_updates_self_vitals() -> None:
    tracker = WorldTracker()
    tracker.apply("state", {"position": {"x": 10.5, "y": 65.0, "z": -3.25}, "health": 14, "food": 9})

    assert tracker.position == Vec3(10.5, 65.0, -3.25)
    assert tracker.health == 14.0
    assert tracker.food == 9.0


def test_entities_replace_update_and_remove() -> None:
    tracker = WorldTracker()
    tracker.apply(
        "entities",
        {
            "entities": [
                {"entity_id": 1, "name": "player", "kind": "player", "username": "Steve",
                 "position": {"x": 0, "y": 64, "z": 0}},
                {"entity_id": 2, "name": "zombie", "position": {"x": 3, "y": 64, "z": 0}},
            ]
        },
    )
    assert tracker.player("Steve").entity_id == 1
    assert tracker.entity(2).name == "zombie"

    tracker.apply("entity_update", {"entity_id": 2, "name": "zombie", "position": {"x": 5, "y": 64, "z": 0}})
    assert tracker.entity(2).position.x == 5

    tracker.apply("entity_gone", {"entity_ids": [2]})
    assert tracker.entity(2) is None
    assert len(tracker.entities()) == 1


def test_inventory_replacement() -> None:
    tracker = WorldTracker()
    tracker.apply("inventory", {"items": [{"name": "bread", "count": 3, "slot": 36}]})

    items = tracker.inventory()
    assert len(items) == 1
    assert items[0].name == "bread"
    assert items[0].count == 3
    assert items[0].slot == 36


def test_malformed_payload_is_ignored() -> None:
    tracker = WorldTracker()
    tracker.apply("entity_update", {"name": "zombie"})  # no id, no position
    tracker.apply("state", {"health": "lots"})

    assert tracker.entities() == []
    assert tracker.health == 20.0


def test_clear_forgets_session_state() -> None:
    tracker = WorldTracker()
    tracker.apply("state", {"position": {"x": 1, "y": 2, "z": 3}})
    tracker.apply("entity_update", {"entity_id": 7, "name": "creeper", "position": {"x": 0, "y": 0, "z": 0}})

    tracker.clear()

    assert tracker.position is None
    assert tracker.entities() == []
