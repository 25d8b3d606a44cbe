# src/agent/perception.py
"""
Threat detection, resource location and gear selection.

These are pure reads over the world; they never issue commands.
"""

from __future__ import annotations

import logging
from typing import AbstractSet, Iterable, Optional, Sequence

from bot_core import Block, Entity, GameWorld, Item, Vec3

from .catalog import HOSTILE_MOBS

logger = logging.getLogger(__name__)


def find_threat(
    entities: Iterable[Entity],
    center: Vec3,
    radius: float,
    hostile: AbstractSet[str] = HOSTILE_MOBS,
) -> Optional[Entity]:
    """Nearest hostile mob within `radius` of `center`, or None."""
    best: Optional[Entity] = None
    best_distance = radius
    for entity in entities:
        if entity.kind == "player" or entity.name not in hostile:
            continue
        distance = entity.position.distance_to(center)
        if distance <= best_distance:
            best, best_distance = entity, distance
    return best


async def locate_resource(
    world: GameWorld,
    center: Vec3,
    radius: float,
    priorities: Sequence[str],
) -> Optional[Block]:
    """
    First resource block, in priority order, within `radius` of `center`.

    A lower-priority ore next to the target never wins over a rarer one
    anywhere inside the radius.
    """
    for name in priorities:
        block = await world.find_block(name, center, radius)
        if block is not None and block.position.distance_to(center) <= radius:
            return block
    return None


def best_item(inventory: Iterable[Item], priorities: Sequence[str]) -> Optional[Item]:
    """The held item matching the earliest entry of `priorities`."""
    by_name = {}
    for item in inventory:
        by_name.setdefault(item.name, item)
    for name in priorities:
        if name in by_name:
            return by_name[name]
    return None


async def equip_best(world: GameWorld, priorities: Sequence[str], destination: str = "hand") -> Optional[Item]:
    """
    Equip the best available item from `priorities` (best-effort).

    Equip failures are logged and ignored; returns the item attempted.
    """
    item = best_item(world.inventory(), priorities)
    if item is None:
        return None
    try:
        await world.equip(item, destination)
    except Exception:
        logger.debug("Equip of %s failed; continuing without it", item.name, exc_info=True)
    return item
