# src/agent/upkeep.py
"""
Vitals bookkeeping and auto-eating.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from bot_core import GameWorld, Item
from monitoring.bus import EventBus

from .catalog import FOOD_PRIORITY
from .perception import best_item

log = logging.getLogger(__name__)


class Upkeep:
    """
    Reacts to `health` notifications: publishes vitals and eats when hungry.

    Only one meal is in flight at a time.
    """

    def __init__(self, world: GameWorld, bus: EventBus, *, hungry_below: float = 16.0) -> None:
        self._world = world
        self._bus = bus
        self.hungry_below = hungry_below
        self._meal: Optional["asyncio.Task[None]"] = None

    @property
    def eating(self) -> bool:
        return self._meal is not None and not self._meal.done()

    def on_health(self) -> None:
        here = self._world.self_position()
        self._bus.update_status(
            health=self._world.health,
            food=self._world.food,
            position=here.rounded() if here is not None else None,
        )

        if self._world.food >= self.hungry_below or self.eating:
            return
        food = best_item(self._world.inventory(), FOOD_PRIORITY)
        if food is not None:
            self._meal = asyncio.create_task(self._eat(food), name="upkeep-eat")

    async def _eat(self, item: Item) -> None:
        try:
            await self._world.equip(item, "hand")
            await self._world.consume()
            log.debug("Ate %s", item.name)
        except Exception:
            log.debug("Eating %s failed", item.name, exc_info=True)

    async def shutdown(self) -> None:
        if self._meal is not None:
            self._meal.cancel()
            await asyncio.gather(self._meal, return_exceptions=True)
            self._meal = None
