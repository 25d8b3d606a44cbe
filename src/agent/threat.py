# src/agent/threat.py
"""
Threat handler: one combat step per tick.

The arbitrator re-invokes handle() every tick while a hostile stays near
the target; nothing here loops or tracks completion.
"""

from __future__ import annotations

import logging

from bot_core import Entity, GameWorld, MovementController
from monitoring.bus import EventBus

from .catalog import WEAPON_PRIORITY
from .perception import equip_best
from .state import CompanionContext, Mode

log = logging.getLogger(__name__)


class ThreatHandler:
    def __init__(
        self,
        world: GameWorld,
        movement: MovementController,
        ctx: CompanionContext,
        bus: EventBus,
        *,
        melee_range: float = 3.0,
        chase_radius: float = 2.0,
    ) -> None:
        self._world = world
        self._movement = movement
        self._ctx = ctx
        self._bus = bus
        self.melee_range = melee_range
        self.chase_radius = chase_radius

    async def handle(self, mob: Entity) -> None:
        try:
            await equip_best(self._world, WEAPON_PRIORITY)

            # The mob may have died or despawned while we were equipping.
            current = self._world.entity(mob.entity_id)
            here = self._world.self_position()
            if current is None or here is None:
                log.debug("Threat %s gone before engaging", mob.name)
                self._stand_down()
                return

            if current.position.distance_to(here) > self.melee_range:
                self._movement.go_near(current.position, self.chase_radius)
            else:
                await self._world.attack(current)
        except Exception:
            log.debug("Engaging %s failed", mob.name, exc_info=True)
            self._stand_down()

    def _stand_down(self) -> None:
        self._ctx.set_mode(Mode.FOLLOWING)
        self._ctx.follow_goal_active = False
