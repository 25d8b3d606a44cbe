# src/agent/follow.py
"""
Follow handler: idempotent escort goal management.

The follow goal is issued only when entering Following with the target
beyond the threshold; the `follow_goal_active` flag on the context keeps
repeated ticks from re-issuing the same goal.
"""

from __future__ import annotations

import logging

from bot_core import Entity, MovementController
from monitoring.bus import EventBus

from .state import CompanionContext, Mode

log = logging.getLogger(__name__)


class FollowHandler:
    def __init__(
        self,
        movement: MovementController,
        ctx: CompanionContext,
        bus: EventBus,
        *,
        threshold: float = 4.0,
        distance: float = 2.0,
    ) -> None:
        self._movement = movement
        self._ctx = ctx
        self._bus = bus
        self.threshold = threshold
        self.distance = distance

    def update(self, target: Entity, distance: float) -> None:
        """Keep the follow goal in line with the current self-to-target distance."""
        ctx = self._ctx
        name = target.username or target.name

        if distance > self.threshold:
            if ctx.follow_goal_active and ctx.mode is Mode.FOLLOWING:
                return
            log.debug("Following %s at %.1f blocks", name, distance)
            self._movement.follow(target, self.distance)
            ctx.follow_goal_active = True
            ctx.set_mode(Mode.FOLLOWING)
            self._bus.update_status(task=f"following {name}")
            return

        # Close enough: stay put, still escorting.
        self.cancel()
        ctx.set_mode(Mode.FOLLOWING)
        self._bus.update_status(task=f"with {name}")

    def cancel(self) -> bool:
        """Stop an active follow goal; True if one was stopped."""
        if not self._ctx.follow_goal_active:
            return False
        self._movement.stop()
        self._ctx.follow_goal_active = False
        return True
