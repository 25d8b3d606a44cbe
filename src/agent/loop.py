# Path: src/agent/loop.py
"""
Behavior arbitrator: the fixed-period decision tick.

Each tick re-evaluates priorities from scratch:

    1. no visible target       -> Idle, cancel movement and mining
    2. hostile near the target -> Protecting, one combat step
    3. ore near the target     -> start a background mining run
    4. otherwise               -> follow / stay with the target

A higher-priority condition interrupts whatever lower-priority activity is
in progress; nothing is allowed to finish gracefully first.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional

from bot_core import Entity, GameWorld, MovementController
from env.schema import BehaviorConfig
from monitoring.bus import EventBus
from monitoring.events import EventCategory

from .catalog import ORE_PRIORITY
from .follow import FollowHandler
from .mining import MiningHandler
from .perception import find_threat, locate_resource
from .state import CompanionContext, Mode
from .threat import ThreatHandler

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------
# Arbitrator
# ---------------------------------------------------------------

class Arbitrator:
    def __init__(
        self,
        world: GameWorld,
        ctx: CompanionContext,
        bus: EventBus,
        config: Optional[BehaviorConfig] = None,
        *,
        movement: Optional[MovementController] = None,
        bot_name: str = "Alex",
        rng: Optional[random.Random] = None,
    ) -> None:
        self.world = world
        self.movement: MovementController = movement if movement is not None else world  # type: ignore[assignment]
        self.ctx = ctx
        self.bus = bus
        self.config = config or BehaviorConfig()

        cfg = self.config
        self.follow = FollowHandler(
            self.movement, ctx, bus,
            threshold=cfg.follow_threshold,
            distance=cfg.follow_distance,
        )
        self.threat = ThreatHandler(
            world, self.movement, ctx, bus,
            melee_range=cfg.melee_range,
            chase_radius=cfg.chase_radius,
        )
        self.mining = MiningHandler(
            world, self.movement, ctx, bus,
            bot_name=bot_name,
            reach=cfg.mining_reach,
            deadline_s=cfg.mining_deadline_s,
            poll_s=cfg.mining_poll_s,
            reaction_probability=cfg.reaction_probability,
            rng=rng,
        )

        self.mining_task: Optional["asyncio.Task[None]"] = None
        self._running = False

    # -----------------------------------------------------------
    # Tick
    # -----------------------------------------------------------

    async def tick(self) -> None:
        """One arbitration step; never raises."""
        try:
            await self._tick()
        except Exception:
            logger.exception("Arbitration tick failed")

    async def _tick(self) -> None:
        ctx = self.ctx
        cfg = self.config

        target = self.target_entity()
        if target is None:
            self._go_idle()
            return

        threat = find_threat(self.world.entities(), target.position, cfg.threat_radius)
        if threat is not None:
            if ctx.mode is not Mode.PROTECTING:
                self._enter_protecting(target, threat)
            await self.threat.handle(threat)
            return

        if ctx.mining_token is not None:
            # A mining run owns movement until it finishes or is preempted.
            return

        block = await locate_resource(self.world, target.position, cfg.resource_radius, ORE_PRIORITY)
        if block is not None:
            logger.info("Found %s near %s", block.name, ctx.target)
            self.follow.cancel()
            self.mining_task = self.mining.start(block)
            return

        here = self.world.self_position()
        if here is None:
            return
        self.follow.update(target, here.distance_to(target.position))

    def target_entity(self) -> Optional[Entity]:
        if self.ctx.target is None:
            return None
        return self.world.player(self.ctx.target)

    # -----------------------------------------------------------
    # Transitions
    # -----------------------------------------------------------

    def _go_idle(self) -> None:
        self.ctx.set_mode(Mode.IDLE)
        self.cancel_activities()
        self.bus.update_status(task="waiting for player")

    def _enter_protecting(self, target: Entity, threat: Entity) -> None:
        name = target.username or self.ctx.target
        self.ctx.set_mode(Mode.PROTECTING)
        self.cancel_activities()
        self.bus.update_status(task=f"protecting from {threat.name}")
        self.bus.append(EventCategory.ACTION, f"Protecting {name} from {threat.name}")

    def cancel_activities(self) -> None:
        """Cancel the follow goal and any mining run (cooperatively)."""
        stopped = self.follow.cancel()
        if self.ctx.cancel_mining() and not stopped:
            self.movement.stop()

    # -----------------------------------------------------------
    # Scheduling
    # -----------------------------------------------------------

    async def run(self, period: Optional[float] = None) -> None:
        """Tick at a fixed period until stop() is called."""
        period = self.config.tick_interval_s if period is None else period
        loop = asyncio.get_running_loop()
        self._running = True
        while self._running:
            started = loop.time()
            await self.tick()
            await asyncio.sleep(max(0.0, period - (loop.time() - started)))

    def stop(self) -> None:
        self._running = False

    async def shutdown(self) -> None:
        """Stop ticking and wait for an in-flight mining run to clean up."""
        self.stop()
        self.ctx.cancel_mining()
        task = self.mining_task
        self.mining_task = None
        if task is not None and not task.done():
            await asyncio.gather(task, return_exceptions=True)
