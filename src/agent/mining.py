# src/agent/mining.py
"""
Mining handler: one bounded, cancellable mining run.

A run owns an ActivityToken for its whole lifetime. The arbitrator cancels
it by clearing the token (and stopping movement); the run notices after
every suspension point and abandons quietly. Whatever happens, the
`finally` block leaves the context consistent:

- the run's own token is released
- its movement goal is stopped if it still owned the activity
- Mode goes back to Following only if it is still Mining
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional

from bot_core import Block, GameWorld, MovementController
from bot_core.nav import ApproachOutcome, await_arrival
from monitoring.bus import EventBus
from monitoring.events import EventCategory

from .catalog import ORE_REACTIONS, PICKAXE_PRIORITY
from .perception import equip_best
from .state import ActivityToken, CompanionContext, Mode

log = logging.getLogger(__name__)


class MiningHandler:
    def __init__(
        self,
        world: GameWorld,
        movement: MovementController,
        ctx: CompanionContext,
        bus: EventBus,
        *,
        bot_name: str = "Alex",
        reach: float = 4.0,
        deadline_s: float = 8.0,
        poll_s: float = 0.2,
        reaction_probability: float = 0.45,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._world = world
        self._movement = movement
        self._ctx = ctx
        self._bus = bus
        self._bot_name = bot_name
        self.reach = reach
        self.deadline_s = deadline_s
        self.poll_s = poll_s
        self.reaction_probability = reaction_probability
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self, block: Block) -> "asyncio.Task[None]":
        """
        Acquire the activity and launch the run in the background.

        The token is set before this returns, so the next tick already sees
        mining in progress.
        """
        token = self.acquire(block)
        return asyncio.create_task(self.run(block, token), name=f"mining-{block.name}")

    def acquire(self, block: Block) -> ActivityToken:
        if self._ctx.mining_token is not None:
            raise RuntimeError("mining already in progress")
        token = ActivityToken(kind="mining", label=block.name)
        self._ctx.mining_token = token
        self._ctx.set_mode(Mode.MINING)
        self._bus.update_status(task=f"mining {block.name}")
        self._bus.append(EventCategory.ACTION, f"Mining {block.name}")
        return token

    async def run(self, block: Block, token: ActivityToken) -> None:
        ctx = self._ctx
        moving = False
        try:
            await equip_best(self._world, PICKAXE_PRIORITY)
            if not ctx.owns_mining(token):
                return

            self._movement.go_to_block(block.position)
            moving = True
            outcome = await await_arrival(
                self._world,
                block.position,
                reach=self.reach,
                deadline_s=self.deadline_s,
                poll_s=self.poll_s,
                still_valid=lambda: ctx.owns_mining(token),
            )
            if outcome is not ApproachOutcome.ARRIVED:
                log.info("Mining %s abandoned: %s", block.name, outcome.value)
                return

            self._movement.stop()
            moving = False

            current = await self._world.block_at(block.position)
            if not ctx.owns_mining(token):
                return
            if current is None or current.is_air or current.name != block.name:
                log.debug("%s at %s is already gone", block.name, block.position.rounded())
                return
            if not self._world.can_dig(current):
                return

            await self._world.dig(current)
            self._bus.append(EventCategory.ACTION, f"Mined {block.name}")
            await self._react(block.name)
        except Exception:
            log.warning("Mining %s failed", block.name, exc_info=True)
        finally:
            self._cleanup(token, moving)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _react(self, block_name: str) -> None:
        phrase = ORE_REACTIONS.get(block_name)
        if phrase is None or self._rng.random() >= self.reaction_probability:
            return
        await self._world.chat(phrase)
        self._bus.append(EventCategory.COMPANION, phrase, actor=self._bot_name)

    def _cleanup(self, token: ActivityToken, moving: bool) -> None:
        ctx = self._ctx
        if ctx.owns_mining(token):
            ctx.mining_token = None
            ctx.follow_goal_active = False
            if moving:
                self._movement.stop()
        if ctx.mode is Mode.MINING:
            ctx.set_mode(Mode.FOLLOWING)
