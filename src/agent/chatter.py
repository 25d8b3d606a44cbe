# src/agent/chatter.py
"""
Companion chatter: replies to chat and the occasional unprompted comment.

Generation runs in background tasks so the arbitration tick never waits
on the response generator.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Optional, Set, Tuple

from bot_core import GameWorld
from llm_stack.responder import ResponseGenerator
from monitoring.bus import EventBus
from monitoring.events import EventCategory

from .state import CompanionContext, Mode

log = logging.getLogger(__name__)


class Chatter:
    def __init__(
        self,
        world: GameWorld,
        ctx: CompanionContext,
        bus: EventBus,
        responder: ResponseGenerator,
        *,
        bot_name: str = "Alex",
        reply_delay_s: Tuple[float, float] = (1.2, 2.0),
        interval_s: float = 50.0,
        probability: float = 0.25,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._world = world
        self._ctx = ctx
        self._bus = bus
        self._responder = responder
        self._bot_name = bot_name
        self.reply_delay_s = reply_delay_s
        self.interval_s = interval_s
        self.probability = probability
        self._rng = rng or random.Random()
        self._pending: Set["asyncio.Task[None]"] = set()

    # ------------------------------------------------------------------
    # Reactive replies
    # ------------------------------------------------------------------

    def on_chat(self, username: str, message: str) -> "asyncio.Task[None]":
        """Schedule a reply to one chat line."""
        task = asyncio.create_task(self.reply(username, message), name=f"reply-{username}")
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def reply(self, username: str, message: str) -> None:
        try:
            text = await self._responder.respond(username, message)
            # Typing delay, so replies don't land instantly.
            low, high = self.reply_delay_s
            await asyncio.sleep(self._rng.uniform(low, high))
            await self._say(text)
        except Exception:
            log.warning("Reply to %s failed", username, exc_info=True)

    # ------------------------------------------------------------------
    # Proactive comments
    # ------------------------------------------------------------------

    async def maybe_comment(self) -> Optional[str]:
        """Roll for one proactive comment; returns what was said, if anything."""
        if self._ctx.target is None or self._ctx.mode is Mode.IDLE:
            return None
        if self._rng.random() >= self.probability:
            return None

        here = self._world.self_position()
        context = {
            "task": self._ctx.mode.value,
            "y": round(here.y) if here is not None else 64,
            "health": round(self._world.health),
        }
        comment = await self._responder.proactive(context)
        if comment:
            await self._say(comment)
        return comment

    async def run_proactive(self) -> None:
        """Comment timer; runs until cancelled."""
        while True:
            await asyncio.sleep(self.interval_s)
            try:
                await self.maybe_comment()
            except Exception:
                log.warning("Proactive comment failed", exc_info=True)

    async def shutdown(self) -> None:
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    async def _say(self, text: str) -> None:
        await self._world.chat(text)
        self._bus.append(EventCategory.COMPANION, text, actor=self._bot_name)
