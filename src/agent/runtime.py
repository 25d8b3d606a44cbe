# src/agent/runtime.py
"""
Session runtime for the companion.

CompanionRuntime owns everything that lives for one process:

- the CompanionContext and the Arbitrator that mutates it
- Upkeep (vitals, auto-eat) and Chatter (replies, proactive comments)
- the inbound event queue fed by the game client

A session is: connect, then process inbound GameEvents one at a time,
interleaved with arbitration ticks once the bot has spawned. Events and
ticks never run concurrently; both happen in the session loop below.
When a session ends (or cannot start) the runtime logs the disconnect,
resets the context, waits, and reconnects. Nothing escapes run().
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Dict, Optional

from bot_core import GameEvent, GameWorld, MovementController
from env.schema import CompanionConfig
from llm_stack.responder import ResponseGenerator
from monitoring.bus import EventBus
from monitoring.events import EventCategory
from monitoring.safety import check_message

from .chatter import Chatter
from .loop import Arbitrator
from .state import CompanionContext
from .upkeep import Upkeep

log = logging.getLogger(__name__)


def _reason(exc: BaseException) -> str:
    code = getattr(exc, "code", None)
    if code:
        return str(code)
    return str(exc) or type(exc).__name__


class CompanionRuntime:
    def __init__(
        self,
        world: GameWorld,
        bus: EventBus,
        config: Optional[CompanionConfig] = None,
        responder: Optional[ResponseGenerator] = None,
        *,
        movement: Optional[MovementController] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.world = world
        self.bus = bus
        self.config = config or CompanionConfig()
        self.bot_name = self.config.game.bot_name
        self.responder = responder or ResponseGenerator(None, self.config.model, bot_name=self.bot_name, rng=rng)

        behavior = self.config.behavior
        self.ctx = CompanionContext(target=self.config.game.target_player)
        self.arbitrator = Arbitrator(
            world, self.ctx, bus, behavior,
            movement=movement,
            bot_name=self.bot_name,
            rng=rng,
        )
        self.movement = self.arbitrator.movement
        self.upkeep = Upkeep(world, bus, hungry_below=behavior.hungry_below)
        self.chatter = Chatter(
            world, self.ctx, bus, self.responder,
            bot_name=self.bot_name,
            reply_delay_s=(behavior.reply_delay_min_s, behavior.reply_delay_max_s),
            interval_s=behavior.chatter_interval_s,
            probability=behavior.chatter_probability,
            rng=rng,
        )

        self.spawned = False
        self._events: "asyncio.Queue[GameEvent]" = asyncio.Queue()
        self._task: Optional["asyncio.Task[None]"] = None
        self._stopping = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self.bus.status.connected

    @property
    def ai_enabled(self) -> bool:
        return self.responder.ai_enabled

    def start(self) -> "asyncio.Task[None]":
        """Run the reconnecting session loop in the background."""
        if self._task is None or self._task.done():
            self._stopping = False
            self._task = asyncio.create_task(self.run(), name="companion-runtime")
        return self._task

    async def stop(self) -> None:
        self._stopping = True
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def run(self) -> None:
        """Sessions until stop(); reconnects after every disconnect."""
        self.bus.update_status(ai_enabled=self.ai_enabled, target_player=self.ctx.target)
        while not self._stopping:
            reason = await self.run_session()
            if self._stopping:
                break
            await self._reconnect_pause(reason)

    async def run_session(self) -> str:
        """One connect-to-end session; returns the disconnect reason."""
        self._events = asyncio.Queue()
        self.spawned = False
        try:
            await self.world.connect(self.submit)
        except Exception as exc:
            log.warning("Connect failed: %s", exc)
            return _reason(exc)

        chatter_task = asyncio.create_task(self.chatter.run_proactive(), name="proactive-chatter")
        try:
            return await self._session_loop()
        finally:
            chatter_task.cancel()
            await asyncio.gather(chatter_task, return_exceptions=True)
            await self.arbitrator.shutdown()
            await self.upkeep.shutdown()
            await self.chatter.shutdown()
            try:
                await self.world.disconnect()
            except Exception:
                log.debug("Disconnect failed", exc_info=True)

    def submit(self, event: GameEvent) -> None:
        """Event sink handed to the game client."""
        self._events.put_nowait(event)

    # ------------------------------------------------------------------
    # Session loop
    # ------------------------------------------------------------------

    async def _session_loop(self) -> str:
        loop = asyncio.get_running_loop()
        period = self.config.behavior.tick_interval_s
        next_tick: Optional[float] = None

        while True:
            timeout = None if next_tick is None else max(0.0, next_tick - loop.time())
            try:
                event = await asyncio.wait_for(self._events.get(), timeout)
            except asyncio.TimeoutError:
                await self.arbitrator.tick()
                next_tick = loop.time() + period
                continue

            if event.kind == "end":
                return str(event.data.get("reason") or "end")

            self.handle_event(event)
            if not self.spawned:
                next_tick = None
            elif next_tick is None:
                next_tick = loop.time() + period

    def handle_event(self, event: GameEvent) -> None:
        handler = getattr(self, f"_on_{event.kind}", None)
        if handler is None:
            log.debug("Ignoring %s event", event.kind)
            return
        try:
            handler(event.data)
        except Exception:
            log.exception("Handling %s event failed", event.kind)

    async def _reconnect_pause(self, reason: str) -> None:
        delay = self.config.behavior.reconnect_delay_s
        self.bus.append(EventCategory.SYSTEM, f"Disconnected ({reason}) — reconnecting in {delay:g} s")
        self.bus.update_status(connected=False, task="reconnecting...")
        self.ctx.reset()
        self.spawned = False
        await asyncio.sleep(delay)

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_login(self, data: Dict[str, Any]) -> None:
        game = self.config.game
        self.bus.append(EventCategory.SYSTEM, f"Connected to {game.host}:{game.port}")

    def _on_spawn(self, data: Dict[str, Any]) -> None:
        self.ctx.reset()
        self.spawned = True
        self.bus.update_status(connected=True, task="looking for player to follow")
        self.bus.append(EventCategory.SYSTEM, f"{self.bot_name} spawned and ready")

    def _on_health(self, data: Dict[str, Any]) -> None:
        self.upkeep.on_health()

    def _on_chat(self, data: Dict[str, Any]) -> None:
        username = data.get("username")
        message = str(data.get("message") or "")
        if not username or username == self.world.username or not message:
            return

        self.bus.append(EventCategory.CHAT, message, actor=username)
        check_message(self.bus, username, message)

        if self.ctx.target is None:
            self._adopt(username)
            self.bus.append(EventCategory.SYSTEM, f"Now following {username}")

        self.chatter.on_chat(username, message)

    def _on_player_joined(self, data: Dict[str, Any]) -> None:
        username = data.get("username")
        if not username or username == self.world.username:
            return
        self.bus.append(EventCategory.SYSTEM, f"{username} joined")
        if self.ctx.target is None:
            self._adopt(username)

    def _on_player_left(self, data: Dict[str, Any]) -> None:
        username = data.get("username")
        if not username:
            return
        self.bus.append(EventCategory.SYSTEM, f"{username} left")
        if username == self.ctx.target:
            self.ctx.clear_target()
            self.movement.stop()
            self.bus.update_status(task="waiting for player", target_player=None)

    def _on_death(self, data: Dict[str, Any]) -> None:
        self.bus.append(EventCategory.SYSTEM, f"{self.bot_name} died — respawning")
        self.ctx.reset()
        self.spawned = False

    def _on_error(self, data: Dict[str, Any]) -> None:
        self.bus.append(EventCategory.ERROR, str(data.get("message") or "unknown error"))
        self.bus.update_status(connected=False)

    def _adopt(self, username: str) -> None:
        log.info("Tracking %s", username)
        self.ctx.target = username
        self.bus.update_status(target_player=username)
