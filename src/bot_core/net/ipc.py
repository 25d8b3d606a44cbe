# IPC bridge to the game-protocol sidecar
# src/bot_core/net/ipc.py
"""
IPC-based game client.

This client talks to a sidecar process that owns the actual Minecraft
protocol connection (login, physics, pathfinding) through a simple message
protocol: JSON lines over TCP. The sidecar is responsible for translating
these messages into real game actions and for pushing world updates back.

Message format (version 1):
  - Each message is a single line of UTF-8 JSON.
  - Commands and pushes:
        {"type": "<message_type>", "payload": { ... }}
  - Requests carry an id and get exactly one response:
        {"type": "<request_type>", "id": 7, "payload": { ... }}
        {"type": "response", "id": 7, "ok": true, "result": ...}
        {"type": "response", "id": 7, "ok": false, "error": "no path"}

Pushed state (state / entities / entity_update / entity_gone / inventory)
is mirrored by a WorldTracker so that reads are synchronous. Notifications
(login, spawn, health, chat, ...) are forwarded as GameEvents.

The first message is always `hello`, naming the bot and the game server
the sidecar should join:
        {"type": "hello", "payload": {"username": "Alex", "server":
         {"host": "localhost", "port": 25565, "version": "1.20.1"}}}
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from ..errors import BotCoreError
from ..snapshot import Block, Entity, GameEvent, Item, Vec3
from ..world_tracker import WorldTracker
from .client import EventSink

log = logging.getLogger(__name__)

# Notifications forwarded to the runtime as GameEvents.
EVENT_TYPES = (
    "login",
    "spawn",
    "health",
    "chat",
    "player_joined",
    "player_left",
    "death",
    "error",
    "end",
)

# Largest accepted line; full entity pushes run well past asyncio's 64 KiB default.
READ_LIMIT = 16 * 1024 * 1024


@dataclass
class IpcConfig:
    """Where the sidecar listens."""

    host: str
    port: int


class IpcGameClient:
    """
    JSON-lines bridge client implementing GameWorld and MovementController.

    Movement goals are fire-and-forget writes. Block lookups and the
    equip / dig / consume actions are request/response with a timeout.
    """

    def __init__(
        self,
        host: str,
        port: int,
        username: str,
        *,
        request_timeout: float = 10.0,
        dig_timeout: float = 30.0,
        server: Optional[Mapping[str, Any]] = None,
        read_limit: int = READ_LIMIT,
    ) -> None:
        self._config = IpcConfig(host=str(host), port=int(port))
        self.username = username
        self._request_timeout = request_timeout
        self._dig_timeout = dig_timeout
        self._server = dict(server or {})
        self._read_limit = read_limit

        self._tracker = WorldTracker()
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._pending: Dict[int, asyncio.Future] = {}
        self._ids = itertools.count(1)
        self._on_event: Optional[EventSink] = None
        self._connected = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def connected(self) -> bool:
        return self._connected

    async def connect(self, on_event: EventSink) -> None:
        """Open the bridge connection and start pumping messages."""
        if self._connected:
            return

        log.info("IpcGameClient connecting to %s:%d", self._config.host, self._config.port)
        try:
            reader, writer = await asyncio.open_connection(
                self._config.host, self._config.port, limit=self._read_limit
            )
        except OSError as exc:
            raise BotCoreError(
                code="connect_failed",
                details={"host": self._config.host, "port": self._config.port, "exception": repr(exc)},
            ) from exc

        self._reader, self._writer = reader, writer
        self._on_event = on_event
        self._tracker.clear()
        self._connected = True
        self._reader_task = asyncio.create_task(self._read_loop())

        hello: Dict[str, Any] = {"username": self.username}
        if self._server:
            hello["server"] = dict(self._server)
        await self._send("hello", hello)

    async def disconnect(self) -> None:
        """Close the bridge connection. Safe to call twice."""
        if self._reader_task is not None:
            self._reader_task.cancel()
            try:
                await self._reader_task
            except asyncio.CancelledError:
                pass
            except Exception:
                log.exception("IpcGameClient reader task failed")
            self._reader_task = None

        if self._connected:
            log.info("IpcGameClient disconnecting")
        self._connected = False
        self._fail_pending("disconnected")
        if self._writer is not None:
            self._writer.close()
            try:
                await self._writer.wait_closed()
            except OSError:
                log.debug("IpcGameClient error while closing writer", exc_info=True)
            self._writer = None

    # ------------------------------------------------------------------
    # Snapshot reads (mirrored)
    # ------------------------------------------------------------------

    @property
    def health(self) -> float:
        return self._tracker.health

    @property
    def food(self) -> float:
        return self._tracker.food

    def self_position(self) -> Optional[Vec3]:
        return self._tracker.position

    def entities(self) -> List[Entity]:
        return self._tracker.entities()

    def entity(self, entity_id: int) -> Optional[Entity]:
        return self._tracker.entity(entity_id)

    def player(self, username: str) -> Optional[Entity]:
        return self._tracker.player(username)

    def inventory(self) -> List[Item]:
        return self._tracker.inventory()

    def can_dig(self, block: Block) -> bool:
        return block.diggable and not block.is_air

    # ------------------------------------------------------------------
    # Block queries (request/response)
    # ------------------------------------------------------------------

    async def block_at(self, position: Vec3) -> Optional[Block]:
        result = await self._request("block_at", {"position": position.to_dict()})
        return Block.from_mapping(result) if result else None

    async def find_block(self, name: str, center: Vec3, max_distance: float) -> Optional[Block]:
        result = await self._request(
            "find_block",
            {"name": name, "center": center.to_dict(), "max_distance": max_distance},
        )
        return Block.from_mapping(result) if result else None

    # ------------------------------------------------------------------
    # Action commands
    # ------------------------------------------------------------------

    async def equip(self, item: Item, destination: str = "hand") -> None:
        await self._request("equip", {"item": item.name, "destination": destination})

    async def attack(self, entity: Entity) -> None:
        await self._send("attack", {"entity_id": entity.entity_id})

    async def dig(self, block: Block) -> None:
        await self._request(
            "dig", {"position": block.position.to_dict()}, timeout=self._dig_timeout
        )

    async def consume(self) -> None:
        await self._request("consume", {})

    async def chat(self, text: str) -> None:
        await self._send("chat", {"text": text})

    # ------------------------------------------------------------------
    # MovementController
    # ------------------------------------------------------------------

    def follow(self, entity: Entity, distance: float) -> None:
        self._post("goal_follow", {"entity_id": entity.entity_id, "distance": distance})

    def go_near(self, point: Vec3, radius: float) -> None:
        self._post("goal_near", {"position": point.to_dict(), "radius": radius})

    def go_to_block(self, point: Vec3) -> None:
        self._post("goal_block", {"position": point.to_dict()})

    def stop(self) -> None:
        self._post("goal_stop", {})

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _encode(message: Mapping[str, Any]) -> bytes:
        return json.dumps(message, separators=(",", ":")).encode("utf-8") + b"\n"

    def _require_writer(self) -> asyncio.StreamWriter:
        if not self._connected or self._writer is None:
            raise BotCoreError(code="not_connected")
        return self._writer

    def _post(self, message_type: str, payload: Mapping[str, Any]) -> None:
        """Fire-and-forget write; dropped when the session is gone."""
        if not self._connected or self._writer is None:
            log.debug("IpcGameClient dropping %s: not connected", message_type)
            return
        self._writer.write(self._encode({"type": message_type, "payload": dict(payload)}))

    async def _send(self, message_type: str, payload: Mapping[str, Any]) -> None:
        writer = self._require_writer()
        writer.write(self._encode({"type": message_type, "payload": dict(payload)}))
        await writer.drain()

    async def _request(
        self,
        message_type: str,
        payload: Mapping[str, Any],
        *,
        timeout: Optional[float] = None,
    ) -> Any:
        writer = self._require_writer()
        request_id = next(self._ids)
        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future

        try:
            writer.write(
                self._encode({"type": message_type, "id": request_id, "payload": dict(payload)})
            )
            await writer.drain()
            return await asyncio.wait_for(future, timeout or self._request_timeout)
        except asyncio.TimeoutError as exc:
            raise BotCoreError(
                code="request_timeout",
                details={"type": message_type, "id": request_id},
            ) from exc
        finally:
            self._pending.pop(request_id, None)

    def _fail_pending(self, reason: str) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(BotCoreError(code="not_connected", details={"reason": reason}))
        self._pending.clear()

    async def _read_loop(self) -> None:
        reason = "bridge closed"
        assert self._reader is not None
        try:
            while True:
                try:
                    line = await self._reader.readline()
                except ValueError as exc:
                    # Line longer than the stream limit; the framing is lost.
                    log.error("IpcGameClient received an oversized message: %s", exc)
                    reason = "message too large"
                    break
                if not line:
                    break
                line = line.strip()
                if line:
                    self._handle_raw_line(line)
        except OSError as exc:
            log.exception("IpcGameClient socket error")
            reason = f"socket error: {exc}"

        log.info("IpcGameClient session ended: %s", reason)
        self._connected = False
        self._fail_pending(reason)
        self._emit(GameEvent(kind="end", data={"reason": reason}))

    def _handle_raw_line(self, line: bytes) -> None:
        """Decode a JSON line and route it."""
        try:
            obj = json.loads(line.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            log.exception("IpcGameClient failed to decode JSON line: %r", line)
            return

        if not isinstance(obj, dict):
            log.warning("IpcGameClient received non-object message: %r", obj)
            return

        message_type = obj.get("type")
        if message_type == "response":
            self._resolve(obj)
            return

        payload = obj.get("payload", {})
        if not isinstance(message_type, str) or not isinstance(payload, dict):
            log.warning("IpcGameClient received malformed message: %r", obj)
            return

        if self._tracker.handles(message_type):
            self._tracker.apply(message_type, payload)
        elif message_type in EVENT_TYPES:
            if message_type in ("health", "spawn"):
                # Vitals ride along with these notifications.
                self._tracker.apply("state", payload)
            self._emit(GameEvent(kind=message_type, data=payload))
        else:
            log.debug("IpcGameClient no route for message type=%s", message_type)

    def _resolve(self, obj: Mapping[str, Any]) -> None:
        future = self._pending.get(obj.get("id"))
        if future is None or future.done():
            log.debug("IpcGameClient stray response: %r", obj)
            return
        if obj.get("ok", True):
            future.set_result(obj.get("result"))
        else:
            future.set_exception(
                BotCoreError(code="remote_error", details={"error": obj.get("error")})
            )

    def _emit(self, event: GameEvent) -> None:
        if self._on_event is None:
            return
        try:
            self._on_event(event)
        except Exception:
            log.exception("Error in event sink for %s", event.kind)


__all__ = ["IpcGameClient", "IpcConfig", "EVENT_TYPES"]
