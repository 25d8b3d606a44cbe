# src/app/server.py
"""
Observer surface for the companion (FastAPI).

Pull endpoints give a newly connected observer the current snapshot and
recent history; the WebSocket pushes every bus message after that.

    GET /health       liveness + connection + AI availability
    GET /api/status   status snapshot
    GET /api/logs     last 100 events, last 20 safety alerts (newest first)
    WS  /ws           {"type": "log" | "status" | "safety_alert", ...}

Observers have no inbound control channel; anything received on the
socket is ignored.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from agent.runtime import CompanionRuntime
from monitoring.bus import EventBus, QueueObserver

log = logging.getLogger(__name__)

RECENT_EVENTS = 100
RECENT_ALERTS = 20


def create_app(
    bus: EventBus,
    runtime: Optional[CompanionRuntime] = None,
    *,
    observer_queue_size: int = 256,
) -> FastAPI:
    """Build the app; the runtime (if any) runs for the app's lifetime."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if runtime is not None:
            log.info("Starting companion runtime")
            runtime.start()
        yield
        if runtime is not None:
            log.info("Stopping companion runtime")
            await runtime.stop()

    app = FastAPI(title="scout-companion", lifespan=lifespan)
    app.state.bus = bus
    app.state.runtime = runtime

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {
            "status": "ok",
            "connected": bus.status.connected,
            "ai_enabled": runtime.ai_enabled if runtime is not None else bus.status.ai_enabled,
        }

    @app.get("/api/status")
    async def status() -> Dict[str, Any]:
        return bus.status_dict()

    @app.get("/api/logs")
    async def logs() -> Dict[str, Any]:
        return {
            "logs": bus.recent_events(RECENT_EVENTS),
            "safety_alerts": bus.recent_alerts(RECENT_ALERTS),
        }

    @app.websocket("/ws")
    async def push_channel(websocket: WebSocket) -> None:
        await websocket.accept()
        observer = QueueObserver(maxsize=observer_queue_size)
        bus.subscribe(observer)
        log.debug("Observer connected (%d total)", bus.observer_count)

        sender = asyncio.create_task(_pump(websocket, observer))
        receiver = asyncio.create_task(_drain(websocket))
        try:
            await asyncio.wait({sender, receiver}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            bus.unsubscribe(observer)
            for task in (sender, receiver):
                task.cancel()
            await asyncio.gather(sender, receiver, return_exceptions=True)
            if observer.dropped:
                log.info("Observer disconnected after dropping %d messages", observer.dropped)

    return app


async def _pump(websocket: WebSocket, observer: QueueObserver) -> None:
    while True:
        message = await observer.get()
        await websocket.send_json(message)


async def _drain(websocket: WebSocket) -> None:
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


__all__ = ["create_app"]
