# EventBus: bounded history + fan-out to observers
"""
Event bus for the companion's broadcast pipeline.

Provides a minimal, in-process pub/sub mechanism with bounded history:

- append() stores an EventRecord in a fixed-capacity ring (oldest evicted)
  and synchronously fans `{"type": "log", "entry": ...}` out to observers.
- update_status() merges a partial status patch and fans out the full
  snapshot when something changed.
- add_alert() stores a SafetyAlert newest-first in its own ring and fans
  out `{"type": "safety_alert", "alert": ...}`.

Observers are plain callables receiving the wire dict. One failing observer
never stops delivery to the others. Slow consumers (WebSockets) wrap a
QueueObserver so the publisher never waits on them.

Used by:
    - the arbitration loop and handlers (decisions, actions)
    - the session runtime (lifecycle, chat, safety)
    - the FastAPI observer surface (push + pull)
    - JsonFileLogger and the TUI dashboard
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import fields
from threading import Lock
from typing import Any, Callable, Deque, Dict, List, Optional

from .events import CompanionStatus, EventCategory, EventRecord, SafetyAlert

log = logging.getLogger(__name__)


# ============================================================
# Type aliases / constants
# ============================================================

Message = Dict[str, Any]
ObserverFn = Callable[[Message], None]

EVENT_HISTORY_LIMIT = 500
ALERT_HISTORY_LIMIT = 100

_STATUS_FIELDS = frozenset(f.name for f in fields(CompanionStatus))


# ============================================================
# Event Bus
# ============================================================

class EventBus:
    """
    Bounded event history plus fan-out to every connected observer.

    Ordering: messages are delivered in the order they are produced, to
    every observer, in subscription order.
    """

    def __init__(
        self,
        *,
        event_limit: int = EVENT_HISTORY_LIMIT,
        alert_limit: int = ALERT_HISTORY_LIMIT,
        status: Optional[CompanionStatus] = None,
    ) -> None:
        self._events: Deque[EventRecord] = deque(maxlen=event_limit)
        # Newest first: appendleft + maxlen evicts from the right.
        self._alerts: Deque[SafetyAlert] = deque(maxlen=alert_limit)
        self._status = status or CompanionStatus()
        self._observers: List[ObserverFn] = []
        # Guards the observer list only
        self._lock = Lock()

    # --------------------------------------------------------
    # Subscription API
    # --------------------------------------------------------

    def subscribe(self, fn: ObserverFn) -> None:
        """Register an observer to receive every wire message from now on."""
        with self._lock:
            self._observers.append(fn)

    def unsubscribe(self, fn: ObserverFn) -> None:
        """
        Remove a previously registered observer.

        Safe to call even if `fn` is not present.
        """
        with self._lock:
            if fn in self._observers:
                self._observers.remove(fn)

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._observers)

    # --------------------------------------------------------
    # Publish API
    # --------------------------------------------------------

    def append(
        self,
        category: EventCategory,
        message: str,
        actor: Optional[str] = None,
    ) -> EventRecord:
        """Create, store and broadcast an EventRecord."""
        record = EventRecord.now(category, message, actor)
        self.append_record(record)
        return record

    def append_record(self, record: EventRecord) -> None:
        self._events.append(record)
        log.info("[%s] %s", record.category.value, record.message)
        self._broadcast({"type": "log", "entry": record.to_dict()})

    def update_status(self, **patch: Any) -> bool:
        """
        Merge `patch` into the live status.

        Returns True (and broadcasts the full snapshot) only if a value
        actually changed. Unknown keys are a programming error.
        """
        unknown = set(patch) - _STATUS_FIELDS
        if unknown:
            raise ValueError(f"Unknown status fields: {sorted(unknown)}")

        changed = False
        for key, value in patch.items():
            if getattr(self._status, key) != value:
                setattr(self._status, key, value)
                changed = True

        if changed:
            self._broadcast({"type": "status", "status": self._status.to_dict()})
        return changed

    def add_alert(self, alert: SafetyAlert) -> None:
        self._alerts.appendleft(alert)
        log.warning("Safety alert from %s: %s %s", alert.actor, alert.concerns, alert.message)
        self._broadcast({"type": "safety_alert", "alert": alert.to_dict()})

    # --------------------------------------------------------
    # Pull API
    # --------------------------------------------------------

    @property
    def status(self) -> CompanionStatus:
        return self._status

    def status_dict(self) -> Message:
        return self._status.to_dict()

    def events(self) -> List[EventRecord]:
        """Full retained history, oldest first."""
        return list(self._events)

    def alerts(self) -> List[SafetyAlert]:
        """Retained alerts, newest first."""
        return list(self._alerts)

    def recent_events(self, limit: int = 100) -> List[Message]:
        """Last `limit` events as wire dicts, oldest first."""
        if limit <= 0:
            return []
        return [r.to_dict() for r in list(self._events)[-limit:]]

    def recent_alerts(self, limit: int = 20) -> List[Message]:
        """Newest `limit` alerts as wire dicts, newest first."""
        if limit <= 0:
            return []
        return [a.to_dict() for a in list(self._alerts)[:limit]]

    # --------------------------------------------------------
    # Internal
    # --------------------------------------------------------

    def _broadcast(self, message: Message) -> None:
        """
        Deliver to a snapshot of observers taken under the lock, iterating
        without holding it so observers may call back into the bus.
        """
        with self._lock:
            observers = list(self._observers)

        for fn in observers:
            try:
                fn(message)
            except Exception:
                # One bad observer must not kill the stream for the others.
                log.exception("Observer %r failed; continuing", fn)


# ============================================================
# Queue-backed observer for slow consumers
# ============================================================

class QueueObserver:
    """
    Bounded per-observer buffer.

    `offer` never blocks the publisher: when the buffer is full the oldest
    queued message for this observer is dropped and counted. Other observers
    are unaffected.
    """

    def __init__(self, maxsize: int = 256) -> None:
        self._queue: "asyncio.Queue[Message]" = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def offer(self, message: Message) -> None:
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self._queue.get_nowait()
            self._queue.put_nowait(message)
            self.dropped += 1

    async def get(self) -> Message:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    __call__ = offer


__all__ = [
    "EventBus",
    "QueueObserver",
    "ObserverFn",
    "Message",
    "EVENT_HISTORY_LIMIT",
    "ALERT_HISTORY_LIMIT",
]
