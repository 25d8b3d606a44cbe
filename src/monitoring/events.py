# path: src/monitoring/events.py
"""
Event, alert and status schemas for the companion's broadcast pipeline.

This module defines:
- EventCategory enum
- EventRecord (immutable log entries shown to observers)
- SafetyAlert (flagged chat messages)
- CompanionStatus (live status projection)

Everything is JSON-serializable via `.to_dict()`; the dict shapes are the
wire format pushed to observers and returned by the pull endpoints.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional


def iso_timestamp(ts: float) -> str:
    """UNIX seconds → ISO-8601 UTC with millisecond precision."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat(timespec="milliseconds")


# ============================================================
# Event categories
# ============================================================

class EventCategory(Enum):
    """What kind of thing an EventRecord describes."""

    SYSTEM = "system"          # lifecycle: connect, spawn, joins, reconnects
    CHAT = "chat"              # something a human said in game chat
    ACTION = "action"          # a behavior decision or completed action
    COMPANION = "companion"    # something the companion said
    ERROR = "error"            # informational failure report


# ============================================================
# Event record
# ============================================================

@dataclass(frozen=True)
class EventRecord:
    """
    One immutable entry in the event history.

    ts:       UNIX timestamp (seconds)
    category: EventCategory
    message:  short human-readable text
    actor:    who said/did it (chat author, companion name), if anyone
    """

    ts: float
    category: EventCategory
    message: str
    actor: Optional[str] = None

    @classmethod
    def now(cls, category: EventCategory, message: str, actor: Optional[str] = None) -> "EventRecord":
        return cls(ts=time.time(), category=category, message=message, actor=actor)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "time": iso_timestamp(self.ts),
            "type": self.category.value,
            "message": self.message,
        }
        if self.actor is not None:
            data["username"] = self.actor
        return data


# ============================================================
# Safety alert
# ============================================================

@dataclass(frozen=True)
class SafetyAlert:
    """A chat message that matched one or more concern patterns."""

    ts: float
    actor: str
    message: str
    concerns: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "time": iso_timestamp(self.ts),
            "username": self.actor,
            "message": self.message,
            "concerns": list(self.concerns),
        }


# ============================================================
# Status snapshot
# ============================================================

@dataclass
class CompanionStatus:
    """
    Derived view of the companion, pushed to observers on every change.

    Not authoritative: the arbitration context owns the real state.
    """

    connected: bool = False
    health: float = 20.0
    food: float = 20.0
    position: Optional[Dict[str, int]] = None
    task: str = "connecting..."
    target_player: Optional[str] = None
    ai_enabled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = [
    "EventCategory",
    "EventRecord",
    "SafetyAlert",
    "CompanionStatus",
    "iso_timestamp",
]
