# chat safety scanning
# src/monitoring/safety.py
"""
Safety scanning for chat messages.

Every human chat line is matched against a fixed set of concern patterns.
Matches become SafetyAlerts on the EventBus so the supervising parent sees
them immediately; clean messages leave no trace in the alert ring.
"""

from __future__ import annotations

import re
import time
from typing import Dict, List, Optional, Pattern

from .bus import EventBus
from .events import SafetyAlert

SAFETY_PATTERNS: Dict[str, Pattern[str]] = {
    "frustration": re.compile(r"\b(stupid|hate|worst|ugh|rage)\b", re.IGNORECASE),
    "negative": re.compile(r"\b(kill|loser|noob|trash|idiot)\b", re.IGNORECASE),
    "concerning": re.compile(
        r"\b(real life|(?:my|your) address|(?:my|your) school|(?:my|your) house)\b",
        re.IGNORECASE,
    ),
}


def scan_concerns(message: str) -> List[str]:
    """Return the sorted concern tags matched by `message`."""
    return sorted(tag for tag, pattern in SAFETY_PATTERNS.items() if pattern.search(message))


def check_message(bus: EventBus, actor: str, message: str) -> Optional[SafetyAlert]:
    """Scan one chat line; publish and return an alert if anything matched."""
    concerns = scan_concerns(message)
    if not concerns:
        return None

    alert = SafetyAlert(ts=time.time(), actor=actor, message=message, concerns=concerns)
    bus.add_alert(alert)
    return alert


__all__ = ["SAFETY_PATTERNS", "scan_concerns", "check_message"]
