# JSON logger subscribing to EventBus
"""
Structured event logging for the broadcast pipeline.

Provides:
- JsonFileLogger: subscribes to an EventBus and writes every wire message
  (log entries, status snapshots, safety alerts) as JSONL.

Usage pattern:

    from pathlib import Path
    from monitoring.bus import EventBus
    from monitoring.events import EventCategory
    from monitoring.logger import JsonFileLogger

    bus = EventBus()
    logger = JsonFileLogger(Path("logs/events.jsonl"), bus)
    bus.append(EventCategory.SYSTEM, "Something happened")
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from .bus import EventBus

log = logging.getLogger(__name__)


# ============================================================
# JSONL File Logger
# ============================================================

class JsonFileLogger:
    """
    JSON-lines logger for bus messages.

    - Subscribes to an EventBus and writes one JSON object per line.
    - Ensures UTF-8 encoding.
    - Ensures parent directory exists.
    """

    def __init__(self, path: Path, bus: EventBus) -> None:
        """
        Initialize the logger and subscribe to the event bus.

        Parameters
        ----------
        path:
            Path to the log file (e.g. logs/events.jsonl).
        bus:
            EventBus instance to subscribe to.
        """
        self._path = path
        self._bus = bus
        self._ensure_parent_dir(path)
        # Open file in append mode
        self._file = path.open("a", encoding="utf-8")
        bus.subscribe(self._on_message)

    @property
    def path(self) -> Path:
        return self._path

    @staticmethod
    def _ensure_parent_dir(path: Path) -> None:
        """
        Create parent directories for `path` if they don't exist.
        """
        path.parent.mkdir(parents=True, exist_ok=True)

    def _on_message(self, message: Dict[str, Any]) -> None:
        """
        Observer callback: write the message as one JSON line.
        """
        line = json.dumps(message, ensure_ascii=False)
        try:
            self._file.write(line + "\n")
            self._file.flush()
        except (OSError, ValueError):
            # Disk full or handle closed: drop the line, keep the process up.
            log.warning("JsonFileLogger could not write to %s", self._path, exc_info=True)

    def close(self) -> None:
        """
        Unsubscribe and close the underlying file handle.

        Should be called at graceful shutdown.
        """
        self._bus.unsubscribe(self._on_message)
        try:
            self._file.close()
        except OSError:
            log.debug("JsonFileLogger close failed", exc_info=True)


__all__ = ["JsonFileLogger"]
