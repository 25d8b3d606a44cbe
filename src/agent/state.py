#"src/agent/state.py"

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class Mode(Enum):
    """
    The single behavior category the companion is in.

    Priority when the arbitrator chooses between them:

        PROTECTING > MINING > FOLLOWING > IDLE

    Exactly one value holds at any instant; a handler only runs while the
    mode reflects it.
    """

    IDLE = "idle"
    FOLLOWING = "following"
    MINING = "mining"
    PROTECTING = "protecting"


@dataclass(eq=False)
class ActivityToken:
    """
    In-flight marker for a long-running handler invocation.

    Compared by identity: a handler owns its activity only while the context
    still holds *its* token. Clearing the token is how a higher-priority
    behavior (or a session reset) cancels it.
    """

    kind: str
    label: str
    started_at: float = field(default_factory=time.monotonic)


@dataclass
class CompanionContext:
    """
    Mutable arbitration state, owned by the arbitrator and passed by
    reference to every handler.

    Fields
    ------
    target:
        Username of the single tracked human, if any.

    mode:
        Current Mode (see Mode).

    follow_goal_active:
        True while a follow movement goal is believed to be set. Used to
        keep the follow handler idempotent across ticks.

    mining_token:
        ActivityToken of the in-flight mining run, None when no mining
        is in progress.
    """

    target: Optional[str] = None
    mode: Mode = Mode.IDLE
    follow_goal_active: bool = False
    mining_token: Optional[ActivityToken] = None

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------

    def set_mode(self, mode: Mode) -> bool:
        """Switch mode; returns True if it changed."""
        if mode is self.mode:
            return False
        logger.debug("Mode %s -> %s", self.mode.value, mode.value)
        self.mode = mode
        return True

    def owns_mining(self, token: ActivityToken) -> bool:
        return self.mining_token is token

    def cancel_mining(self) -> bool:
        """Drop the mining token (cooperative cancel); True if one was set."""
        if self.mining_token is None:
            return False
        logger.debug("Cancelling mining activity %s", self.mining_token.label)
        self.mining_token = None
        return True

    def reset(self) -> None:
        """
        Back to a clean Idle state, keeping the target.

        Used on spawn, death and disconnect.
        """
        self.mode = Mode.IDLE
        self.follow_goal_active = False
        self.mining_token = None

    def clear_target(self) -> None:
        self.target = None
        self.reset()
