# wait for a movement goal to bring the bot within reach
# src/bot_core/nav/approach.py
"""
Approach protocol: issue a movement goal, then poll for arrival.

Movement goals are fire-and-forget, so callers split an approach in two:

    movement.go_to_block(block.position)          # phase 1: issue
    outcome = await await_arrival(world, ...)     # phase 2: poll

and must branch on the tri-state outcome. A path that is blocked or
unreachable shows up as TIMED_OUT; it never hangs.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Callable, Optional

from ..snapshot import Vec3
from ..net.client import GameWorld


class ApproachOutcome(Enum):
    ARRIVED = "arrived"
    TIMED_OUT = "timed_out"
    INVALIDATED = "invalidated"


async def await_arrival(
    world: GameWorld,
    point: Vec3,
    *,
    reach: float,
    deadline_s: float,
    poll_s: float = 0.2,
    still_valid: Optional[Callable[[], bool]] = None,
) -> ApproachOutcome:
    """
    Poll until the bot is within `reach` of `point`.

    Returns:
        ARRIVED      within reach before the deadline
        TIMED_OUT    deadline elapsed first
        INVALIDATED  `still_valid()` turned False while waiting (the caller
                     lost ownership of the activity, e.g. it was preempted)
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + deadline_s

    while True:
        if still_valid is not None and not still_valid():
            return ApproachOutcome.INVALIDATED

        here = world.self_position()
        if here is not None and here.distance_to(point) <= reach:
            return ApproachOutcome.ARRIVED

        if loop.time() >= deadline:
            return ApproachOutcome.TIMED_OUT

        await asyncio.sleep(poll_s)


__all__ = ["ApproachOutcome", "await_arrival"]
