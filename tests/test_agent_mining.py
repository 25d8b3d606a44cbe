# tests/test_agent_mining.py
"""
MiningHandler: the full run plus every abandonment path.

Whatever goes wrong, the run must leave no token behind and revert Mode to
Following exactly once.
"""

from __future__ import annotations

import asyncio
from typing import List

import pytest

from agent.mining import MiningHandler
from agent.state import CompanionContext, Mode
from bot_core.snapshot import Block, Item, Vec3
from bot_core.testing.fakes import FakeWorld
from monitoring.bus import EventBus
from monitoring.events import EventCategory


class FixedRoll:
    def __init__(self, value: float) -> None:
        self.value = value

    def random(self) -> float:
        return self.value


class RecordingContext(CompanionContext):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.transitions: List[Mode] = []

    def set_mode(self, mode: Mode) -> bool:
        changed = super().set_mode(mode)
        if changed:
            self.transitions.append(mode)
        return changed


def _setup(roll: float = 0.0, deadline_s: float = 0.2):
    world = FakeWorld()
    ctx = RecordingContext(target="Steve", mode=Mode.FOLLOWING)
    bus = EventBus()
    handler = MiningHandler(
        world, world, ctx, bus,
        bot_name="Alex",
        reach=4.0,
        deadline_s=deadline_s,
        poll_s=0.01,
        reaction_probability=0.45,
        rng=FixedRoll(roll),
    )
    return world, ctx, bus, handler


def _mine(handler: MiningHandler, block: Block) -> None:
    async def scenario() -> None:
        await handler.start(block)

    asyncio.run(scenario())


def _messages(bus: EventBus, category: EventCategory) -> List[str]:
    return [e.message for e in bus.events() if e.category is category]


def test_successful_run_digs_and_reacts():
    world, ctx, bus, handler = _setup(roll=0.1)
    world.items = [Item("stone_pickaxe"), Item("iron_pickaxe")]
    block = world.set_block("diamond_ore", Vec3(3, 60, 1))

    _mine(handler, block)

    assert world.actions[0].args == ("iron_pickaxe", "hand")
    assert "dig" in world.action_names()
    assert world.goal_names() == ["go_to_block", "stop"]
    assert _messages(bus, EventCategory.ACTION) == ["Mining diamond_ore", "Mined diamond_ore"]
    assert world.chat_lines == ["DIAMONDS!! let's go!!"]
    speech = [e for e in bus.events() if e.category is EventCategory.COMPANION]
    assert speech[0].message == "DIAMONDS!! let's go!!"
    assert speech[0].actor == "Alex"
    assert ctx.mining_token is None
    assert ctx.mode is Mode.FOLLOWING
    assert ctx.transitions == [Mode.MINING, Mode.FOLLOWING]


def test_reaction_skipped_when_roll_misses():
    world, ctx, bus, handler = _setup(roll=0.9)
    block = world.set_block("diamond_ore", Vec3(3, 60, 1))

    _mine(handler, block)

    assert _messages(bus, EventCategory.ACTION) == ["Mining diamond_ore", "Mined diamond_ore"]
    assert world.chat_lines == []


def test_ore_without_reaction_never_speaks():
    world, ctx, bus, handler = _setup(roll=0.0)
    block = world.set_block("coal_ore", Vec3(2, 63, 0))

    _mine(handler, block)

    assert _messages(bus, EventCategory.ACTION) == ["Mining coal_ore", "Mined coal_ore"]
    assert _messages(bus, EventCategory.COMPANION) == []


def test_unreachable_block_times_out_without_digging():
    world, ctx, bus, handler = _setup(deadline_s=0.05)
    world.arrive_on_goal = False
    block = world.set_block("iron_ore", Vec3(30, 64, 0))

    _mine(handler, block)

    assert "dig" not in world.action_names()
    assert world.goal_names() == ["go_to_block", "stop"]
    assert ctx.mining_token is None
    assert ctx.transitions == [Mode.MINING, Mode.FOLLOWING]


def test_vanished_block_is_abandoned_silently():
    world, ctx, bus, handler = _setup()
    block = Block(name="gold_ore", position=Vec3(2, 64, 0))  # never placed

    _mine(handler, block)

    assert "dig" not in world.action_names()
    assert _messages(bus, EventCategory.ACTION) == ["Mining gold_ore"]
    assert _messages(bus, EventCategory.COMPANION) == []
    assert ctx.mining_token is None
    assert ctx.transitions == [Mode.MINING, Mode.FOLLOWING]


def test_replaced_block_is_not_dug():
    world, ctx, bus, handler = _setup()
    block = Block(name="gold_ore", position=Vec3(2, 64, 0))
    world.set_block("air", Vec3(2, 64, 0))

    _mine(handler, block)

    assert "dig" not in world.action_names()
    assert ctx.mode is Mode.FOLLOWING


def test_dig_exception_still_cleans_up():
    world, ctx, bus, handler = _setup()
    world.fail_dig = RuntimeError("tool broke")
    block = world.set_block("emerald_ore", Vec3(2, 64, 0))

    _mine(handler, block)

    assert _messages(bus, EventCategory.ACTION) == ["Mining emerald_ore"]
    assert ctx.mining_token is None
    assert ctx.follow_goal_active is False
    assert ctx.transitions == [Mode.MINING, Mode.FOLLOWING]


def test_preempted_run_leaves_new_mode_alone():
    world, ctx, bus, handler = _setup(deadline_s=5.0)
    world.arrive_on_goal = False
    block = world.set_block("diamond_ore", Vec3(30, 64, 0))

    async def scenario() -> None:
        task = handler.start(block)
        await asyncio.sleep(0.03)
        # What the arbitrator does when a threat shows up.
        ctx.set_mode(Mode.PROTECTING)
        ctx.cancel_mining()
        world.stop()
        await task

    asyncio.run(scenario())

    assert ctx.mode is Mode.PROTECTING
    assert ctx.mining_token is None
    assert "dig" not in world.action_names()
    # Only the arbitrator's stop; the run no longer owned movement.
    assert world.goal_names() == ["go_to_block", "stop"]


def test_second_acquire_is_rejected():
    world, ctx, bus, handler = _setup()
    block = world.set_block("coal_ore", Vec3(1, 64, 0))

    handler.acquire(block)

    with pytest.raises(RuntimeError):
        handler.acquire(block)
    assert ctx.mode is Mode.MINING
    assert bus.status.task == "mining coal_ore"
