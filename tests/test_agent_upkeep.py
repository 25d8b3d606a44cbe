# tests/test_agent_upkeep.py

from __future__ import annotations

import asyncio

from agent.upkeep import Upkeep
from bot_core.snapshot import Item, Vec3
from bot_core.testing.fakes import FakeWorld
from monitoring.bus import EventBus


def test_health_event_publishes_vitals():
    world = FakeWorld()
    world.position = Vec3(10.4, 63.6, -2.5)
    world.set_vitals(17, 18)
    bus = EventBus()

    async def scenario() -> None:
        Upkeep(world, bus).on_health()

    asyncio.run(scenario())

    status = bus.status_dict()
    assert status["health"] == 17
    assert status["food"] == 18
    assert status["position"] == {"x": 10, "y": 64, "z": -2}
    assert world.actions == []


def test_hungry_companion_eats_best_food_once():
    world = FakeWorld()
    world.set_vitals(20, 10)
    world.items = [Item("carrot"), Item("cooked_beef", count=4)]
    upkeep = Upkeep(world, EventBus(), hungry_below=16)

    async def scenario() -> None:
        upkeep.on_health()
        upkeep.on_health()  # meal already in flight
        await upkeep._meal

    asyncio.run(scenario())

    assert world.action_names() == ["equip", "consume"]
    assert world.actions[0].args == ("cooked_beef", "hand")


def test_no_food_no_meal():
    world = FakeWorld()
    world.set_vitals(20, 4)
    world.items = [Item("dirt", count=64)]
    upkeep = Upkeep(world, EventBus())

    async def scenario() -> None:
        upkeep.on_health()

    asyncio.run(scenario())

    assert upkeep.eating is False
    assert world.actions == []


def test_equip_failure_is_swallowed():
    world = FakeWorld()
    world.set_vitals(20, 4)
    world.items = [Item("bread")]
    world.fail_equip = RuntimeError("inventory busy")
    upkeep = Upkeep(world, EventBus())

    async def scenario() -> None:
        upkeep.on_health()
        await upkeep._meal

    asyncio.run(scenario())

    assert world.action_names() == ["equip"]
