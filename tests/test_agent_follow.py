# tests/test_agent_follow.py

from __future__ import annotations

from agent.follow import FollowHandler
from agent.state import CompanionContext, Mode
from bot_core.snapshot import Vec3
from bot_core.testing.fakes import FakeWorld
from monitoring.bus import EventBus


def _setup():
    world = FakeWorld()
    ctx = CompanionContext(target="Steve")
    bus = EventBus()
    handler = FollowHandler(world, ctx, bus, threshold=4.0, distance=2.0)
    steve = world.add_player(1, "Steve", Vec3(6, 64, 0))
    return world, ctx, bus, handler, steve


def test_follow_goal_is_issued_exactly_once():
    world, ctx, bus, handler, steve = _setup()

    handler.update(steve, 6.0)
    handler.update(steve, 6.0)
    handler.update(steve, 7.5)

    assert world.goal_names() == ["follow"]
    assert world.goals[0].args == (1, 2.0)
    assert ctx.mode is Mode.FOLLOWING
    assert ctx.follow_goal_active is True
    assert bus.status.task == "following Steve"


def test_goal_reissued_after_mode_changed_away():
    world, ctx, bus, handler, steve = _setup()
    handler.update(steve, 6.0)

    ctx.set_mode(Mode.PROTECTING)
    handler.update(steve, 6.0)

    assert world.goal_names() == ["follow", "follow"]
    assert ctx.mode is Mode.FOLLOWING


def test_within_threshold_stops_goal_but_stays_following():
    world, ctx, bus, handler, steve = _setup()
    handler.update(steve, 6.0)

    handler.update(steve, 4.0)
    handler.update(steve, 3.0)

    assert world.goal_names() == ["follow", "stop"]
    assert ctx.follow_goal_active is False
    assert ctx.mode is Mode.FOLLOWING
    assert bus.status.task == "with Steve"


def test_cancel_only_stops_an_active_goal():
    world, ctx, bus, handler, steve = _setup()

    assert handler.cancel() is False
    handler.update(steve, 6.0)
    assert handler.cancel() is True
    assert handler.cancel() is False

    assert world.goal_names() == ["follow", "stop"]
