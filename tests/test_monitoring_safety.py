# tests/test_monitoring_safety.py

from __future__ import annotations

from monitoring.bus import EventBus
from monitoring.safety import check_message, scan_concerns


def test_frustration_and_negative_are_both_flagged():
    assert scan_concerns("you are stupid and a noob") == ["frustration", "negative"]


def test_personal_information_is_concerning():
    assert scan_concerns("what's your address") == ["concerning"]
    assert scan_concerns("I'll tell you about my school") == ["concerning"]
    assert scan_concerns("do you play in Real Life too") == ["concerning"]


def test_matching_is_word_bounded():
    # "skill" contains "kill" but not as a word
    assert scan_concerns("nice skill") == []
    assert scan_concerns("TRASH") == ["negative"]


def test_neutral_message_leaves_no_alert():
    bus = EventBus()
    received = []
    bus.subscribe(received.append)

    assert check_message(bus, "Steve", "let's go mining") is None
    assert bus.alerts() == []
    assert received == []


def test_flagged_message_is_published():
    bus = EventBus()
    received = []
    bus.subscribe(received.append)

    alert = check_message(bus, "Steve", "you are stupid and a noob")

    assert alert is not None
    assert alert.concerns == ["frustration", "negative"]
    assert bus.alerts() == [alert]
    assert received == [{"type": "safety_alert", "alert": alert.to_dict()}]
    assert received[0]["alert"]["username"] == "Steve"
