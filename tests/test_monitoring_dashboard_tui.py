#tests/test_monitoring_dashboard_tui.py
"""
Smoke tests for monitoring.dashboard_tui.TuiDashboard.

Covers:
- Layout builds cleanly
- Bus messages patch internal state
- Rendering functions do not crash
"""

from __future__ import annotations

import time

from monitoring.bus import EventBus
from monitoring.dashboard_tui import TuiDashboard
from monitoring.events import EventCategory, SafetyAlert


def test_dashboard_handles_basic_messages_and_renders():
    bus = EventBus()
    dashboard = TuiDashboard(bus, max_lines=3)

    bus.update_status(connected=True, task="with Steve", target_player="Steve", position={"x": 1, "y": 64, "z": 2})
    for i in range(5):
        bus.append(EventCategory.ACTION, f"step {i}")
    bus.add_alert(SafetyAlert(ts=time.time(), actor="Steve", message="ugh", concerns=["frustration"]))

    assert dashboard._status["task"] == "with Steve"
    assert [e["message"] for e in dashboard._entries] == ["step 2", "step 3", "step 4"]
    assert dashboard._alerts[-1]["concerns"] == ["frustration"]

    layout = dashboard._build_layout()
    assert layout is not None

    dashboard.close()
    assert bus.observer_count == 0


def test_dashboard_starts_from_existing_history():
    bus = EventBus()
    bus.append(EventCategory.SYSTEM, "Alex spawned and ready")
    bus.update_status(task="looking for player to follow")

    dashboard = TuiDashboard(bus)

    assert dashboard._status["task"] == "looking for player to follow"
    assert dashboard._entries[-1]["message"] == "Alex spawned and ready"
    dashboard._render_status_panel()
    dashboard._render_log_panel()
    dashboard._render_alert_panel()
    dashboard.close()
