"""Unit tests for the caller-side session and the "now" refresh task."""

import logging
import threading
from datetime import date, datetime

import pytest
from pytz import utc

from solarsim.compute import InputError
from solarsim.models import PanelOrientation
from solarsim.session import NowTicker, Session


@pytest.fixture
def session(noon_context, fake_provider, settings) -> Session:
    clock = lambda: utc.localize(datetime(2024, 6, 21, 9, 15))  # noqa: E731
    s = Session(noon_context, provider=fake_provider, settings=settings, clock=clock)
    yield s
    s.stop()


class TestNowTicker:
    def test_fires_repeatedly_until_cancelled(self):
        fired = threading.Event()
        count = []

        def callback():
            count.append(1)
            if len(count) >= 2:
                fired.set()

        ticker = NowTicker(0.01, callback)
        ticker.start()
        try:
            assert fired.wait(timeout=5)
        finally:
            ticker.cancel()
        assert not ticker.running

    def test_cancel_before_fire(self):
        calls = []
        ticker = NowTicker(3600, lambda: calls.append(1))
        ticker.start()
        assert ticker.running
        ticker.cancel()
        assert not ticker.running
        assert calls == []

    def test_failing_callback_is_logged_and_rescheduled(self, caplog):
        def callback():
            raise RuntimeError("clock unavailable")

        ticker = NowTicker(3600, callback)
        ticker.start()
        first = ticker._timer
        try:
            with caplog.at_level(logging.ERROR, logger="solarsim.session"):
                ticker._fire()
            assert ticker.running
            assert ticker._timer is not first
        finally:
            ticker.cancel()
        assert any("Refresh failed" in r.getMessage() for r in caplog.records)


class TestSession:
    def test_scene_is_computed_lazily_and_cached(self, session):
        scene = session.scene
        assert scene is session.scene
        assert scene.radius == session.settings.scene_radius

    def test_follow_now_then_manual_override(self, session):
        session.follow_now()
        assert session.follows_now
        assert session.context.local_dt == utc.localize(datetime(2024, 6, 21, 9, 15))

        session.set_time(14 * 60)
        assert not session.follows_now
        assert session.context.local_dt.hour == 14
        assert session.context.tz_name == "UTC"

    def test_set_panel_keeps_time(self, session):
        before = session.context.local_dt
        session.set_panel(heading_deg=90.0, tilt_deg=10.0)
        assert session.context.panel == PanelOrientation(heading_deg=90.0, tilt_deg=10.0)
        assert session.context.local_dt == before

    def test_set_date(self, session):
        session.set_date("2024-12-21")
        assert session.context.day.month == 12
        assert session.context.local_dt.hour == 12

    def test_invalid_date_keeps_previous_configuration(self, session):
        before = session.context
        with pytest.raises(InputError):
            session.set_date("2024-02-31")
        assert session.context is before

    def test_set_location_resolves_timezone(self, session):
        session.set_location(38.9631672, -95.2422898)
        assert session.context.tz_name == "America/Chicago"

    def test_listeners_receive_new_scene(self, session):
        scenes = []
        session.subscribe(scenes.append)
        session.set_time(8 * 60)
        assert len(scenes) == 1
        assert scenes[0].context.local_dt.hour == 8
        assert scenes[0] is session.scene

    def test_end_of_day_keeps_date(self, session):
        session.set_time(24 * 60)
        assert session.context.day == date(2024, 6, 21)
        assert session.context.local_dt == utc.localize(datetime(2024, 6, 22))

        session.set_date("2024-12-21")
        assert session.context.day == date(2024, 12, 21)
        assert session.context.local_dt == utc.localize(datetime(2024, 12, 22))

    def test_manual_time_wins_over_inflight_refresh(
        self, noon_context, fake_provider, settings
    ):
        entered = threading.Event()
        release = threading.Event()

        def clock():
            entered.set()
            release.wait(timeout=5)
            return utc.localize(datetime(2024, 6, 21, 9, 15))

        session = Session(noon_context, provider=fake_provider, settings=settings, clock=clock)
        session._ticker.start()
        refresh = threading.Thread(target=session._ticker._fire)
        try:
            refresh.start()
            assert entered.wait(timeout=5)
            session.set_time(14 * 60)
            release.set()
            refresh.join(timeout=5)
        finally:
            release.set()
            session.stop()
        assert not refresh.is_alive()
        assert session.context.local_dt.hour == 14
        assert not session.follows_now

    def test_follow_now_moves_day(self, session):
        session.set_date("2024-12-21")
        session.follow_now()
        assert session.context.day == date(2024, 6, 21)
        assert session.context.local_dt.hour == 9
