"""Pytest configuration and fixtures for solarsim tests."""

import math
from collections.abc import Sequence
from datetime import date, datetime, timedelta

import matplotlib
import pytest
from pytz import utc

matplotlib.use("Agg")

from solarsim.config import Settings  # noqa: E402
from solarsim.models import (  # noqa: E402
    GeoLocation,
    ObserverContext,
    PanelOrientation,
    SunPosition,
    SunTimes,
)


class FakeSunProvider:
    """Analytic sun driven by local wall-clock time.

    With the defaults the sun rises at 06:00 due east, culminates at 12:00
    due south at `peak_altitude_deg`, and sets at 18:00 due west.
    `offset_deg` shifts the whole altitude curve (very negative = polar night).
    """

    def __init__(self, peak_altitude_deg: float = 60.0, offset_deg: float = 0.0) -> None:
        self.peak_altitude_deg = peak_altitude_deg
        self.offset_deg = offset_deg
        self.calls = 0

    def _at_minute(self, minute: float) -> SunPosition:
        phase = math.pi * (minute - 360) / 720
        altitude_deg = self.peak_altitude_deg * math.sin(phase) + self.offset_deg
        return SunPosition(
            azimuth_rad=math.pi * (minute - 720) / 720,
            altitude_rad=round(math.radians(altitude_deg), 12),
        )

    def position(self, when: datetime, location: GeoLocation) -> SunPosition:
        self.calls += 1
        return self._at_minute(when.hour * 60 + when.minute + when.second / 60)

    def positions(
        self, whens: Sequence[datetime], location: GeoLocation
    ) -> list[SunPosition]:
        return [self.position(when, location) for when in whens]

    def times(self, start: datetime, location: GeoLocation) -> SunTimes:
        ratio = -self.offset_deg / self.peak_altitude_deg
        if not -1 < ratio < 1:
            return SunTimes(sunrise=None, sunset=None)
        phase = math.asin(ratio)
        rise = 360 + 720 * phase / math.pi
        sett = 360 + 720 * (math.pi - phase) / math.pi
        return SunTimes(
            sunrise=start + timedelta(minutes=rise),
            sunset=start + timedelta(minutes=sett),
        )


class ConstantSunProvider:
    """Sun frozen at one position, all day long."""

    def __init__(self, position: SunPosition) -> None:
        self._position = position

    def position(self, when: datetime, location: GeoLocation) -> SunPosition:
        return self._position

    def positions(
        self, whens: Sequence[datetime], location: GeoLocation
    ) -> list[SunPosition]:
        return [self._position for _ in whens]

    def times(self, start: datetime, location: GeoLocation) -> SunTimes:
        return SunTimes(sunrise=None, sunset=None)


@pytest.fixture
def fake_provider() -> FakeSunProvider:
    return FakeSunProvider()


@pytest.fixture
def polar_night_provider() -> FakeSunProvider:
    return FakeSunProvider(peak_altitude_deg=5.0, offset_deg=-30.0)


@pytest.fixture
def location() -> GeoLocation:
    return GeoLocation(latitude=38.9631672, longitude=-95.2422898)


@pytest.fixture
def noon_context(location: GeoLocation) -> ObserverContext:
    """Noon UTC on the June solstice with a south-facing panel tilted 30°."""
    return ObserverContext(
        location=location,
        tz_name="UTC",
        day=date(2024, 6, 21),
        local_dt=utc.localize(datetime(2024, 6, 21, 12, 0)),
        panel=PanelOrientation(heading_deg=180.0, tilt_deg=30.0),
    )


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(ephemeris_dir=tmp_path, refresh_seconds=3600.0)


@pytest.fixture(scope="session")
def skyfield_provider():
    """Real provider; skipped when the ephemeris cannot be loaded or downloaded."""
    from solarsim.ephemeris import SkyfieldSunProvider

    try:
        return SkyfieldSunProvider()
    except Exception as e:  # noqa: BLE001
        pytest.skip(f"Ephemeris unavailable: {e}")
