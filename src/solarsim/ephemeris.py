"""Sun-position provider: the engine's only external collaborator, backed by skyfield."""

import functools
import logging
import math
from collections.abc import Sequence
from datetime import datetime, timedelta
from pathlib import Path
from typing import Protocol

from skyfield import almanac
from skyfield.api import Loader, wgs84
from skyfield.jpllib import SpiceKernel

from solarsim.config import Settings
from solarsim.models import GeoLocation, SunPosition, SunTimes

_LOGGER = logging.getLogger(__name__)


class SunPositionProvider(Protocol):
    """Black-box sun-position source.

    Azimuths are measured from south, positive westward; altitudes are
    positive above the horizon. Every call returns a value for any in-range
    location, including degenerate values near the poles.
    """

    def position(self, when: datetime, location: GeoLocation) -> SunPosition: ...

    def positions(
        self, whens: Sequence[datetime], location: GeoLocation
    ) -> list[SunPosition]: ...

    def times(self, start: datetime, location: GeoLocation) -> SunTimes: ...


@functools.lru_cache(maxsize=4)
def _load(directory: str, name: str) -> tuple[Loader, SpiceKernel]:
    _LOGGER.debug("Loading ephemeris %s from %s", name, directory)
    Path(directory).mkdir(parents=True, exist_ok=True)
    loader = Loader(directory)
    return loader, loader(name)


class SkyfieldSunProvider:
    """SunPositionProvider computing apparent sun positions from a JPL ephemeris.

    The ephemeris file is downloaded into `directory` on first use and shared
    by every provider pointing at the same file.
    """

    def __init__(
        self, directory: Path | str | None = None, ephemeris: str | None = None
    ) -> None:
        settings = Settings.from_env()
        directory = directory if directory is not None else settings.ephemeris_dir
        ephemeris = ephemeris or settings.ephemeris_name
        loader, self._eph = _load(str(directory), ephemeris)
        self._ts = loader.timescale()
        self._earth = self._eph["earth"]
        self._sun = self._eph["sun"]

    def position(self, when: datetime, location: GeoLocation) -> SunPosition:
        return self.positions([when], location)[0]

    def positions(
        self, whens: Sequence[datetime], location: GeoLocation
    ) -> list[SunPosition]:
        """Sun positions for many instants in a single vectorized skyfield call.

        Args:
            whens: Timezone-aware datetimes.
            location: Observer location.

        Returns:
            One SunPosition per input instant, in order.
        """
        if not whens:
            return []
        t = self._ts.from_datetimes(list(whens))
        observer = self._earth + _topos(location)
        alt, az, _ = observer.at(t).observe(self._sun).apparent().altaz("standard")
        # Compass azimuth (0=N, clockwise) -> south-based, west-positive
        return [
            SunPosition(azimuth_rad=float(a) - math.pi, altitude_rad=float(h))
            for a, h in zip(az.radians, alt.radians)
        ]

    def times(self, start: datetime, location: GeoLocation) -> SunTimes:
        """First sunrise within [start, start + 1 day) and the sunset closing it.

        The sunset may fall on the following day when the timezone is far
        from solar time. Without a sunrise that day, the first sunset within
        the day is returned. Returned datetimes carry start's tzinfo. Either
        is None when the event does not happen (polar day/night).
        """
        end = start + timedelta(days=1)
        t0 = self._ts.from_datetime(start)
        t1 = self._ts.from_datetime(start + timedelta(days=2))
        f = almanac.sunrise_sunset(self._eph, _topos(location))
        t, events = almanac.find_discrete(t0, t1, f)
        found = [
            (when.astimezone(start.tzinfo), bool(is_rise))
            for when, is_rise in zip(t.utc_datetime(), events)
        ]

        sunrise = next((w for w, is_rise in found if is_rise and w < end), None)
        if sunrise is not None:
            sunset = next((w for w, is_rise in found if not is_rise and w > sunrise), None)
        else:
            sunset = next((w for w, is_rise in found if not is_rise and w < end), None)
        return SunTimes(sunrise=sunrise, sunset=sunset)


def _topos(location: GeoLocation):
    return wgs84.latlon(
        latitude_degrees=location.latitude,
        longitude_degrees=location.longitude,
    )


@functools.lru_cache(maxsize=1)
def default_provider() -> SkyfieldSunProvider:
    """Process-wide provider built from Settings.from_env()."""
    return SkyfieldSunProvider()
