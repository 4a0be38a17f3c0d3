"""Data model definitions: explicit boundaries between input, compute, and render layers."""

import math
from dataclasses import dataclass
from datetime import date, datetime

Vector3 = tuple[float, float, float]

HEADING_SENTINEL = "--"


@dataclass(frozen=True)
class QueryInput:
    """Raw user input. Not yet validated."""

    latitude: float  # Decimal degrees
    longitude: float  # Decimal degrees
    date: str  # "YYYY-MM-DD" format string
    time_minutes: int  # Minutes after local midnight (0-1440)
    panel_heading_deg: float = 155.0  # Compass heading the panel faces
    panel_tilt_deg: float = 24.0  # 0 = flat, 90 = vertical
    tz_name: str | None = None  # IANA name; looked up from lat/lng if None


@dataclass(frozen=True)
class GeoLocation:
    latitude: float  # Decimal degrees, [-90, 90]
    longitude: float  # Decimal degrees, [-180, 180]


@dataclass(frozen=True)
class PanelOrientation:
    """Fixed collector orientation."""

    heading_deg: float = 155.0  # Compass heading (0=N, 90=E, 180=S, 270=W)
    tilt_deg: float = 24.0  # Angle from horizontal


@dataclass(frozen=True)
class ObserverContext:
    """Validated input. The single current configuration driving every computation."""

    location: GeoLocation
    tz_name: str  # IANA timezone of the location
    day: date  # Chosen calendar day; local_dt may be its closing midnight
    local_dt: datetime  # Timezone-aware local datetime
    panel: PanelOrientation


@dataclass(frozen=True)
class SunPosition:
    """Sun position in provider convention."""

    azimuth_rad: float  # Measured from south, positive westward
    altitude_rad: float  # Positive above the horizon

    @property
    def azimuth_deg(self) -> float:
        return math.degrees(self.azimuth_rad)

    @property
    def altitude_deg(self) -> float:
        return math.degrees(self.altitude_rad)

    @property
    def is_up(self) -> bool:
        return self.altitude_rad > 0


@dataclass(frozen=True)
class IncidenceSample:
    factor: float  # cos(AOI) clamped to [0, 1]
    timestamp: datetime


@dataclass(frozen=True)
class DailyPeak:
    """Maximum incidence factor over one calendar day, found by discrete sampling."""

    factor: float
    time: datetime | None  # None when the sun never rises


@dataclass(frozen=True)
class SunTimes:
    sunrise: datetime | None  # None during polar day/night
    sunset: datetime | None


@dataclass(frozen=True)
class SunInfo:
    """Sun position at the selected instant plus the day's rise/set summary."""

    position: SunPosition
    heading_deg: float  # Compass heading of the sun
    times: SunTimes
    sunrise_heading_deg: float | None
    sunset_heading_deg: float | None
    daylight_minutes: int

    @property
    def sunrise_heading_label(self) -> str:
        return _heading_label(self.sunrise_heading_deg)

    @property
    def sunset_heading_label(self) -> str:
        return _heading_label(self.sunset_heading_deg)


def _heading_label(heading: float | None) -> str:
    if heading is None:
        return HEADING_SENTINEL
    return f"{heading:.2f}"


@dataclass(frozen=True)
class SunPath:
    """Sun trajectory over one day. Points below the horizon are omitted."""

    name: str  # "selected", "summer", "winter"
    day: date
    points: tuple[Vector3, ...]


@dataclass(frozen=True)
class SceneData:
    """The sole input to renderers. Fully computed state."""

    context: ObserverContext
    sun_info: SunInfo
    sun_direction: Vector3  # Unit vector towards the sun
    sun_point: Vector3  # sun_direction scaled to the scene radius
    panel_normal: Vector3
    incidence: IncidenceSample  # At the selected instant
    angle_of_incidence_deg: float | None  # None while the sun is down
    peak: DailyPeak
    paths: tuple[SunPath, ...]  # Selected day, summer solstice, winter solstice
    radius: float  # Scene radius used for sun_point and paths
