"""Solar computation layer: input resolution, daily sweeps, and scene assembly."""

import logging
from datetime import date, datetime, time, timedelta

from pytz import BaseTzInfo, UnknownTimeZoneError, timezone
from timezonefinder import TimezoneFinder

from solarsim.ephemeris import SunPositionProvider, default_provider
from solarsim.geometry import (
    angle_of_incidence_deg,
    incidence_factor,
    panel_normal,
    sun_point,
    to_compass_heading,
    to_direction_vector,
)
from solarsim.models import (
    DailyPeak,
    GeoLocation,
    IncidenceSample,
    ObserverContext,
    PanelOrientation,
    QueryInput,
    SceneData,
    SunInfo,
    SunPath,
    Vector3,
)

_LOGGER = logging.getLogger(__name__)
_tf = TimezoneFinder()

MINUTES_PER_DAY = 24 * 60


class InputError(ValueError):
    """Input rejected before it reaches the engine."""


def parse_date(value: str) -> date:
    """Parse a "YYYY-MM-DD" string.

    Raises:
        InputError: When the string is not a valid calendar date.
    """
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (ValueError, AttributeError) as e:
        raise InputError(f"Invalid date (expected YYYY-MM-DD): {value!r}") from e


def resolve_timezone(location: GeoLocation, tz_name: str | None = None) -> BaseTzInfo:
    """Return the pytz timezone for `tz_name`, or the one covering `location`.

    Raises:
        InputError: On an unknown name, or when no timezone covers the location.
    """
    if tz_name is None:
        tz_name = _tf.timezone_at(lat=location.latitude, lng=location.longitude)
        if tz_name is None:
            raise InputError(
                f"Timezone not found: lat={location.latitude}, lng={location.longitude}"
            )
    try:
        return timezone(tz_name)
    except UnknownTimeZoneError as e:
        raise InputError(f"Unknown timezone: {tz_name}") from e


def local_datetime(day: date, minutes: int, tz: BaseTzInfo) -> datetime:
    """Wall-clock `minutes` after local midnight of `day`. 1440 is the next midnight."""
    naive = datetime.combine(day, time()) + timedelta(minutes=minutes)
    return tz.normalize(tz.localize(naive, is_dst=False))


def resolve_context(query: QueryInput) -> ObserverContext:
    """Validate a QueryInput and turn it into an ObserverContext.

    Args:
        query: Raw user input.

    Returns:
        ObserverContext with a timezone-aware local datetime. Minute 1440
        moves local_dt to the next midnight but keeps `day` on the chosen date.

    Raises:
        InputError: On an invalid date, time of day, coordinate, or timezone.
    """
    if not -90 <= query.latitude <= 90:
        raise InputError(f"Latitude out of range [-90, 90]: {query.latitude}")
    if not -180 <= query.longitude <= 180:
        raise InputError(f"Longitude out of range [-180, 180]: {query.longitude}")
    if not 0 <= query.time_minutes <= MINUTES_PER_DAY:
        raise InputError(
            f"Time of day out of range [0, {MINUTES_PER_DAY}]: {query.time_minutes}"
        )

    day = parse_date(query.date)
    location = GeoLocation(latitude=query.latitude, longitude=query.longitude)
    tz = resolve_timezone(location, query.tz_name)
    return ObserverContext(
        location=location,
        tz_name=tz.zone,
        day=day,
        local_dt=local_datetime(day, int(query.time_minutes), tz),
        panel=PanelOrientation(
            heading_deg=query.panel_heading_deg, tilt_deg=query.panel_tilt_deg
        ),
    )


def sample_times(day: date, tz: BaseTzInfo, step_minutes: int) -> list[datetime]:
    """Local timestamps for minute 0..1440 inclusive, every `step_minutes`."""
    if step_minutes <= 0:
        raise InputError(f"step_minutes must be positive: {step_minutes}")
    return [
        local_datetime(day, minutes, tz)
        for minutes in range(0, MINUTES_PER_DAY + 1, step_minutes)
    ]


def daily_peak_incidence(
    day: date,
    location: GeoLocation,
    orientation: PanelOrientation,
    step_minutes: int = 5,
    *,
    provider: SunPositionProvider | None = None,
    tz: BaseTzInfo | None = None,
) -> DailyPeak:
    """Find the day's highest incidence factor by brute-force sampling.

    Samples with the sun at or below the horizon are skipped. The earliest
    sample reaching the maximum wins.

    Args:
        day: Local calendar day.
        location: Observer location.
        orientation: Panel orientation.
        step_minutes: Sampling step.
        provider: Sun-position provider (skyfield by default).
        tz: Local timezone (looked up from location by default).

    Returns:
        DailyPeak; DailyPeak(0.0, None) when the sun never rises.
    """
    provider = provider or default_provider()
    tz = tz or resolve_timezone(location)
    whens = sample_times(day, tz, step_minutes)

    best: IncidenceSample | None = None
    for when, sun in zip(whens, provider.positions(whens, location)):
        if sun.altitude_rad <= 0:
            continue
        factor = incidence_factor(sun, orientation)
        if best is None or factor > best.factor:
            best = IncidenceSample(factor=factor, timestamp=when)

    if best is None:
        _LOGGER.debug("No daylight on %s at %s", day, location)
        return DailyPeak(factor=0.0, time=None)
    _LOGGER.debug("Peak incidence %.4f at %s", best.factor, best.timestamp)
    return DailyPeak(factor=best.factor, time=best.timestamp)


def build_sun_path_samples(
    day: date,
    location: GeoLocation,
    step_minutes: int = 10,
    *,
    provider: SunPositionProvider | None = None,
    tz: BaseTzInfo | None = None,
    radius: float = 1.0,
) -> tuple[Vector3, ...]:
    """Sun positions over one day as 3D points, omitting the sun below the horizon.

    Gaps are not interpolated; a day crossing the horizon more than once
    yields a disjoint polyline.
    """
    provider = provider or default_provider()
    tz = tz or resolve_timezone(location)
    whens = sample_times(day, tz, step_minutes)
    points = tuple(
        sun_point(sun, radius)
        for sun in provider.positions(whens, location)
        if sun.altitude_rad > 0
    )
    _LOGGER.debug(
        "Sun path %s: %d of %d samples above horizon", day, len(points), len(whens)
    )
    return points


def solstice_dates(year: int, latitude: float) -> tuple[date, date]:
    """Return (summer, winter) solstice dates for the hemisphere of `latitude`."""
    june, december = date(year, 6, 21), date(year, 12, 21)
    if latitude >= 0:
        return june, december
    return december, june


def compute_sun_info(
    context: ObserverContext, provider: SunPositionProvider | None = None
) -> SunInfo:
    """Sun position at the selected instant plus sunrise/sunset headings and daylight.

    Args:
        context: Current configuration.
        provider: Sun-position provider (skyfield by default).

    Returns:
        SunInfo. Headings are None for events that do not happen that day.
    """
    provider = provider or default_provider()
    tz = timezone(context.tz_name)
    position = provider.position(context.local_dt, context.location)
    times = provider.times(local_datetime(context.day, 0, tz), context.location)

    sunrise_heading = None
    sunset_heading = None
    if times.sunrise is not None:
        sunrise_heading = to_compass_heading(
            provider.position(times.sunrise, context.location).azimuth_rad
        )
    if times.sunset is not None:
        sunset_heading = to_compass_heading(
            provider.position(times.sunset, context.location).azimuth_rad
        )

    daylight_minutes = 0
    if times.sunrise is not None and times.sunset is not None:
        seconds = (times.sunset - times.sunrise).total_seconds()
        daylight_minutes = max(0, round(seconds / 60))

    return SunInfo(
        position=position,
        heading_deg=to_compass_heading(position.azimuth_rad),
        times=times,
        sunrise_heading_deg=sunrise_heading,
        sunset_heading_deg=sunset_heading,
        daylight_minutes=daylight_minutes,
    )


def compute_scene(
    context: ObserverContext,
    provider: SunPositionProvider | None = None,
    radius: float = 10.0,
) -> SceneData:
    """Compute everything a renderer needs for one configuration.

    Args:
        context: Current configuration.
        provider: Sun-position provider (skyfield by default).
        radius: Scene radius for the sun marker and sun paths.

    Returns:
        Fully computed SceneData.
    """
    provider = provider or default_provider()
    tz = timezone(context.tz_name)
    sun_info = compute_sun_info(context, provider)
    sun = sun_info.position

    factor = incidence_factor(sun, context.panel)
    aoi = angle_of_incidence_deg(factor) if sun.is_up else None

    summer, winter = solstice_dates(context.day.year, context.location.latitude)
    paths = tuple(
        SunPath(
            name=name,
            day=day,
            points=build_sun_path_samples(
                day, context.location, provider=provider, tz=tz, radius=radius
            ),
        )
        for name, day in (
            ("selected", context.day),
            ("summer", summer),
            ("winter", winter),
        )
    )

    return SceneData(
        context=context,
        sun_info=sun_info,
        sun_direction=to_direction_vector(sun),
        sun_point=sun_point(sun, radius),
        panel_normal=panel_normal(context.panel),
        incidence=IncidenceSample(factor=factor, timestamp=context.local_dt),
        angle_of_incidence_deg=aoi,
        peak=daily_peak_incidence(
            context.day, context.location, context.panel, provider=provider, tz=tz
        ),
        paths=paths,
        radius=radius,
    )


def run(
    query: QueryInput,
    provider: SunPositionProvider | None = None,
    radius: float = 10.0,
) -> SceneData:
    """Top-level entry point: takes a QueryInput and returns a SceneData.

    Raises:
        InputError: When the query fails validation.
    """
    context = resolve_context(query)
    return compute_scene(context, provider, radius=radius)
