"""Plain-text info panel: sun angles, sunrise/sunset, daylight, incidence."""

from datetime import datetime

from solarsim.models import SceneData, SunInfo


def format_time(value: datetime | None) -> str:
    if value is None:
        return "--:--"
    return value.strftime("%H:%M")


def format_sun_info(info: SunInfo) -> list[str]:
    """Return the info lines shown next to the scene."""
    hours, minutes = divmod(info.daylight_minutes, 60)
    return [
        f"Azimuth: {info.position.azimuth_deg:.2f} deg",
        f"Altitude: {info.position.altitude_deg:.2f} deg",
        f"Heading: {info.heading_deg:.2f} deg",
        f"Sunrise: {format_time(info.times.sunrise)}",
        f"Sunset: {format_time(info.times.sunset)}",
        f"Daylight: {hours}h {minutes}m",
        f"Sunrise Az: {info.sunrise_heading_label} deg",
        f"Sunset Az: {info.sunset_heading_label} deg",
    ]


def format_scene(scene: SceneData) -> list[str]:
    """Info lines plus location, panel and incidence summary."""
    ctx = scene.context
    aoi = scene.angle_of_incidence_deg
    peak = scene.peak
    return [
        f"Location: {ctx.location.latitude:.4f}, {ctx.location.longitude:.4f} ({ctx.tz_name})",
        f"Time: {ctx.local_dt.strftime('%Y-%m-%d %H:%M %Z')}",
        *format_sun_info(scene.sun_info),
        f"Panel: heading {ctx.panel.heading_deg:.1f} deg, tilt {ctx.panel.tilt_deg:.1f} deg",
        f"Incidence: {scene.incidence.factor:.3f}",
        f"AOI: {'--' if aoi is None else f'{aoi:.2f}'} deg",
        f"Peak: {peak.factor:.3f} at {format_time(peak.time)}",
    ]
