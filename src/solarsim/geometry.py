"""Solar geometry: pure conversions between sun positions, compass headings and panel vectors.

Scene coordinates: the ground plane is XZ with Y up.
+X points east, +Z points south, -Z points north.
"""

import math

from solarsim.models import PanelOrientation, SunPosition, Vector3

_UP: Vector3 = (0.0, 1.0, 0.0)


def normalize_degrees(deg: float) -> float:
    """Wrap any angle into [0, 360)."""
    return ((deg % 360) + 360) % 360


def to_compass_heading(azimuth_rad: float) -> float:
    """Convert a south-based, west-positive azimuth to a compass heading (0=N, clockwise)."""
    return normalize_degrees(math.degrees(azimuth_rad) + 180)


def to_direction_vector(sun: SunPosition) -> Vector3:
    """Return the unit vector pointing from the origin towards the sun.

    Azimuth is rotated by +90° so east maps to +X and south to +Z.
    """
    azimuth = sun.azimuth_rad + math.pi / 2
    cos_alt = math.cos(sun.altitude_rad)
    return (
        math.cos(azimuth) * cos_alt,
        math.sin(sun.altitude_rad),
        math.sin(azimuth) * cos_alt,
    )


def sun_point(sun: SunPosition, radius: float) -> Vector3:
    x, y, z = to_direction_vector(sun)
    return (x * radius, y * radius, z * radius)


def _dot(a: Vector3, b: Vector3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _unit(v: Vector3) -> Vector3:
    norm = math.sqrt(_dot(v, v))
    if norm == 0:
        return _UP
    return (v[0] / norm, v[1] / norm, v[2] / norm)


def panel_normal(orientation: PanelOrientation) -> Vector3:
    """Unit normal of a panel facing `heading_deg`, tilted `tilt_deg` from horizontal.

    tilt=0 gives straight up; tilt=90 gives a horizontal normal facing the heading.
    """
    heading = math.radians(orientation.heading_deg - 90)
    tilt = math.radians(orientation.tilt_deg)
    horizontal = (math.cos(heading), 0.0, math.sin(heading))
    return _unit(
        (
            _UP[0] * math.cos(tilt) + horizontal[0] * math.sin(tilt),
            _UP[1] * math.cos(tilt) + horizontal[1] * math.sin(tilt),
            _UP[2] * math.cos(tilt) + horizontal[2] * math.sin(tilt),
        )
    )


def incidence_factor(sun: SunPosition, orientation: PanelOrientation) -> float:
    """Cosine of the angle of incidence, clamped to [0, 1].

    A sun at or below the horizon contributes nothing, even when the dot
    product would still be slightly positive.
    """
    if sun.altitude_rad <= 0:
        return 0.0
    cos_aoi = _dot(panel_normal(orientation), _unit(to_direction_vector(sun)))
    return min(1.0, max(0.0, cos_aoi))


def angle_of_incidence_deg(factor: float) -> float:
    return math.degrees(math.acos(min(1.0, max(0.0, factor))))
