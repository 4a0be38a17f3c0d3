"""Runtime settings read from the environment (and `.env`, loaded by entry points)."""

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

_ROOT = Path(__file__).parent.parent.parent


class ConfigError(ValueError):
    """Malformed environment value."""


@dataclass(frozen=True)
class Settings:
    ephemeris_dir: Path  # Where skyfield downloads/reads the ephemeris
    ephemeris_name: str = "de421.bsp"
    latitude: float = 37.7749  # Default: San Francisco
    longitude: float = -122.4194
    panel_heading_deg: float = 155.0
    panel_tilt_deg: float = 24.0
    scene_radius: float = 10.0
    refresh_seconds: float = 5.0  # Interval of the "now" refresh task

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build Settings from SOLARSIM_* variables, falling back to defaults.

        Raises:
            ConfigError: When a numeric variable cannot be parsed.
        """
        env = os.environ if environ is None else environ
        defaults = cls(ephemeris_dir=_ROOT / "resources")
        return cls(
            ephemeris_dir=Path(env.get("SOLARSIM_EPHEMERIS_DIR", defaults.ephemeris_dir)),
            ephemeris_name=env.get("SOLARSIM_EPHEMERIS", defaults.ephemeris_name),
            latitude=_float(env, "SOLARSIM_LATITUDE", defaults.latitude),
            longitude=_float(env, "SOLARSIM_LONGITUDE", defaults.longitude),
            panel_heading_deg=_float(
                env, "SOLARSIM_PANEL_HEADING", defaults.panel_heading_deg
            ),
            panel_tilt_deg=_float(env, "SOLARSIM_PANEL_TILT", defaults.panel_tilt_deg),
            scene_radius=_float(env, "SOLARSIM_SCENE_RADIUS", defaults.scene_radius),
            refresh_seconds=_float(
                env, "SOLARSIM_REFRESH_SECONDS", defaults.refresh_seconds
            ),
        )


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from e
