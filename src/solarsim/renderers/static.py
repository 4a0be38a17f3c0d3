"""Matplotlib static PNG renderer: polar sun-path chart seen from above."""

import math
from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.figure import Figure

from solarsim.models import SceneData, Vector3

_ROOT = Path(__file__).parent.parent.parent.parent

_PATH_COLORS = {
    "selected": "#e6b800",
    "summer": "#00b050",
    "winter": "#d62b2b",
}


def _heading_altitude(point: Vector3) -> tuple[float, float]:
    """Compass heading (rad) and altitude (deg) of a scene point."""
    x, y, z = point
    heading = math.atan2(x, -z) % (2 * math.pi)
    altitude = math.degrees(math.atan2(y, math.hypot(x, z)))
    return heading, altitude


def render_static_chart(scene: SceneData, chart_size: int = 8) -> Figure:
    """Render the sun paths on a polar chart: angle = heading, radius = 90° - altitude.

    Args:
        scene: Fully computed scene.
        chart_size: Output image size in inches.

    Returns:
        matplotlib Figure object.
    """
    fig = plt.figure(figsize=(chart_size, chart_size))
    ax = fig.add_subplot(projection="polar")
    ax.set_theta_zero_location("N")
    ax.set_theta_direction(-1)
    ax.set_rlim(0, 90)
    ax.set_rticks([0, 30, 60, 90])
    ax.set_yticklabels(["90°", "60°", "30°", "0°"])

    for path in scene.paths:
        if not path.points:
            continue
        coords = np.array([_heading_altitude(p) for p in path.points])
        ax.plot(
            coords[:, 0],
            90 - coords[:, 1],
            color=_PATH_COLORS.get(path.name, "black"),
            linewidth=1.5,
            label=f"{path.name} {path.day.isoformat()}",
        )

    sun = scene.sun_info
    if sun.position.is_up:
        ax.scatter(
            [math.radians(sun.heading_deg)],
            [90 - sun.position.altitude_deg],
            s=120,
            color="#ffb000",
            zorder=3,
            label="sun",
        )

    if ax.get_legend_handles_labels()[0]:
        ax.legend(loc="lower left", bbox_to_anchor=(-0.1, -0.1), fontsize="small")
    return fig


def save_static_chart(scene: SceneData, output_path: Path | None = None) -> Path:
    """Save the sun chart as a PNG file.

    Args:
        scene: Fully computed scene.
        output_path: Destination path. Auto-generated under results/ if None.

    Returns:
        Path to the saved file.
    """
    if output_path is None:
        ctx = scene.context
        when_str = ctx.local_dt.strftime("%Y_%m_%d_%H_%M")
        filename = (
            f"sun_{ctx.location.latitude:.4f}_{ctx.location.longitude:.4f}__{when_str}.png"
        )
        output_path = _ROOT / "results" / filename

    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig = render_static_chart(scene)
    fig.savefig(output_path)
    plt.close(fig)
    return output_path
