"""Plotly 3D scene renderer.

Maps SceneData onto a ground disc with a compass rose, the three sun paths,
the sun marker and the panel normal. Scene axes follow the engine: XZ is the
ground, Y is up, +X east, +Z south.

Plotly's z axis is drawn vertical, so scene (x, y, z) is plotted as
(x, -z, y): east right, north away from the viewer, up up.
"""

import math

import numpy as np
import plotly.graph_objects as go

from solarsim.models import SceneData, Vector3

_BG = "#f4f1ea"
_GROUND = "#ffffff"
_TICK_COLOR = "#111111"
_SUN_COLOR = "#ffb000"
_NORMAL_COLOR = "#1f5fbf"
_PATH_COLORS = {
    "selected": "#ffd200",
    "summer": "#00b050",
    "winter": "#d62b2b",
}


def _plot_xyz(points: tuple[Vector3, ...] | list[Vector3]) -> tuple[list, list, list]:
    xs = [p[0] for p in points]
    ys = [-p[2] for p in points]
    zs = [p[1] for p in points]
    return xs, ys, zs


def compass_ticks(radius: float) -> list[tuple[Vector3, Vector3]]:
    """Tick segments every 5°; medium every 10°, long every 30°."""
    ticks = []
    for deg in range(0, 360, 5):
        length = 0.25
        if deg % 30 == 0:
            length = 0.7
        elif deg % 10 == 0:
            length = 0.4
        rad = math.radians(deg)
        inner = ((radius - length) * math.cos(rad), 0.01, (radius - length) * math.sin(rad))
        outer = (radius * math.cos(rad), 0.01, radius * math.sin(rad))
        ticks.append((inner, outer))
    return ticks


def render_scene(scene: SceneData) -> go.Figure:
    """Render SceneData as an interactive Plotly 3D figure.

    Args:
        scene: Fully computed scene.

    Returns:
        Plotly Figure object.
    """
    radius = scene.radius
    traces: list[go.Scatter3d | go.Mesh3d] = []

    # Ground disc
    theta = np.linspace(0, 2 * np.pi, 65)
    traces.append(
        go.Mesh3d(
            x=np.append(radius * np.cos(theta), 0.0),
            y=np.append(radius * np.sin(theta), 0.0),
            z=np.zeros(66),
            alphahull=-1,
            delaunayaxis="z",
            color=_GROUND,
            opacity=0.6,
            hoverinfo="skip",
            name="ground",
        )
    )

    # Compass rose: single trace using None separators
    tx: list[float | None] = []
    ty: list[float | None] = []
    tz: list[float | None] = []
    for inner, outer in compass_ticks(radius):
        xs, ys, zs = _plot_xyz([inner, outer])
        tx += xs + [None]
        ty += ys + [None]
        tz += zs + [None]
    traces.append(
        go.Scatter3d(
            x=tx, y=ty, z=tz,
            mode="lines",
            line=dict(color=_TICK_COLOR, width=2),
            hoverinfo="skip",
            name="compass",
        )
    )
    label_r = radius + 1.1
    lx, ly, lz = _plot_xyz(
        [(0, 0.02, -label_r), (label_r, 0.02, 0), (0, 0.02, label_r), (-label_r, 0.02, 0)]
    )
    traces.append(
        go.Scatter3d(
            x=lx, y=ly, z=lz,
            mode="text",
            text=["NORTH", "EAST", "SOUTH", "WEST"],
            textfont=dict(color=_TICK_COLOR, family="Georgia", size=14),
            hoverinfo="skip",
            name="labels",
        )
    )

    for path in scene.paths:
        xs, ys, zs = _plot_xyz(path.points)
        traces.append(
            go.Scatter3d(
                x=xs, y=ys, z=zs,
                mode="lines",
                line=dict(color=_PATH_COLORS.get(path.name, _SUN_COLOR), width=4),
                name=f"{path.name} ({path.day.isoformat()})",
            )
        )

    if scene.sun_info.position.is_up:
        sx, sy, sz = _plot_xyz([scene.sun_point])
        traces.append(
            go.Scatter3d(
                x=sx, y=sy, z=sz,
                mode="markers",
                marker=dict(size=10, color=_SUN_COLOR),
                name="sun",
            )
        )

    nx, ny, nz = _plot_xyz([(0.0, 0.0, 0.0), tuple(c * 3 for c in scene.panel_normal)])
    traces.append(
        go.Scatter3d(
            x=nx, y=ny, z=nz,
            mode="lines",
            line=dict(color=_NORMAL_COLOR, width=6),
            name="panel normal",
        )
    )

    fig = go.Figure(data=traces)
    extent = radius + 2
    fig.update_layout(
        paper_bgcolor=_BG,
        margin=dict(l=0, r=0, t=0, b=0),
        showlegend=True,
        scene=dict(
            xaxis=dict(visible=False, range=[-extent, extent]),
            yaxis=dict(visible=False, range=[-extent, extent]),
            zaxis=dict(visible=False, range=[-1, extent]),
            aspectmode="manual",
            aspectratio=dict(x=1, y=1, z=(extent + 1) / (2 * extent)),
            camera=dict(eye=dict(x=0.0, y=-1.6, z=0.8)),
        ),
    )
    return fig
