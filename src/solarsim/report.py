"""CLI entry point: print the sun report for a location/date/time and optionally save charts.

    uv run solarsim --lat 38.9631672 --lon -95.2422898 --date 2024-06-21 --time 12:00
"""

import argparse
import logging
import sys
from datetime import date

from dotenv import load_dotenv

load_dotenv()

from solarsim.compute import InputError, run  # noqa: E402
from solarsim.config import Settings  # noqa: E402
from solarsim.models import QueryInput  # noqa: E402
from solarsim.renderers.text import format_scene  # noqa: E402


def parse_time_of_day(value: str) -> int:
    """Parse "HH:MM" into minutes after midnight."""
    try:
        hours, minutes = (int(part) for part in value.split(":"))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"expected HH:MM, got {value!r}") from e
    if not (0 <= hours <= 24 and 0 <= minutes < 60):
        raise argparse.ArgumentTypeError(f"expected HH:MM, got {value!r}")
    return hours * 60 + minutes


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solarsim",
        description="Sun position, sunrise/sunset and solar-panel incidence for a site.",
    )
    parser.add_argument("--lat", type=float, default=settings.latitude, help="Latitude (deg)")
    parser.add_argument("--lon", type=float, default=settings.longitude, help="Longitude (deg)")
    parser.add_argument("--date", default=date.today().isoformat(), help="YYYY-MM-DD")
    parser.add_argument(
        "--time", type=parse_time_of_day, default=12 * 60, help="Local time HH:MM"
    )
    parser.add_argument("--tz", default=None, help="IANA timezone (default: from location)")
    parser.add_argument(
        "--heading", type=float, default=settings.panel_heading_deg, help="Panel heading (deg)"
    )
    parser.add_argument(
        "--tilt", type=float, default=settings.panel_tilt_deg, help="Panel tilt (deg)"
    )
    parser.add_argument("--png", action="store_true", help="Save a static sun chart")
    parser.add_argument("--html", metavar="PATH", help="Write the interactive 3D scene")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    settings = Settings.from_env()
    args = build_parser(settings).parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    query = QueryInput(
        latitude=args.lat,
        longitude=args.lon,
        date=args.date,
        time_minutes=args.time,
        panel_heading_deg=args.heading,
        panel_tilt_deg=args.tilt,
        tz_name=args.tz,
    )
    try:
        scene = run(query, radius=settings.scene_radius)
    except InputError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    print("\n".join(format_scene(scene)))

    if args.png:
        from solarsim.renderers.static import save_static_chart

        print(f"Saved: {save_static_chart(scene)}")
    if args.html:
        from solarsim.renderers.plotly_3d import render_scene

        render_scene(scene).write_html(args.html)
        print(f"Saved: {args.html}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
