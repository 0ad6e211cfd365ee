import argparse
import sys

from astrocast import __version__
from astrocast.cli.commands import (
    run_altaz,
    run_bortle,
    run_doctor,
    run_report,
    run_site,
    run_visibility,
)


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to config.toml")
    parser.add_argument("--json", action="store_true", help="Output result as JSON")
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=["debug", "info", "warn", "error"],
        help="Enable logging at the given level",
    )


def _add_location_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--lat", dest="latitude_deg", type=float, required=True, help="Latitude (deg)")
    parser.add_argument(
        "--lon", dest="longitude_deg", type=float, required=True, help="Longitude (deg, east positive)"
    )


def _add_target_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--ra", dest="ra_deg", type=float, required=True, help="Right ascension (deg)")
    parser.add_argument("--dec", dest="dec_deg", type=float, required=True, help="Declination (deg)")
    parser.add_argument("--time", dest="time_utc", help="Instant (ISO-8601, UTC if no offset)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="astrocast")
    parser.add_argument("--version", action="store_true", help="Show version and exit")

    subparsers = parser.add_subparsers(dest="command")

    doctor_parser = subparsers.add_parser("doctor", help="Check configuration and collaborators")
    _add_common_args(doctor_parser)

    report_parser = subparsers.add_parser("report", help="Generate and send observation reports")
    _add_common_args(report_parser)
    report_parser.add_argument("--user", dest="user_id", type=int, help="Only generate reports for this user")
    report_parser.add_argument("--now", dest="now_utc", help="Override the current time (ISO-8601)")

    altaz_parser = subparsers.add_parser("altaz", help="Convert RA/Dec to altitude/azimuth")
    _add_common_args(altaz_parser)
    _add_target_args(altaz_parser)
    _add_location_args(altaz_parser)

    vis_parser = subparsers.add_parser("visibility", help="Evaluate naked-eye and horizon visibility")
    _add_common_args(vis_parser)
    _add_target_args(vis_parser)
    _add_location_args(vis_parser)
    vis_parser.add_argument("--mag", dest="magnitude", type=float, required=True, help="Apparent magnitude")
    vis_parser.add_argument("--bortle", type=int, default=4, help="Bortle class of the site (1-8)")
    vis_parser.add_argument("--name", dest="object_name", help="Object name for messages")
    vis_parser.add_argument("--sweep-hours", dest="sweep_hours", type=int, default=24)

    bortle_parser = subparsers.add_parser("bortle", help="Bortle class, limiting magnitude and description")
    _add_common_args(bortle_parser)
    group = bortle_parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--radiance", type=float, help="Artificial sky brightness (mcd/m^2)")
    group.add_argument("--class", dest="bortle", type=int, help="Bortle class (1-8)")

    site_parser = subparsers.add_parser("site", help="Rate a new observing site from the light pollution grid")
    _add_common_args(site_parser)
    _add_location_args(site_parser)
    site_parser.add_argument("--name", dest="site_name", required=True)
    site_parser.add_argument("--id", dest="site_id", type=int, default=0)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"Astrocast {__version__}")
        return 0

    commands = {
        "doctor": run_doctor,
        "report": run_report,
        "altaz": run_altaz,
        "visibility": run_visibility,
        "bortle": run_bortle,
        "site": run_site,
    }
    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 0
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
