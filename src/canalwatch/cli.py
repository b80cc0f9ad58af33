"""
Command line interface for canalwatch.

    canalwatch serve                        run the dashboard API server
    canalwatch status                       overall safety status
    canalwatch latest [LOCATION]            latest reading(s)
    canalwatch history LOCATION --hours 6   recent readings as a table or CSV
    canalwatch debug                        store diagnostics

Query commands talk to a running dashboard server (``--api``) unless
``--direct`` is given, in which case the store is queried using the
environment settings.
"""

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from .client import DashboardClient
from .config import Settings, configure_logging
from .exceptions import CanalWatchError
from .locations import CANONICAL_LOCATIONS, display_name, is_canonical
from .models import NormalizedReading, StatusSummary, format_timestamp, readings_to_dataframe

logger = logging.getLogger(__name__)


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--api",
        default=DashboardClient.DEFAULT_BASE_URL,
        help="Dashboard server base URL (default: %(default)s)",
    )
    source.add_argument(
        "--direct",
        action="store_true",
        help="Query the reading store directly instead of a dashboard server",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="canalwatch", description="Canal skating surface safety dashboard"
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the dashboard API server")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    status = subparsers.add_parser("status", help="Show the overall safety status")
    _add_source_arguments(status)

    latest = subparsers.add_parser("latest", help="Show the latest reading(s)")
    latest.add_argument("location", nargs="?", help="Canonical location key (default: all)")
    _add_source_arguments(latest)

    history = subparsers.add_parser("history", help="Show recent readings for a location")
    history.add_argument("location", help="Canonical location key")
    history.add_argument("--hours", type=int, default=1, help="Lookback window (default: 1)")
    history.add_argument("--csv", dest="csv_path", help="Write readings to this CSV file")
    _add_source_arguments(history)

    debug = subparsers.add_parser("debug", help="Show store diagnostics from a dashboard server")
    debug.add_argument(
        "--api",
        default=DashboardClient.DEFAULT_BASE_URL,
        help="Dashboard server base URL (default: %(default)s)",
    )

    return parser


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _format_status(summary: StatusSummary) -> str:
    lines = [
        f"System status: {summary.system_status}",
        f"Locations reporting: {summary.total_locations} "
        f"(safe {summary.safe_locations}, caution {summary.caution_locations}, "
        f"unsafe {summary.unsafe_locations})",
        f"Last update: {format_timestamp(summary.last_update) or 'N/A'}",
    ]
    for key in CANONICAL_LOCATIONS:
        reading = summary.locations.get(key)
        state = reading.safety_status if reading else "No data available"
        lines.append(f"  {display_name(key):<14} {state}")
    return "\n".join(lines)


def _cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from .api import create_app

    uvicorn.run(
        create_app(settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def _cmd_status(args: argparse.Namespace, settings: Settings) -> int:
    if args.direct:
        from .sync import get_system_status_sync

        summary = get_system_status_sync(settings=settings)
    else:
        with DashboardClient(args.api) as client:
            summary = client.get_status()
    print(_format_status(summary))
    return 0


def _cmd_latest(args: argparse.Namespace, settings: Settings) -> int:
    readings: Dict[str, Optional[NormalizedReading]]
    if args.location and not is_canonical(args.location):
        logger.warning(f"{args.location!r} is not a known location key")

    if args.direct:
        from .sync import fetch_all_latest_sync, fetch_latest_reading_sync

        if args.location:
            readings = {args.location: fetch_latest_reading_sync(args.location, settings=settings)}
        else:
            readings = dict(fetch_all_latest_sync(settings=settings))
    else:
        with DashboardClient(args.api) as client:
            if args.location:
                readings = {args.location: client.get_latest_reading(args.location)}
            else:
                readings = dict(client.get_latest_readings())

    if args.location and readings[args.location] is None:
        print(f"No data available for {display_name(args.location)}")
        return 1
    _print_json({key: reading.to_dict() for key, reading in readings.items() if reading})
    return 0


def _cmd_history(args: argparse.Namespace, settings: Settings) -> int:
    readings: List[NormalizedReading]
    if args.direct:
        from .sync import fetch_history_sync

        readings = fetch_history_sync(args.location, args.hours, settings=settings)
    else:
        with DashboardClient(args.api) as client:
            readings = client.get_history(args.location, args.hours)

    df = readings_to_dataframe(readings)
    if args.csv_path:
        df.to_csv(args.csv_path, index=False)
        print(f"Wrote {len(df)} readings to {args.csv_path}")
    elif df.empty:
        print(f"No data available for {display_name(args.location)}")
    else:
        print(df.to_string(index=False))
    return 0


def _cmd_debug(args: argparse.Namespace, settings: Settings) -> int:
    with DashboardClient(args.api) as client:
        _print_json(client.debug())
    return 0


COMMANDS = {
    "serve": _cmd_serve,
    "status": _cmd_status,
    "latest": _cmd_latest,
    "history": _cmd_history,
    "debug": _cmd_debug,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    if args.log_level:
        settings.log_level = args.log_level.upper()
    configure_logging(settings.log_level)

    try:
        return COMMANDS[args.command](args, settings)
    except CanalWatchError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
