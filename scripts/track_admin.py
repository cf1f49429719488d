"""Admin CLI for inspecting and pruning stored aircraft tracks.

Usage examples:
    python scripts/track_admin.py stats
    python scripts/track_admin.py prune --hours 12
    python scripts/track_admin.py clear --aircraft UAL123 --yes
"""

from __future__ import annotations

import argparse
from datetime import datetime, timedelta
import json

from flightradar.config import settings
from flightradar.db import SessionLocal, init_db
from flightradar.services.track_store import SqlTrackStorage


def _get_storage() -> SqlTrackStorage:
    init_db()
    return SqlTrackStorage(SessionLocal)


def cmd_stats(args) -> None:
    counts = _get_storage().count_by_aircraft()
    if not counts:
        print("No stored track points.")
    elif args.json:
        print(json.dumps(counts, indent=2, sort_keys=True))
    else:
        for aircraft_id, count in sorted(counts.items()):
            print(f"{aircraft_id}: {count} points")
        print(f"total: {sum(counts.values())} points for {len(counts)} aircraft")


def cmd_prune(args) -> None:
    hours = args.hours if args.hours is not None else settings.retention_hours
    cutoff = datetime.utcnow() - timedelta(hours=hours)
    deleted = _get_storage().delete_before(cutoff)
    print(f"Deleted {deleted} track points older than {cutoff.isoformat()}")


def cmd_clear(args) -> None:
    if not args.yes:
        confirmation = input(f"Erase the stored track of {args.aircraft}? [y/N]: ").strip().lower()
        if confirmation not in {"y", "yes"}:
            print("Cancelled.")
            return

    deleted = _get_storage().delete_aircraft(args.aircraft)
    print(f"Deleted {deleted} track points for {args.aircraft}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage stored FlightRadar tracks")
    sub = parser.add_subparsers(dest="command", required=True)

    stats_cmd = sub.add_parser("stats", help="Count stored points per aircraft")
    stats_cmd.add_argument("--json", action="store_true", help="Return JSON output")
    stats_cmd.set_defaults(func=cmd_stats)

    prune_cmd = sub.add_parser("prune", help="Delete points older than the retention window")
    prune_cmd.add_argument("--hours", type=float, help="Override the retention window in hours")
    prune_cmd.set_defaults(func=cmd_prune)

    clear_cmd = sub.add_parser("clear", help="Erase one aircraft's stored track")
    clear_cmd.add_argument("--aircraft", required=True, help="Aircraft id to erase")
    clear_cmd.add_argument("--yes", action="store_true", help="Confirm without prompt")
    clear_cmd.set_defaults(func=cmd_clear)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.func(args)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
