#!/usr/bin/env python3
"""CLI script for replaying a recorded GPX track through a run session.

Runs the track through the same signal filter, timer and save pipeline as a
live run, then prints the saved record. Useful for checking filter
thresholds against real recordings.

Usage:
    # Replay 30x faster than recorded and save to the database
    python scripts/replay_gpx.py --file morning_run.gpx --user u123 --speedup 30

    # Print the record without touching the database
    python scripts/replay_gpx.py --file morning_run.gpx --dry-run --weight 72
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from runtracker.config import settings
from runtracker.features.runs import RunRecord, RunStore, SqlRunStore, build_pipeline
from runtracker.features.tracking import TrackingConfig
from runtracker.features.tracking.replay import GPXReplayLocationProvider, ReplayError
from runtracker.features.tracking.session import RunSessionController
from runtracker.shared.formatters import format_clock, format_distance_km, format_number


class DryRunStore(RunStore):
    """Store that keeps the record in memory instead of saving it."""

    def __init__(self, weight_kg: Optional[float]):
        self.weight_kg = weight_kg
        self.records: list[RunRecord] = []

    async def read_user_weight(self, user_id: str) -> Optional[float]:
        return self.weight_kg

    async def append_record(self, user_id: str, record: RunRecord) -> str:
        self.records.append(record)
        return f"dry-run-{len(self.records)}"


async def replay(args: argparse.Namespace) -> int:
    content = Path(args.file).read_text(encoding="utf-8")
    provider = GPXReplayLocationProvider.from_gpx(
        content, speedup=args.speedup, accuracy_m=args.accuracy
    )

    if args.dry_run:
        store: RunStore = DryRunStore(args.weight)
    else:
        from runtracker.db.session import init_db, AsyncSessionLocal
        init_db()
        store = SqlRunStore(AsyncSessionLocal)

    config = TrackingConfig.from_settings(settings)
    pipeline = build_pipeline(store, config, settings)
    controller = RunSessionController(
        args.user, provider, pipeline, config=config, clock=provider.now_ms
    )

    print(f"Replaying {len(provider.fixes)} points from {args.file} at {args.speedup}x...")
    if not await controller.start():
        print(f"Run not started: {controller.message}")
        return 1

    await provider.wait_finished()
    state = controller.state()
    print(
        f"Tracked {format_distance_km(state.distance_km)} in {state.clock} "
        f"(pace {state.pace}/km, +{format_number(state.elevation_gain_m, 0)} m, {state.calories} kcal)"
    )

    result = await controller.stop()
    if result is None:
        print("Run was not running")
        return 1

    print(f"{result.outcome.value}: {result.message}")
    if result.record is not None:
        record = result.record
        print(f"  Distance: {format_distance_km(record.distance)}")
        print(f"  Time:     {format_clock(record.time)}")
        print(f"  Speed:    {format_number(record.average_speed_kmh, 2)} km/h")
        print(f"  Steps:    {record.steps} ({record.step_source.value})")
        if args.json:
            print(record.model_dump_json(by_alias=True, indent=2))
    return 0 if result.record_id else 1


def main() -> None:
    parser = argparse.ArgumentParser(description="Replay a GPX track as a live run")
    parser.add_argument("--file", required=True, help="GPX file to replay")
    parser.add_argument("--user", default="replay", help="User id to save the run for")
    parser.add_argument("--speedup", type=float, default=20.0, help="Replay speed factor")
    parser.add_argument(
        "--accuracy",
        type=float,
        default=5.0,
        help="Accuracy in meters reported for every point",
    )
    parser.add_argument("--dry-run", action="store_true", help="Don't write to the database")
    parser.add_argument("--weight", type=float, help="Weight in kg for --dry-run")
    parser.add_argument("--json", action="store_true", help="Print the record as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show filter decisions")

    args = parser.parse_args()

    if not Path(args.file).exists():
        print(f"File not found: {args.file}")
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    try:
        sys.exit(asyncio.run(replay(args)))
    except ReplayError as e:
        print(f"Cannot replay {args.file}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
