#!/usr/bin/env python3
"""Watch the live vehicle feed headlessly.

Runs the tracking engine against the real feed with an in-memory
surface and prints what would be on the map after every poll: one line
per vehicle with its line, destination, icon and position.

Usage
-----
::

    python scripts/watch_feed.py --lookup trips.json

Options::

    --lookup FILE        JSON object {trip_id: {line, headsign, type, desc}} (required)
    --url URL            Feed URL (default: LIVETRACK_FEED_URL or built-in)
    --interval SECONDS   Poll interval (default: config value)
    --polls N            Stop after N polls (default: run until Ctrl-C)
    --skips              Also print skip reason counts
    -v / --verbose       Enable DEBUG logging
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pylivetrack import RecordingSurface, SnapshotReport, TrackerConfig, TrackingEngine, TripLookup  # noqa: E402

# ── helpers ──────────────────────────────────────────────────


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _print_snapshot(engine: TrackingEngine, surface: RecordingSurface, report: SnapshotReport, *, skips: bool) -> None:
    out: list[str] = [_section(f"{len(engine.registry)} vehicles, {len(report.removed)} removed")]
    for agent in sorted(engine.registry, key=lambda a: (a.state.line, a.identity)):
        marker = surface.markers.get(agent.identity)
        icon = marker.icon.signature if marker is not None else "<no marker>"
        destination = agent.state.destination or "-"
        out.append(
            f"  {agent.state.line:>5}  {destination:<24} {agent.identity:<20} "
            f"{agent.state.lat:9.5f},{agent.state.lon:9.5f}  {icon}"
        )
    if skips and report.skipped:
        out.append("  skipped:")
        for reason, count in sorted(report.skip_counts.items()):
            out.append(f"    {reason}: {count}")
    print("\n".join(out))


# ── main ─────────────────────────────────────────────────────


async def _watch(args: argparse.Namespace) -> int:
    overrides: dict[str, Any] = {}
    if args.url:
        overrides["feed_url"] = args.url
    if args.interval:
        overrides["poll_interval"] = args.interval
    config = TrackerConfig.from_env(**overrides)
    lookup = TripLookup.from_json_file(args.lookup)
    surface = RecordingSurface(zoom=config.projection_zoom)

    async with TrackingEngine(config, surface, lookup, on_status=lambda text: print(f"[status] {text}")) as engine:
        polls = 0
        while args.polls is None or polls < args.polls:
            result = await engine.poll_once()
            polls += 1
            if result is not None and result.report is not None:
                _print_snapshot(engine, surface, result.report, skips=args.skips)
            await asyncio.sleep(config.poll_interval)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Watch the live vehicle feed headlessly")
    parser.add_argument("--lookup", required=True, help="Trip lookup JSON file")
    parser.add_argument("--url", help="Feed URL")
    parser.add_argument("--interval", type=float, help="Poll interval in seconds")
    parser.add_argument("--polls", type=int, help="Stop after N polls")
    parser.add_argument("--skips", action="store_true", help="Print skip reason counts")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return asyncio.run(_watch(args))
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
