#!/usr/bin/env python3
"""Watch peer locations stored in a JSON substrate file.

Runs a peer map session against a file-backed substrate and prints every
peer snapshot. ``--walk`` makes the session publish a simulated position
for ``--email``.

This is a single-process tool. The file is read once at startup and
snapshots come from memory, so writes made by another process later are
not seen. Every write also replaces the whole file, so two processes
writing to the same file overwrite each other's records.

Usage
-----
::

    python scripts/watch_peers.py --storage /tmp/peers.json --email alice@example.com --walk
    python scripts/watch_peers.py --storage /tmp/peers.json --email alice@example.com --duration 30 --sign-out

Options::

    --storage FILE       Substrate file (default: $PEERLOC_STORAGE_PATH or ./peers.json)
    --email EMAIL        Local user email; excluded from snapshots
    --walk               Publish a simulated walk for the local user
    --start LAT,LON      Starting point of the walk (default: 52.3676,4.9041)
    --duration SECONDS   Stop after this many seconds (default: run until Ctrl+C)
    --sign-out           Remove the local user's record on exit
    --verbose, -v        Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import dataclasses
import logging
import math
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pypeerloc import (  # noqa: E402
    LocalIdentity,
    ManualPositionFeed,
    PeerLocation,
    PeerLocConfig,
    PeerMapSession,
    PositionSample,
    build_markers,
)

# About 55 m of latitude.
_WALK_RADIUS_DEGREES = 0.0005


def _parse_start(value: str) -> tuple[float, float]:
    try:
        lat_text, lon_text = value.split(",", 1)
        return float(lat_text), float(lon_text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected LAT,LON, got {value!r}") from None


def _print_snapshot(peers: list[PeerLocation]) -> None:
    if not peers:
        print("-- no peers")
        return
    print(f"-- {len(peers)} peer(s)")
    for marker in build_markers(peers):
        print(
            f"   {marker.color} {marker.title:<32} "
            f"{marker.latitude:>11.6f} {marker.longitude:>11.6f}  {marker.description}"
        )


async def _walk(feed: ManualPositionFeed, start: tuple[float, float], interval_s: float) -> None:
    lat, lon = start
    step = 0
    while True:
        angle = step / 12 * math.tau
        feed.push(
            PositionSample(
                latitude=lat + _WALK_RADIUS_DEGREES * math.sin(angle),
                longitude=lon + _WALK_RADIUS_DEGREES * math.cos(angle),
                accuracy=5.0,
            )
        )
        step += 1
        await asyncio.sleep(interval_s)


async def main() -> None:
    parser = argparse.ArgumentParser(description="Watch peer locations in a substrate file")
    parser.add_argument("--storage", type=Path, help="Substrate JSON file")
    parser.add_argument("--email", help="Local user email")
    parser.add_argument("--walk", action="store_true", help="Publish a simulated walk for --email")
    parser.add_argument("--start", type=_parse_start, default=(52.3676, 4.9041), help="Walk start as LAT,LON")
    parser.add_argument("--duration", type=float, help="Stop after this many seconds")
    parser.add_argument("--sign-out", action="store_true", help="Remove the local user's record on exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    overrides = {"storage_path": args.storage} if args.storage else {}
    config = PeerLocConfig.from_env(**overrides)
    if config.storage_path is None:
        config = dataclasses.replace(config, storage_path=Path("peers.json"))

    if args.walk and not args.email:
        parser.error("--walk requires --email")

    identity = LocalIdentity.from_email(args.email) if args.email else None
    feed = ManualPositionFeed() if args.walk else None

    print(f"Watching {config.storage_path} every {config.poll_interval_ms} ms as {args.email or '<nobody>'}")
    async with PeerMapSession(config, feed=feed, identity=identity, on_snapshot=_print_snapshot) as session:
        walker: asyncio.Task[None] | None = None
        if feed is not None:
            walker = asyncio.create_task(_walk(feed, args.start, config.feed_time_interval_ms / 1000))
        try:
            if args.duration is not None:
                await asyncio.sleep(args.duration)
            else:
                await asyncio.Event().wait()
        finally:
            if walker is not None:
                walker.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await walker
            if args.sign_out:
                await session.sign_out()
            if session.bridge is not None and session.bridge.error is not None:
                print(f"Position feed failed: {session.bridge.error}", file=sys.stderr)


if __name__ == "__main__":
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(main())
