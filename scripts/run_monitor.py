#!/usr/bin/env python3
"""Run the fleet alert engine against stored (or freshly synced) data.

Loads trucks, drivers and trips from the storage directory, optionally
syncs them from the CRUD backend, then keeps the alert engine running and
prints every alert as it is emitted.

Usage
-----
::

    export FLEET_STORAGE_DIR=./fleet-data
    export FLEET_API_URL=http://localhost:8000
    python scripts/run_monitor.py --sync

Options::

    --sync               Pull collections from the backend before starting
    --once               Run a single sweep and exit
    --interval SECONDS   Override the periodic sweep interval
    -v, --verbose        Enable DEBUG logging
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from fleetwatch import AlertEvent, Fleet, FleetApiClient, FleetConfig, FleetError  # noqa: E402


def _print_alert(event: AlertEvent) -> None:
    stamp = event.generated_at.strftime("%Y-%m-%d %H:%M:%S")
    print(f"[{stamp}] {event.title}: {event.message} ({event.url})", flush=True)


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, float] = {}
    if args.interval is not None:
        overrides["sweep_interval"] = args.interval
    config = FleetConfig.from_env(**overrides)
    fleet = Fleet.open(config, on_alert=_print_alert)

    if args.sync:
        try:
            async with FleetApiClient(config) as client:
                await fleet.sync_from_api(client)
        except FleetError as exc:
            print(f"Sync failed: {exc}", file=sys.stderr)
            return 1

    store = fleet.store
    print(f"Monitoring {len(store.trucks)} trucks, {len(store.drivers)} drivers, {len(store.trips)} trips")

    if args.once:
        emitted = fleet.engine.run_sweep()
        print(f"{len(emitted)} alert(s), {fleet.notifications.unread_count} unread notification(s)")
        return 0

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            pass

    async with fleet:
        await stop.wait()
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the fleet alert engine")
    parser.add_argument("--sync", action="store_true", help="Sync collections from the backend first")
    parser.add_argument("--once", action="store_true", help="Run a single sweep and exit")
    parser.add_argument("--interval", type=float, default=None, help="Periodic sweep interval in seconds")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        sys.exit(asyncio.run(_run(args)))
    except FleetError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
