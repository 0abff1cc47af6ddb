#!/usr/bin/env python3
"""
Gold Basis Alert

Runs the basis engine and prints an alert whenever a venue's basis
against the Pyth oracle exceeds a threshold in basis points. Quiet status
line otherwise.

Usage:
    python examples/basis_alert.py
    python examples/basis_alert.py --threshold 15 --refresh 10000
"""

import argparse
import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from goldbasis import BasisEngine, EngineConfig
from goldbasis.display import VENUE_NAMES, fmt_bps, fmt_usd


def check_alerts(engine: BasisEngine, threshold_bps: float, state: dict):
    """Render callback: alert on wide basis, status line otherwise."""
    snap = engine.snapshot()
    ts = datetime.now(timezone.utc).strftime("%H:%M:%S")

    wide = {
        venue: b for venue, b in snap.basis.items()
        if b.basis_bps is not None and abs(b.basis_bps) > threshold_bps
    }

    if wide:
        for venue, b in wide.items():
            state["alerts"] += 1
            print(
                f"\n[{ts}] ALERT #{state['alerts']} | {VENUE_NAMES.get(venue, venue):>11} "
                f"basis {fmt_usd(b.basis_usd)} ({fmt_bps(b.basis_bps)} bps) "
                f"vs PYTH {fmt_usd(snap.reference_price)}"
            )
    else:
        print(
            f"\r[{ts}] {snap.status:<7} | PYTH {fmt_usd(snap.reference_price)} | "
            f"alerts={state['alerts']}",
            end="", flush=True,
        )


async def run_alerts(threshold_bps: float, refresh_ms: int):
    engine = BasisEngine(EngineConfig(refresh_ms=refresh_ms))
    state = {"alerts": 0}
    engine.subscribe(lambda e: check_alerts(e, threshold_bps, state))
    engine.start()
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await engine.stop()


def main():
    parser = argparse.ArgumentParser(
        description="Alert on wide gold basis against the Pyth oracle"
    )
    parser.add_argument(
        "--threshold", type=float, default=10.0,
        help="Basis threshold in bps. Default: 10"
    )
    parser.add_argument(
        "--refresh", type=int, default=5000,
        help="Poll cadence in ms. Default: 5000"
    )
    args = parser.parse_args()

    print(f"Gold Basis Alert - threshold {args.threshold:.1f} bps")
    try:
        asyncio.run(run_alerts(args.threshold, args.refresh))
    except KeyboardInterrupt:
        print("\n\nStopping.")


if __name__ == "__main__":
    main()
