#!/usr/bin/env python3
"""
Gold Basis Terminal (console)

Polls every feed on the configured cadence and repaints the dashboard on
each tick and once per second.

Usage:
    python -m goldbasis
    python -m goldbasis --refresh 10000 --window 900000 --unit bps
    python -m goldbasis --once
"""

import argparse
import asyncio
import logging
import time
from typing import Optional

from .config import REFRESH_CHOICES_MS, UNITS, WINDOW_CHOICES_MS, EngineConfig
from .display import print_snapshot
from .engine import BasisEngine

logger = logging.getLogger("goldbasis")

REPAINT_INTERVAL_SEC = 1.0


async def run_terminal(engine: BasisEngine, duration: Optional[float] = None, clear: bool = True):
    """Run the engine and repaint until cancelled or `duration` seconds pass."""
    repaint = asyncio.Event()
    engine.subscribe(lambda _engine: repaint.set())
    engine.start()

    started = time.monotonic()
    try:
        while duration is None or time.monotonic() - started < duration:
            try:
                await asyncio.wait_for(repaint.wait(), timeout=REPAINT_INTERVAL_SEC)
            except asyncio.TimeoutError:
                pass
            repaint.clear()
            print_snapshot(engine.snapshot(), clear=clear)
    finally:
        await engine.stop()


async def run_once(engine: BasisEngine):
    """Single tick, single print."""
    await engine.tick()
    print_snapshot(engine.snapshot())


def build_config(args: argparse.Namespace) -> EngineConfig:
    """Environment (and .env) first, then command-line overrides."""
    config = EngineConfig.from_env(args.env_file)
    return EngineConfig(
        refresh_ms=args.refresh if args.refresh is not None else config.refresh_ms,
        window_ms=args.window if args.window is not None else config.window_ms,
        stale_ms=args.stale if args.stale is not None else config.stale_ms,
        unit=args.unit if args.unit is not None else config.unit,
        http_timeout_sec=config.http_timeout_sec,
        log_level=args.log_level or config.log_level,
    )


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Live gold basis terminal (Pyth vs Binance, Hyperliquid, Meteora)"
    )
    parser.add_argument(
        "--refresh", type=int, default=None,
        help=f"Poll cadence in ms (dashboard choices: {', '.join(map(str, REFRESH_CHOICES_MS))}). Default: 5000"
    )
    parser.add_argument(
        "--window", type=int, default=None,
        help=f"Rolling window in ms (dashboard choices: {', '.join(map(str, WINDOW_CHOICES_MS))}). Default: 3600000"
    )
    parser.add_argument(
        "--stale", type=int, default=None,
        help="Staleness threshold in ms. Default: 30000"
    )
    parser.add_argument(
        "--unit", choices=UNITS, default=None,
        help="Basis unit for the series. Default: usd"
    )
    parser.add_argument(
        "--duration", type=float, default=None,
        help="Stop after this many seconds. Default: run until Ctrl-C"
    )
    parser.add_argument(
        "--once", action="store_true",
        help="Poll once, print the snapshot and exit"
    )
    parser.add_argument(
        "--no-clear", action="store_true",
        help="Do not clear the terminal between repaints"
    )
    parser.add_argument("--env-file", default=None, help="Path to a .env file")
    parser.add_argument("--log-level", default=None, help="Logging level. Default: INFO")
    args = parser.parse_args(argv)

    config = build_config(args)
    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = BasisEngine(config)
    try:
        if args.once:
            asyncio.run(run_once(engine))
        else:
            asyncio.run(run_terminal(engine, duration=args.duration, clear=not args.no_clear))
    except KeyboardInterrupt:
        print("\nStopping...")


if __name__ == "__main__":
    main()
