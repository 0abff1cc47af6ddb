"""
Terminal Renderer

Formats an EngineSnapshot as a plain-text dashboard. Reads only; never
touches engine state.
"""

import math
from datetime import datetime, timezone
from typing import List, Optional

from .models import EngineSnapshot

MISSING = "—"

VENUE_NAMES = {
    "binance_futures": "BINANCE",
    "hyperliquid": "HYPERLIQUID",
    "meteora": "METEORA",
}

DISLOCATION_NAMES = {
    "meteora_vs_binance_futures": "METEORA vs BINANCE",
    "meteora_vs_hyperliquid": "METEORA vs HL",
}


def _finite(x) -> bool:
    return isinstance(x, (int, float)) and math.isfinite(x)


def fmt_num(x: Optional[float], dp: int = 2) -> str:
    if not _finite(x):
        return MISSING
    return f"{x:,.{dp}f}"


def fmt_usd(x: Optional[float], dp: int = 2) -> str:
    if not _finite(x):
        return MISSING
    sign = "-" if x < 0 else ""
    return f"{sign}${abs(x):,.{dp}f}"


def fmt_bps(x: Optional[float]) -> str:
    if not _finite(x):
        return MISSING
    return ("+" if x > 0 else "") + fmt_num(x, 2)


def fmt_pct(x: Optional[float], dp: int = 2) -> str:
    if not _finite(x):
        return MISSING
    return ("+" if x > 0 else "") + fmt_num(x, dp) + "%"


def age_text(age_ms: Optional[int]) -> str:
    if age_ms is None:
        return MISSING
    return f"{max(0, age_ms // 1000)}s"


def time_label(ms: Optional[int], utc: bool = False) -> str:
    """HH:MM:SS of an epoch-ms timestamp (local time unless utc)."""
    if not ms:
        return MISSING
    tz = timezone.utc if utc else None
    return datetime.fromtimestamp(ms / 1000, tz=tz).strftime("%H:%M:%S")


def render_snapshot(snap: EngineSnapshot) -> str:
    """Full dashboard as one multi-line string."""
    lines: List[str] = []
    bar = "=" * 64

    # Header
    lines.append(bar)
    updated = f"{age_text(snap.taken_ms - snap.last_tick_ms)} ago" if snap.last_tick_ms else "--"
    lines.append(
        f"GOLD BASIS TERMINAL   {snap.status:<8} updated {updated}   "
        f"{time_label(snap.taken_ms, utc=True)} UTC"
    )
    change = fmt_num(snap.header_change) if snap.header_change is not None else "--.--"
    if snap.header_change is not None and snap.header_change > 0:
        change = "+" + change
    pct = fmt_pct(snap.header_change_pct) if snap.header_change_pct is not None else "--.--%"
    lines.append(f"XAU/USD (PYTH)  {fmt_usd(snap.reference_price)}  {change} ({pct})")
    lines.append(bar)

    # Snapshot table
    lines.append(f"{'VENUE':<14}{'MID':>14}{'BASIS $':>12}{'BASIS BPS':>12}")
    for venue, basis in snap.basis.items():
        view = snap.feeds.get(venue)
        mid = view.price if view else None
        lines.append(
            f"{VENUE_NAMES.get(venue, venue.upper()):<14}{fmt_usd(mid):>14}"
            f"{fmt_usd(basis.basis_usd):>12}{fmt_bps(basis.basis_bps):>12}"
        )
    funding = fmt_pct(snap.funding_rate * 100, 4) if _finite(snap.funding_rate) else MISSING
    lines.append(
        f"Funding {funding}  APY {fmt_pct(snap.funding_apy_pct)}  "
        f"next {time_label(snap.next_funding_time_ms)}"
    )

    # Dislocations
    if snap.dislocations:
        lines.append("")
        for key, d in snap.dislocations.items():
            lines.append(
                f"{DISLOCATION_NAMES.get(key, key):<22}{fmt_usd(d.basis_usd):>12}{fmt_bps(d.basis_bps):>12}"
            )

    # Conversion
    spot = snap.feeds.get("binance_spot")
    futures = snap.feeds.get("binance_futures")
    lines.append("")
    lines.append(
        f"XAU/USDT {fmt_usd(futures.price if futures else None)}   "
        f"USDC/USDT {fmt_num(spot.price if spot else None, 6)}   "
        f"XAU/USDC {fmt_usd(snap.implied_xau_usdc)}"
    )

    # Diagnostics
    lines.append("")
    lines.append(f"{'FEED':<14}{'STATUS':<8}{'AGE':>6}{'LAT':>9}  ERROR")
    for view in snap.feeds.values():
        latency = f"{view.latency_ms}ms" if view.latency_ms else MISSING
        error = view.error[:80] if view.error else MISSING
        lines.append(f"{view.label:<14}{view.status:<8}{age_text(view.age_ms):>6}{latency:>9}  {error}")

    # Series summary
    lines.append("")
    lines.append(
        f"samples {len(snap.samples)}  window {snap.window_ms // 60000}m  "
        f"refresh {snap.refresh_ms / 1000:g}s  unit {snap.unit}"
    )
    if snap.error_text:
        lines.append(snap.error_text)
    lines.append(bar)

    return "\n".join(lines)


def print_snapshot(snap: EngineSnapshot, clear: bool = False):
    """Print the dashboard, optionally clearing the terminal first."""
    if clear:
        print("\033[2J\033[H", end="")
    print(render_snapshot(snap), flush=True)
