"""
Basis Calculator

Pure functions for venue-vs-reference basis, funding yield and the
derived numbers shown next to the basis table:
- Basis in USD and basis points
- Annualized funding yield from a periodic rate
- Venue-vs-venue dislocation
- Implied cross rate (XAU/USDC from XAU/USDT and USDC/USDT)

None of these raise. Missing or non-finite inputs, a zero denominator and
overflow all produce None.
"""

import math
from typing import Optional, Tuple

from .config import FundingConfig


def _finite(x) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool) and math.isfinite(x)


def _guard(result: float) -> Optional[float]:
    return result if math.isfinite(result) else None


def basis_usd(venue_price: Optional[float], reference_price: Optional[float]) -> Optional[float]:
    """Venue price minus reference price."""
    if not _finite(venue_price) or not _finite(reference_price) or reference_price == 0:
        return None
    return _guard(venue_price - reference_price)


def basis_bps(venue_price: Optional[float], reference_price: Optional[float]) -> Optional[float]:
    """Deviation of venue from reference in basis points."""
    if not _finite(venue_price) or not _finite(reference_price) or reference_price == 0:
        return None
    return _guard((venue_price / reference_price - 1) * 10000)


def funding_apy_pct(
    periodic_rate: Optional[float],
    periods_per_year: int = FundingConfig.PERIODS_PER_YEAR,
) -> Optional[float]:
    """
    Compound a periodic funding rate into an annual yield, in percent.

    An 8-hour funding interval pays 3x per day, so periods_per_year = 1095.
    """
    if not _finite(periodic_rate):
        return None
    try:
        return _guard(((1 + periodic_rate) ** periods_per_year - 1) * 100)
    except OverflowError:
        return None


def dislocation_usd(venue_a: Optional[float], venue_b: Optional[float]) -> Optional[float]:
    """Venue A minus venue B."""
    return basis_usd(venue_a, venue_b)


def dislocation_bps(venue_a: Optional[float], venue_b: Optional[float]) -> Optional[float]:
    """Venue A against venue B in basis points (B is the denominator)."""
    return basis_bps(venue_a, venue_b)


def implied_cross_rate(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    """
    Cross rate through a common quote currency.

    XAU/USDC = (XAU/USDT) / (USDC/USDT). Requires a positive denominator.
    """
    if not _finite(numerator) or not _finite(denominator) or denominator <= 0:
        return None
    return _guard(numerator / denominator)


def price_change(
    first: Optional[float],
    last: Optional[float],
) -> Tuple[Optional[float], Optional[float]]:
    """
    Absolute and percentage change from first to last.

    Returns (None, None) if either end is missing; the percentage alone is
    None when first is zero.
    """
    if not _finite(first) or not _finite(last):
        return None, None
    change = last - first
    if first == 0:
        return _guard(change), None
    return _guard(change), _guard(change / first * 100)
