from __future__ import annotations

import math
from typing import Any, Mapping, Optional

from app.domain.models import CanonicalStock

DEFAULT_SECTOR = "Other"
MARKET_CAP_NA = "N/A"


def to_number(value: Any, fallback: float = 0.0) -> float:
    """
    Provider fields are untrusted: anything that is not a finite int/float
    (including bools, strings, None) collapses to ``fallback``.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    if not math.isfinite(value):
        return fallback
    return float(value)


def to_percent(value: Any) -> float:
    """
    Yahoo reports dividendYield either as a fraction (0.045) or as a percent (4.5).
    Values <= 1 are read as fractions, so a real 0.8% yield reported on the
    percent scale comes out as 80%. Kept as-is for compatibility.
    """
    v = to_number(value, fallback=math.nan)
    if math.isnan(v):
        return 0.0
    return v * 100.0 if v <= 1 else v


def format_market_cap(value: Any) -> str:
    v = to_number(value)
    if v <= 0:
        return MARKET_CAP_NA
    if v >= 1e12:
        return f"{v / 1e12:.2f}T"
    if v >= 1e9:
        return f"{v / 1e9:.2f}B"
    if v >= 1e6:
        return f"{v / 1e6:.2f}M"
    return f"{v:.0f}"


def quarterly_dividend(annual_dividend: float) -> float:
    # display convenience only, not cadence-aware
    if not annual_dividend:
        return 0.0
    return round(annual_dividend / 4.0, 4)


def resolve_name(raw: Mapping[str, Any], symbol: str) -> str:
    for key in ("longName", "shortName"):
        name = raw.get(key)
        if isinstance(name, str) and name.strip():
            return name.strip()
    return symbol


def normalize_symbol(symbol: Optional[str]) -> str:
    if not isinstance(symbol, str):
        return ""
    return symbol.strip().upper()


def normalize_quote(
    raw: Optional[Mapping[str, Any]],
    *,
    symbol: Optional[str] = None,
    payout_ratio: float = 0.0,
    dividend_growth_rate: float = 0.0,
) -> CanonicalStock:
    """
    Build a CanonicalStock from a raw provider quote. Never raises on missing
    fields; absent numerics become 0 and an absent market cap becomes "N/A".
    """
    raw = raw or {}
    sym = normalize_symbol(raw.get("symbol")) or normalize_symbol(symbol)
    annual = to_number(raw.get("dividendRate"))

    return CanonicalStock(
        symbol=sym,
        name=resolve_name(raw, sym),
        current_price=to_number(raw.get("regularMarketPrice")),
        dividend_yield=to_percent(raw.get("dividendYield")),
        annual_dividend=annual,
        quarterly_dividend=quarterly_dividend(annual),
        payout_ratio=to_number(payout_ratio),
        dividend_growth_rate=to_number(dividend_growth_rate),
        market_cap=format_market_cap(raw.get("marketCap")),
        pe_ratio=to_number(raw.get("trailingPE")),
        fifty_two_week_high=to_number(raw.get("fiftyTwoWeekHigh")),
        fifty_two_week_low=to_number(raw.get("fiftyTwoWeekLow")),
        sector=DEFAULT_SECTOR,
    )
