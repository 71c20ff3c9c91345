from __future__ import annotations

from typing import Any

from app.services.quote_normalizer import to_number


def estimate_payout_ratio(
    annual_dividend: Any,
    trailing_eps: Any = None,
    price: Any = None,
    trailing_pe: Any = None,
) -> float:
    """
    Payout ratio in percent. EPS-based when EPS > 0, otherwise derived from
    price and P/E. The first method that yields a non-zero value wins.
    """
    dividend = to_number(annual_dividend)
    eps = to_number(trailing_eps)
    px = to_number(price)
    pe = to_number(trailing_pe)

    from_eps = dividend / eps * 100.0 if eps > 0 else 0.0
    if from_eps:
        return from_eps

    from_pe = dividend / px * pe * 100.0 if pe > 0 and px > 0 else 0.0
    return from_pe or 0.0
