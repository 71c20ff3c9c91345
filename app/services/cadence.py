from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, TypeVar

SECONDS_PER_DAY = 86400

MONTHLY_MAX_DAYS = 45
QUARTERLY_MAX_DAYS = 120
SEMIANNUAL_MAX_DAYS = 210

DEFAULT_CADENCE = "annual"

EXPECTED_PAYMENTS_PER_YEAR: Dict[str, int] = {
    "monthly": 12,
    "quarterly": 4,
    "semiannual": 2,
    "annual": 1,
}

T = TypeVar("T", int, float)


def lower_median(values: Iterable[T]) -> T:
    """
    Middle element of the sorted values; for an even count, the lower of the two
    middle elements (never their average). Empty input returns 0.
    """
    ordered: List[T] = sorted(values)
    if not ordered:
        return 0
    return ordered[(len(ordered) - 1) // 2]


def interval_days(events: Sequence) -> List[int]:
    """
    Whole-day gaps between consecutive events in chronological order.
    Gaps of zero days (or less) are left out rather than counted as zero.
    """
    stamps = sorted(int(e.timestamp) for e in events)
    gaps: List[int] = []
    for prev, cur in zip(stamps, stamps[1:]):
        days = max(0, (cur - prev) // SECONDS_PER_DAY)
        if days > 0:
            gaps.append(days)
    return gaps


def classify_interval(days: float) -> str:
    if days <= MONTHLY_MAX_DAYS:
        return "monthly"
    if days <= QUARTERLY_MAX_DAYS:
        return "quarterly"
    if days <= SEMIANNUAL_MAX_DAYS:
        return "semiannual"
    return "annual"


def detect_cadence(events: Sequence) -> str:
    """
    One cadence for the whole ledger, from the median gap between payments.
    Anything without a usable gap (a single event, same-day duplicates) is annual.
    """
    gaps = interval_days(events)
    if not gaps:
        return DEFAULT_CADENCE
    return classify_interval(lower_median(gaps))


def expected_payments(cadence: str) -> int:
    return EXPECTED_PAYMENTS_PER_YEAR.get(cadence, 0)
