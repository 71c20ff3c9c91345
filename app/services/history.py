from __future__ import annotations

import logging
import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, List, Optional, Sequence

from app.domain.models import DividendEvent, EnrichedHistoryRecord
from app.services.cadence import SECONDS_PER_DAY, detect_cadence, expected_payments, lower_median

log = logging.getLogger(__name__)

# |change| below this many percentage points is treated as "unchanged"
CHANGE_SNAP_THRESHOLD = 0.1
# a drop of at least 50% versus the prior payment is a cut
CUT_THRESHOLD_PCT = -50.0
# amount >= 1.5x the ledger median is a special dividend
SPECIAL_MULTIPLIER = 1.5
# a calendar summary claiming a longer ex-to-pay gap than this is bogus
MAX_PAY_LAG_DAYS = 366

REMARK_SPECIAL = "Special dividend"
REMARK_CUT = "Dividend cut"


def _utc_date(ts: int) -> date:
    return datetime.fromtimestamp(ts, tz=timezone.utc).date()


def quarter_label(d: date) -> str:
    return f"Q{(d.month - 1) // 3 + 1}"


def compute_pay_lag_days(ex_dividend_ts: Any, dividend_ts: Any) -> int:
    """
    Days between the calendar summary's ex-dividend date and dividend (pay) date.
    0 when either is missing or the pay date is not after the ex date.
    """
    if isinstance(ex_dividend_ts, bool) or isinstance(dividend_ts, bool):
        return 0
    if not isinstance(ex_dividend_ts, (int, float)) or not isinstance(dividend_ts, (int, float)):
        return 0
    if not math.isfinite(ex_dividend_ts) or not math.isfinite(dividend_ts):
        return 0
    if dividend_ts <= ex_dividend_ts:
        return 0
    lag = int(round((dividend_ts - ex_dividend_ts) / SECONDS_PER_DAY))
    if lag > MAX_PAY_LAG_DAYS:
        log.warning("ignoring implausible pay lag of %s days", lag)
        return 0
    return lag


def raw_change_percent(current: float, previous: Optional[float]) -> float:
    if not previous or previous <= 0:
        return 0.0
    return (current - previous) / previous * 100.0


def change_percent(current: float, previous: Optional[float]) -> float:
    """Display value: snapped to 0 near zero, else rounded to 4 places."""
    raw = raw_change_percent(current, previous)
    if abs(raw) < CHANGE_SNAP_THRESHOLD:
        return 0.0
    return round(raw, 4)


def special_threshold(events: Sequence[DividendEvent]) -> float:
    """0 means the special-dividend rule is disengaged."""
    median = lower_median(e.amount for e in events if e.amount > 0)
    if median <= 0:
        return 0.0
    return median * SPECIAL_MULTIPLIER


def enrich_history(
    events: Sequence[DividendEvent],
    *,
    pay_lag_days: int = 0,
    cadence: Optional[str] = None,
) -> List[EnrichedHistoryRecord]:
    """
    Walk the ledger oldest-first so every delta is taken against the older
    neighbour, then hand the records back newest-first for display.

    A record right after a special payout is never a cut: falling back to the
    regular amount is not a reduction.
    """
    chronological = sorted(events, key=lambda e: e.timestamp)
    if not chronological:
        return []

    cadence = cadence or detect_cadence(chronological)
    threshold = special_threshold(chronological)

    records: List[EnrichedHistoryRecord] = []
    prev: Optional[DividendEvent] = None
    for event in chronological:
        ex = _utc_date(event.timestamp)
        prev_amount = prev.amount if prev else None
        raw_pct = raw_change_percent(event.amount, prev_amount)
        is_special = threshold > 0 and event.amount >= threshold
        prev_special = prev is not None and threshold > 0 and prev.amount >= threshold
        is_cut = not prev_special and raw_pct <= CUT_THRESHOLD_PCT

        remark = ""
        if is_special:
            remark = REMARK_SPECIAL
        elif is_cut:
            remark = REMARK_CUT

        records.append(
            EnrichedHistoryRecord(
                year=ex.year,
                quarter=quarter_label(ex),
                amount=event.amount,
                ex_date=ex.isoformat(),
                pay_date=(ex + timedelta(days=pay_lag_days)).isoformat() if pay_lag_days > 0 else "",
                change_percent=change_percent(event.amount, prev_amount),
                is_special=is_special,
                is_cut=is_cut,
                cadence=cadence,
                remark=remark,
                timestamp=event.timestamp,
            )
        )
        prev = event

    records.reverse()
    return records


def forward_yield(record: EnrichedHistoryRecord, current_price: float) -> float:
    """Annualised yield implied by a single payment at today's price, in percent."""
    per_year = expected_payments(record.cadence)
    if current_price <= 0 or per_year <= 0:
        return 0.0
    return record.amount * per_year / current_price * 100.0
