from __future__ import annotations

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional

from app.domain.models import DividendEvent

log = logging.getLogger(__name__)

AMOUNT_DECIMALS = 4

# epoch seconds for 1900-01-01 and 2200-01-01 UTC; millisecond stamps fall outside
MIN_TIMESTAMP = -2208988800
MAX_TIMESTAMP = 7258118400


def _parse_timestamp(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return None
    ts = int(value)
    if not MIN_TIMESTAMP <= ts < MAX_TIMESTAMP:
        return None
    return ts


def _parse_amount(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    # every downstream comparison works on the rounded value
    amount = round(float(value), AMOUNT_DECIMALS)
    return amount if amount > 0 else None


def _iter_pairs(raw: Any) -> Iterable[tuple]:
    """
    Accepts the shapes the chart endpoint and callers hand us:
      - {"1700000000": {"amount": 0.24, "date": 1700000000}, ...}
      - {1700000000: 0.24, ...}
      - [{"date": 1700000000, "amount": 0.24}, ...]  ("timestamp" also accepted)
    """
    if isinstance(raw, Mapping):
        for key, value in raw.items():
            if isinstance(value, Mapping):
                ts = value.get("date", value.get("timestamp", key))
                yield ts, value.get("amount")
            else:
                yield key, value
        return

    for item in raw:
        if isinstance(item, Mapping):
            yield item.get("date", item.get("timestamp")), item.get("amount")
        elif isinstance(item, DividendEvent):
            yield item.timestamp, item.amount


def extract_dividend_events(raw: Any) -> List[DividendEvent]:
    """
    Turn a raw provider dividend payload into a chronological (oldest-first) ledger.

    Non-positive, non-numeric and non-finite amounts are dropped, as are entries
    without a usable timestamp. No date-level dedup: the provider's event
    identity is trusted.
    """
    if not raw:
        return []

    events: List[DividendEvent] = []
    dropped = 0
    for ts_raw, amount_raw in _iter_pairs(raw):
        ts = _parse_timestamp(ts_raw)
        amount = _parse_amount(amount_raw)
        if ts is None or amount is None:
            dropped += 1
            continue
        events.append(DividendEvent(timestamp=ts, amount=amount))

    if dropped:
        log.debug("dropped %s unusable dividend entries", dropped)

    events.sort(key=lambda e: e.timestamp)
    return events
