from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Sequence

from app.domain.models import EnrichedHistoryRecord

EX_DIVIDEND = "ex-dividend"
PAYMENT = "payment"
_KIND_ORDER = (EX_DIVIDEND, PAYMENT)


@dataclass
class CalendarStockLine:
    symbol: str
    name: str
    amount: float          # per share
    shares: float = 0.0
    expected_cash: float = 0.0


@dataclass
class CalendarEntry:
    date: str
    kind: str
    stocks: List[CalendarStockLine] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _field(holding: Any, name: str, default: Any = None) -> Any:
    if isinstance(holding, Mapping):
        return holding.get(name, default)
    return getattr(holding, name, default)


class CalendarIndex:
    """
    Date-keyed calendar. One entry per (date, kind); several symbols on the same
    day and kind share that entry.
    """

    def __init__(self) -> None:
        self._by_date: Dict[str, Dict[str, CalendarEntry]] = {}

    def add(self, day: str, kind: str, line: CalendarStockLine) -> None:
        kinds = self._by_date.setdefault(day, {})
        entry = kinds.get(kind)
        if entry is None:
            entry = CalendarEntry(date=day, kind=kind)
            kinds[kind] = entry
        entry.stocks.append(line)

    def events_on(self, day: date | str) -> List[CalendarEntry]:
        key = day.isoformat() if isinstance(day, date) else day
        kinds = self._by_date.get(key)
        if not kinds:
            return []
        return [kinds[k] for k in _KIND_ORDER if k in kinds]

    def dates(self) -> List[str]:
        return sorted(self._by_date)

    def month_view(self, year: int, month: int) -> Dict[str, List[CalendarEntry]]:
        prefix = f"{year:04d}-{month:02d}-"
        return {d: self.events_on(d) for d in self.dates() if d.startswith(prefix)}

    def __len__(self) -> int:
        return sum(len(kinds) for kinds in self._by_date.values())


def build_calendar(
    histories: Mapping[str, Sequence[EnrichedHistoryRecord]],
    holdings: Iterable[Any],
) -> CalendarIndex:
    """
    Project each held symbol's ledger onto the calendar: every record lands on
    its ex-date, and on its pay date when one could be estimated.
    Holdings without a ledger contribute nothing.
    """
    index = CalendarIndex()
    for h in holdings:
        symbol = str(_field(h, "symbol") or "").upper()
        records = histories.get(symbol) or []
        if not records:
            continue
        name = _field(h, "name") or symbol
        shares = float(_field(h, "shares", 0.0) or 0.0)

        for r in records:
            cash = round(r.amount * shares, 4)
            index.add(r.ex_date, EX_DIVIDEND, CalendarStockLine(symbol, name, r.amount, shares, cash))
            if r.pay_date:
                index.add(r.pay_date, PAYMENT, CalendarStockLine(symbol, name, r.amount, shares, cash))
    return index
