from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class DividendEvent:
    timestamp: int  # seconds since epoch, UTC (ex-dividend date)
    amount: float   # rounded to 4 places, always > 0


@dataclass(frozen=True)
class CanonicalStock:
    symbol: str
    name: str
    current_price: float = 0.0
    dividend_yield: float = 0.0  # percent
    annual_dividend: float = 0.0
    quarterly_dividend: float = 0.0
    payout_ratio: float = 0.0
    dividend_growth_rate: float = 0.0
    market_cap: str = "N/A"
    pe_ratio: float = 0.0
    fifty_two_week_high: float = 0.0
    fifty_two_week_low: float = 0.0
    sector: str = "Other"
    ex_dividend_date: str = ""
    payment_date: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EnrichedHistoryRecord:
    year: int
    quarter: str
    amount: float
    ex_date: str   # YYYY-MM-DD
    pay_date: str  # YYYY-MM-DD or ""
    change_percent: float
    is_special: bool
    is_cut: bool
    cadence: str = "annual"
    remark: str = ""
    timestamp: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class YearlyTotal:
    year: int
    total: float
    count: int = 0


@dataclass
class CoverageNote:
    kind: str  # "incomplete_year" | "rate_change" | "none"
    year: Optional[int] = None
    expected_count: int = 0
    actual_count: int = 0
    missing_months: List[int] = field(default_factory=list)
    not_yet_published: int = 0


@dataclass
class HistorySummary:
    cadence: str
    yearly_totals: List[YearlyTotal]
    dividend_growth_rate: float
    latest_year: Optional[int]
    prior_year: Optional[int]
    note: CoverageNote
    has_cuts: bool = False
    increases: int = 0
    chart: List[YearlyTotal] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class StockDetail:
    stock: CanonicalStock
    history: List[EnrichedHistoryRecord]
    summary: HistorySummary

    @property
    def cadence(self) -> str:
        return self.summary.cadence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stock": self.stock.to_dict(),
            "history": [r.to_dict() for r in self.history],
            "cadence": self.cadence,
            "summary": self.summary.to_dict(),
        }
