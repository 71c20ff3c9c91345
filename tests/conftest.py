from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.domain.errors import UpstreamFailure, UpstreamUnavailable
from app.infra.db import Base
import app.infra.models  # noqa: F401


def ts(y: int, m: int, d: int) -> int:
    return int(datetime(y, m, d, tzinfo=timezone.utc).timestamp())


class FakeProvider:
    """In-memory stand-in for YahooClient."""

    def __init__(
        self,
        quotes: Optional[Dict[str, Dict[str, Any]]] = None,
        search: Optional[List[Dict[str, str]]] = None,
        calendar: Optional[Dict[str, Dict[str, Any]]] = None,
        series: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        fail: Sequence[str] = (),
    ) -> None:
        self.quotes = quotes or {}
        self.search = search or []
        self.calendar = calendar or {}
        self.series = series or {}
        self.fail = set(fail)
        self.calls: List[str] = []

    def _maybe_fail(self, op: str) -> None:
        self.calls.append(op)
        if op in self.fail:
            raise UpstreamUnavailable(op, UpstreamFailure(url=f"https://mirror/{op}", status=503, status_text="Service Unavailable", body="down"))

    def search_symbols(self, query: str) -> List[Dict[str, str]]:
        self._maybe_fail("search")
        return list(self.search)

    def get_quotes(self, symbols: Sequence[str]) -> List[Dict[str, Any]]:
        self._maybe_fail("quote")
        return [self.quotes[s] for s in symbols if s in self.quotes]

    def get_calendar_events(self, symbol: str) -> Dict[str, Any]:
        self._maybe_fail("calendar")
        return self.calendar.get(symbol, {})

    def get_dividend_series(self, symbol: str, range_: Optional[str] = None) -> List[Dict[str, Any]]:
        self._maybe_fail("chart")
        return self.series.get(symbol, [])


def quarterly_series(start_year: int, years: int, amount: float) -> List[Dict[str, Any]]:
    out = []
    for y in range(start_year, start_year + years):
        for m in (2, 5, 8, 11):
            out.append({"timestamp": ts(y, m, 10), "amount": amount})
    return out


@pytest.fixture
def apple_provider() -> FakeProvider:
    quotes = {
        "AAPL": {
            "symbol": "AAPL",
            "shortName": "Apple Inc.",
            "longName": "Apple Inc.",
            "regularMarketPrice": 200.0,
            "dividendYield": 0.005,
            "dividendRate": 1.0,
            "marketCap": 3.1e12,
            "trailingEps": 6.25,
            "trailingPE": 32.0,
            "fiftyTwoWeekHigh": 237.0,
            "fiftyTwoWeekLow": 164.0,
        },
        "APLE": {"symbol": "APLE", "shortName": "Apple Hospitality", "regularMarketPrice": 14.0, "dividendYield": 6.8},
    }
    search = [
        {"symbol": "AAPL", "display_name": "Apple Inc.", "instrument_type": "EQUITY"},
        {"symbol": "APLE", "display_name": "Apple Hospitality", "instrument_type": "EQUITY"},
    ]
    series = quarterly_series(2022, 2, 0.24) + quarterly_series(2024, 1, 0.25)
    calendar = {"AAPL": {"ex_dividend_date": ts(2024, 11, 8), "dividend_date": ts(2024, 11, 14)}}
    return FakeProvider(quotes=quotes, search=search, calendar=calendar, series={"AAPL": series})


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    db = Session()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()
