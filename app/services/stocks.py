from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Any, Dict, List, Optional, Protocol, Sequence

from app.domain.errors import InvalidInput, NotFound
from app.domain.models import CanonicalStock, DividendEvent, EnrichedHistoryRecord, StockDetail
from app.services.aggregates import summarize_history
from app.services.cadence import detect_cadence
from app.services.dividend_events import extract_dividend_events
from app.services.history import compute_pay_lag_days, enrich_history, forward_yield
from app.services.payout import estimate_payout_ratio
from app.services.quote_normalizer import normalize_quote, normalize_symbol

log = logging.getLogger(__name__)

SEARCH_LIMIT = 5


class QuoteProvider(Protocol):
    def search_symbols(self, query: str) -> List[Dict[str, str]]: ...

    def get_quotes(self, symbols: Sequence[str]) -> List[Dict[str, Any]]: ...

    def get_calendar_events(self, symbol: str) -> Dict[str, Optional[int]]: ...

    def get_dividend_series(self, symbol: str, range_: Optional[str] = None) -> List[Dict[str, Any]]: ...


# ---------- search ----------


def search_stocks(provider: QuoteProvider, query: Optional[str]) -> List[CanonicalStock]:
    """
    Free-text search -> up to SEARCH_LIMIT canonical stocks.
    Search and quote lookups are load-bearing: their failures propagate.
    """
    q = (query or "").strip()
    if not q:
        raise InvalidInput("query is required")

    matches = [m for m in provider.search_symbols(q) if m.get("symbol")][:SEARCH_LIMIT]
    if not matches:
        return []

    quotes = provider.get_quotes([m["symbol"] for m in matches])
    stocks = [normalize_quote(item) for item in quotes if item.get("symbol")]
    return stocks[:SEARCH_LIMIT]


# ---------- non-critical enrichment (degrades, never raises) ----------


def load_pay_lag_days(provider: QuoteProvider, symbol: str) -> int:
    try:
        cal = provider.get_calendar_events(symbol)
    except Exception as e:
        log.warning("calendar summary unavailable for %s: %s", symbol, e)
        return 0
    return compute_pay_lag_days(cal.get("ex_dividend_date"), cal.get("dividend_date"))


def load_dividend_events(provider: QuoteProvider, symbol: str, range_: Optional[str] = None) -> List[DividendEvent]:
    try:
        series = provider.get_dividend_series(symbol, range_)
    except Exception as e:
        log.warning("dividend series unavailable for %s: %s", symbol, e)
        return []
    try:
        return extract_dividend_events(series)
    except (TypeError, ValueError, OverflowError) as e:
        log.warning("dividend series for %s could not be parsed: %s", symbol, e)
        return []


def load_history(
    provider: QuoteProvider,
    symbol: str,
    range_: Optional[str] = None,
) -> List[EnrichedHistoryRecord]:
    """Calendar summary and chart series, fetched side by side."""
    with ThreadPoolExecutor(max_workers=2) as pool:
        lag_future = pool.submit(load_pay_lag_days, provider, symbol)
        events_future = pool.submit(load_dividend_events, provider, symbol, range_)
        lag = lag_future.result()
        events = events_future.result()
    try:
        return enrich_history(events, pay_lag_days=lag, cadence=detect_cadence(events))
    except (ValueError, OverflowError) as e:
        log.warning("dividend history for %s could not be derived: %s", symbol, e)
        return []


# ---------- detail ----------


def get_stock_detail(
    provider: QuoteProvider,
    symbol: Optional[str],
    *,
    range_: Optional[str] = None,
    today: Optional[date] = None,
) -> StockDetail:
    sym = normalize_symbol(symbol)
    if not sym:
        raise InvalidInput("symbol is required")

    quotes = provider.get_quotes([sym])
    item = next((q for q in quotes if normalize_symbol(q.get("symbol")) == sym), None)
    if item is None:
        raise NotFound(f"symbol {sym} not found")

    history = load_history(provider, sym, range_)
    cadence = history[0].cadence if history else detect_cadence([])
    summary = summarize_history(history, cadence=cadence, today=today)

    payout = estimate_payout_ratio(
        item.get("dividendRate"),
        trailing_eps=item.get("trailingEps"),
        price=item.get("regularMarketPrice"),
        trailing_pe=item.get("trailingPE"),
    )
    stock = normalize_quote(
        item,
        symbol=sym,
        payout_ratio=payout,
        dividend_growth_rate=summary.dividend_growth_rate,
    )
    return StockDetail(stock=stock, history=history, summary=summary)


def detail_payload(detail: StockDetail) -> Dict[str, Any]:
    """Response shape for the detail route; each history row carries its implied yield."""
    out = detail.to_dict()
    price = detail.stock.current_price
    for row, record in zip(out["history"], detail.history):
        row["forward_yield"] = round(forward_yield(record, price), 4)
    return out
