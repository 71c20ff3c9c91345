from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_quote_provider
from app.api.errors import to_http_exception
from app.services.stocks import QuoteProvider, detail_payload, get_stock_detail, search_stocks

router = APIRouter(
    prefix="/api/stocks",
    tags=["stocks"],
)


@router.get("/search")
def search(
    query: Optional[str] = Query(default=None, description="Free-text company name or ticker."),
    provider: QuoteProvider = Depends(get_quote_provider),
) -> Dict[str, Any]:
    try:
        stocks = search_stocks(provider, query)
    except Exception as e:
        raise to_http_exception(e)
    return {"count": len(stocks), "results": [s.to_dict() for s in stocks]}


@router.get("/{symbol}")
def stock_detail(
    symbol: str,
    range_: Optional[str] = Query(default=None, alias="range", description="History range for the chart endpoint, e.g. 5y."),
    provider: QuoteProvider = Depends(get_quote_provider),
) -> Dict[str, Any]:
    """
    Quote + derived dividend history. Calendar/chart failures only blank out
    pay dates and history; the quote lookup itself is required.
    """
    try:
        detail = get_stock_detail(provider, symbol, range_=range_)
    except Exception as e:
        raise to_http_exception(e)
    return detail_payload(detail)
