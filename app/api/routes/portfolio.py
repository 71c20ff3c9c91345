from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, get_quote_provider
from app.api.errors import to_http_exception
from app.infra.models import User
from app.services import portfolio as portfolio_service
from app.services.stocks import QuoteProvider, get_stock_detail

router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])


class HoldingCreate(BaseModel):
    symbol: str
    shares: float
    average_cost: float


class HoldingUpdate(BaseModel):
    shares: Optional[float] = None
    average_cost: Optional[float] = None


@router.get("/holdings")
def list_holdings(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    rows = portfolio_service.list_holdings(db, user.id)
    return {
        "count": len(rows),
        "holdings": [portfolio_service.holding_to_dict(h) for h in rows],
    }


@router.post("/holdings")
def add_holding(
    payload: HoldingCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: QuoteProvider = Depends(get_quote_provider),
) -> Dict[str, Any]:
    """
    Add a purchase. The quote snapshot (price, dividend, growth) comes from the
    provider; a second purchase of the same symbol merges into the existing row.
    """
    try:
        detail = get_stock_detail(provider, payload.symbol)
        h = portfolio_service.add_holding(db, user.id, detail.stock, payload.shares, payload.average_cost)
    except Exception as e:
        raise to_http_exception(e)
    return {"holding": portfolio_service.holding_to_dict(h)}


@router.put("/holdings/{symbol}")
def update_holding(
    symbol: str,
    payload: HoldingUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    try:
        h = portfolio_service.update_holding(db, user.id, symbol, payload.shares, payload.average_cost)
    except Exception as e:
        raise to_http_exception(e)
    return {"holding": portfolio_service.holding_to_dict(h)}


@router.delete("/holdings/{symbol}")
def remove_holding(
    symbol: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    if not portfolio_service.remove_holding(db, user.id, symbol):
        raise HTTPException(status_code=404, detail=f"no holding for {symbol.strip().upper()}")
    return {"status": "removed", "symbol": symbol.strip().upper()}


@router.get("/summary")
def summary(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    return portfolio_service.portfolio_summary(portfolio_service.list_holdings(db, user.id))


@router.post("/holdings/{symbol}/refresh")
def refresh_holding(
    symbol: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: QuoteProvider = Depends(get_quote_provider),
) -> Dict[str, Any]:
    h = portfolio_service.get_holding(db, user.id, symbol)
    if h is None:
        raise HTTPException(status_code=404, detail=f"no holding for {symbol.strip().upper()}")
    try:
        detail = get_stock_detail(provider, h.symbol)
        h = portfolio_service.refresh_quote(db, h, detail.stock)
    except Exception as e:
        raise to_http_exception(e)
    return {"holding": portfolio_service.holding_to_dict(h)}
