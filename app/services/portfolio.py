from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from app.domain.errors import InvalidInput, NotFound
from app.domain.models import CanonicalStock
from app.infra.models import Holding
from app.services.quote_normalizer import normalize_symbol, quarterly_dividend


def _validate(shares: Optional[float], average_cost: Optional[float]) -> None:
    if shares is not None and not shares > 0:
        raise InvalidInput("shares must be greater than 0")
    if average_cost is not None and not average_cost >= 0:
        raise InvalidInput("average cost must not be negative")


def _apply_quote(h: Holding, stock: CanonicalStock) -> None:
    h.name = stock.name
    h.current_price = stock.current_price
    h.dividend_yield = stock.dividend_yield
    h.annual_dividend = stock.annual_dividend
    h.payout_ratio = stock.payout_ratio
    h.dividend_growth_rate = stock.dividend_growth_rate
    h.sector = stock.sector
    h.market_cap = stock.market_cap
    h.pe_ratio = stock.pe_ratio
    h.fifty_two_week_high = stock.fifty_two_week_high
    h.fifty_two_week_low = stock.fifty_two_week_low


# ---------- repository ----------


def list_holdings(db: Session, user_id: str) -> List[Holding]:
    return (
        db.query(Holding)
        .filter(Holding.user_id == user_id)
        .order_by(Holding.added_at.asc(), Holding.id.asc())
        .all()
    )


def get_holding(db: Session, user_id: str, symbol: str) -> Optional[Holding]:
    return (
        db.query(Holding)
        .filter(Holding.user_id == user_id, Holding.symbol == normalize_symbol(symbol))
        .one_or_none()
    )


def add_holding(
    db: Session,
    user_id: str,
    stock: CanonicalStock,
    shares: float,
    average_cost: float,
) -> Holding:
    """
    Record a purchase. A repeat purchase of a symbol merges into the existing
    row: shares add up and the average cost becomes the share-weighted mean.
    """
    _validate(shares, average_cost)
    symbol = normalize_symbol(stock.symbol)
    if not symbol:
        raise InvalidInput("symbol is required")

    now = datetime.utcnow()
    existing = get_holding(db, user_id, symbol)
    if existing:
        total_shares = existing.shares + shares
        existing.average_cost = (existing.shares * existing.average_cost + shares * average_cost) / total_shares
        existing.shares = total_shares
        existing.updated_at = now
        _apply_quote(existing, stock)
        h = existing
    else:
        h = Holding(
            user_id=user_id,
            symbol=symbol,
            shares=shares,
            average_cost=average_cost,
            added_at=now,
            updated_at=now,
        )
        _apply_quote(h, stock)
        db.add(h)

    db.commit()
    db.refresh(h)
    return h


def update_holding(
    db: Session,
    user_id: str,
    symbol: str,
    shares: Optional[float] = None,
    average_cost: Optional[float] = None,
) -> Holding:
    _validate(shares, average_cost)
    h = get_holding(db, user_id, symbol)
    if h is None:
        raise NotFound(f"no holding for {normalize_symbol(symbol)}")
    if shares is not None:
        h.shares = shares
    if average_cost is not None:
        h.average_cost = average_cost
    h.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(h)
    return h


def refresh_quote(db: Session, h: Holding, stock: CanonicalStock) -> Holding:
    _apply_quote(h, stock)
    h.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(h)
    return h


def remove_holding(db: Session, user_id: str, symbol: str) -> bool:
    h = get_holding(db, user_id, symbol)
    if h is None:
        return False
    db.delete(h)
    db.commit()
    return True


# ---------- presentation ----------


def holding_to_dict(h: Holding) -> Dict[str, Any]:
    return {
        "symbol": h.symbol,
        "name": h.name,
        "shares": h.shares,
        "average_cost": round(h.average_cost, 4),
        "current_price": h.current_price,
        "dividend_yield": h.dividend_yield,
        "annual_dividend": h.annual_dividend,
        "quarterly_dividend": quarterly_dividend(h.annual_dividend),
        "payout_ratio": h.payout_ratio,
        "dividend_growth_rate": h.dividend_growth_rate,
        "sector": h.sector,
        "market_cap": h.market_cap,
        "pe_ratio": h.pe_ratio,
        "fifty_two_week_high": h.fifty_two_week_high,
        "fifty_two_week_low": h.fifty_two_week_low,
        "total_value": round(h.total_value, 2),
        "total_dividend": round(h.total_dividend, 4),
        "added_at": h.added_at.isoformat() if h.added_at else None,
    }


def portfolio_summary(holdings: Sequence[Holding]) -> Dict[str, Any]:
    total_value = sum(h.total_value for h in holdings)
    total_dividend = sum(h.total_dividend for h in holdings)
    avg_yield = (total_dividend / total_value) * 100.0 if total_value > 0 else 0.0
    avg_growth = (
        sum(float(h.dividend_growth_rate or 0.0) for h in holdings) / len(holdings) if holdings else 0.0
    )
    return {
        "holdings": len(holdings),
        "total_value": round(total_value, 2),
        "total_annual_dividend": round(total_dividend, 2),
        "monthly_dividend": round(total_dividend / 12.0, 2),
        "average_yield_pct": round(avg_yield, 3),
        "average_growth_rate_pct": round(avg_growth, 3),
    }
