from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, get_quote_provider
from app.domain.models import EnrichedHistoryRecord
from app.infra.models import User
from app.services.calendar_projector import build_calendar
from app.services.portfolio import list_holdings
from app.services.stocks import QuoteProvider, load_history

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


@router.get("")
def month_calendar(
    year: Optional[int] = Query(default=None, ge=1900, le=2200),
    month: Optional[int] = Query(default=None, ge=1, le=12),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    provider: QuoteProvider = Depends(get_quote_provider),
) -> Dict[str, Any]:
    """
    Ex-dividend and payment days for the signed-in user's holdings in one month.
    A symbol whose history can't be fetched simply has no events.
    """
    today = datetime.now(timezone.utc).date()
    year = year or today.year
    month = month or today.month

    holdings = list_holdings(db, user.id)
    histories: Dict[str, List[EnrichedHistoryRecord]] = {}
    for h in holdings:
        histories[h.symbol] = load_history(provider, h.symbol)

    index = build_calendar(histories, holdings)
    view = index.month_view(year, month)
    return {
        "year": year,
        "month": month,
        "days": {d: [e.to_dict() for e in entries] for d, entries in view.items()},
    }
