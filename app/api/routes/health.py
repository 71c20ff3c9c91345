import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.infra.settings import settings
from app.services.yahoo_client import YAHOO_HOSTS

log = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/", summary="Health check")
def health_check(db: Session = Depends(get_db)) -> dict:
    """
    Liveness plus a DB ping; holdings and sessions live there.
    Quote mirrors are listed but not probed.
    """
    try:
        db.execute(text("SELECT 1"))
        db_ok = True
    except SQLAlchemyError as e:
        log.warning("health check db ping failed: %s", e)
        db_ok = False

    return {
        "service": "divtrack",
        "env": settings.divtrack_env,
        "status": "ok" if db_ok else "degraded",
        "db_ok": db_ok,
        "quote_mirrors": list(YAHOO_HOSTS),
    }
