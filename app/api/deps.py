from collections.abc import Generator
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from app.domain.errors import Unauthorized
from app.infra.db import SessionLocal
from app.infra.models import User
from app.services.auth import restore_session
from app.services.yahoo_client import YahooClient


def get_db() -> Generator[Session, None, None]:
    """Yield a DB session and clean it up afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_quote_provider() -> Generator[YahooClient, None, None]:
    """One client (and one cookie/crumb handshake) per request."""
    client = YahooClient()
    try:
        yield client
    finally:
        client.close()


def bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(
    token: Optional[str] = Depends(bearer_token),
    db: Session = Depends(get_db),
) -> User:
    try:
        return restore_session(db, token)
    except Unauthorized as e:
        raise HTTPException(status_code=401, detail=str(e))
