from __future__ import annotations

import secrets
import uuid
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from sqlalchemy.orm import Session

from app.domain.errors import Conflict, InvalidInput, Unauthorized
from app.infra.models import User, UserSession
from app.infra.settings import settings

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, stored: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), (stored or "").encode("utf-8"))
    except ValueError:
        # malformed stored hash, or a password bcrypt refuses
        return False


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def register(db: Session, email: str, password: str, name: str) -> User:
    email_n = _normalize_email(email)
    if not email_n or not password or not (name or "").strip():
        raise InvalidInput("email, password and name are required")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise InvalidInput(f"password must be at most {MAX_PASSWORD_BYTES} bytes")

    if db.query(User).filter(User.email == email_n).one_or_none():
        raise Conflict("email already registered")

    user = User(
        id=str(uuid.uuid4()),
        email=email_n,
        name=name.strip(),
        password_hash=hash_password(password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def sign_in(db: Session, email: str, password: str) -> UserSession:
    user = db.query(User).filter(User.email == _normalize_email(email)).one_or_none()
    if user is None or not verify_password(password or "", user.password_hash):
        raise Unauthorized("invalid email or password")

    now = datetime.utcnow()
    sess = UserSession(
        token=secrets.token_hex(32),
        user_id=user.id,
        created_at=now,
        expires_at=now + timedelta(days=settings.session_ttl_days),
    )
    db.add(sess)
    db.commit()
    db.refresh(sess)
    return sess


def restore_session(db: Session, token: Optional[str]) -> User:
    """Token -> user. Expired tokens are removed on sight."""
    if not token:
        raise Unauthorized("not signed in")

    sess = db.query(UserSession).filter(UserSession.token == token).one_or_none()
    if sess is None:
        raise Unauthorized("not signed in")

    expires_at = sess.expires_at.replace(tzinfo=None) if sess.expires_at.tzinfo else sess.expires_at
    if expires_at <= datetime.utcnow():
        db.delete(sess)
        db.commit()
        raise Unauthorized("session expired")
    return sess.user


def sign_out(db: Session, token: Optional[str]) -> None:
    if not token:
        return
    db.query(UserSession).filter(UserSession.token == token).delete()
    db.commit()
