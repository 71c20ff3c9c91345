from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import bearer_token, get_current_user, get_db
from app.api.errors import to_http_exception
from app.domain.errors import DividendTrackerError
from app.infra.models import User
from app.services import auth as auth_service

router = APIRouter(prefix="/api/auth", tags=["auth"])


class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str


class LoginRequest(BaseModel):
    email: str
    password: str


def _user_dict(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


@router.post("/register")
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """Create the account and sign it in straight away."""
    try:
        user = auth_service.register(db, payload.email, payload.password, payload.name)
        sess = auth_service.sign_in(db, payload.email, payload.password)
    except DividendTrackerError as e:
        raise to_http_exception(e)
    return {"user": _user_dict(user), "token": sess.token}


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> Dict[str, Any]:
    try:
        sess = auth_service.sign_in(db, payload.email, payload.password)
    except DividendTrackerError as e:
        raise to_http_exception(e)
    return {"user": _user_dict(sess.user), "token": sess.token}


@router.post("/logout")
def logout(token: Optional[str] = Depends(bearer_token), db: Session = Depends(get_db)) -> Dict[str, Any]:
    auth_service.sign_out(db, token)
    return {"status": "signed_out"}


@router.get("/me")
def me(user: User = Depends(get_current_user)) -> Dict[str, Any]:
    return {"user": _user_dict(user)}
