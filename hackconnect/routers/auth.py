from typing import Any, Dict
from fastapi import APIRouter, Body, Depends, status
from sqlmodel import Session

from ..database import get_session
from ..dependencies import get_bearer_token, require_user
from ..models import User
from ..services.auth import authenticate_user, logout_user, refresh_access_token, register_user
from ..services.users import to_public
from ..tokens import issue_access_token, issue_refresh_token

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _token_response(db: Session, user: User) -> dict:
    token = issue_access_token(db, user.id)
    refresh_token = issue_refresh_token(db, user)
    return {
        "success": True,
        "token": token,
        "refresh_token": refresh_token,
        "data": to_public(user)
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    attrs: Dict[str, Any] = Body(...),
    db: Session = Depends(get_session)
):
    """Register a new user and log them in."""
    user = register_user(db, attrs)
    return _token_response(db, user)


@router.post("/login")
async def login(
    attrs: Dict[str, Any] = Body(...),
    db: Session = Depends(get_session)
):
    user = authenticate_user(db, attrs)
    return _token_response(db, user)


@router.post("/refresh")
async def refresh(
    attrs: Dict[str, Any] = Body(...),
    db: Session = Depends(get_session)
):
    """Get a new access token using a refresh token."""
    token = refresh_access_token(db, attrs)
    return {"success": True, "token": token}


@router.post("/logout")
async def logout(
    token: str = Depends(get_bearer_token),
    current_user: User = Depends(require_user),
    db: Session = Depends(get_session)
):
    logout_user(db, current_user, token)
    return {"success": True, "data": {}}
