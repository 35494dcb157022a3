from typing import Optional
from fastapi import Request, Depends, HTTPException, status
from sqlmodel import Session

from .database import get_session
from .errors import Unauthorized
from .models import User
from .tokens import verify_access_token


def get_bearer_token(request: Request) -> Optional[str]:
    """Pull the token out of an ``Authorization: Bearer <token>`` header."""
    authorization = request.headers.get("Authorization", "")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    db: Session = Depends(get_session)
) -> Optional[User]:
    """Get the user the bearer token was issued to."""
    if not token:
        return None

    try:
        user_id = verify_access_token(db, token)
    except Unauthorized:
        return None

    return db.get(User, user_id)


async def require_user(
    current_user: Optional[User] = Depends(get_current_user)
) -> User:
    """Require an authenticated user."""
    if not current_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authorized to access this route"
        )
    return current_user
