import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from ..errors import Conflict, Unauthorized
from ..models import User
from ..schemas import LoginRequest, RefreshRequest, RegisterRequest
from ..tokens import (
    clear_refresh_token,
    hash_password,
    issue_access_token,
    revoke_access_token,
    verify_password,
    verify_refresh_token,
)
from ..validation import require_valid
from .users import get_user_by_email

logger = logging.getLogger(__name__)


def register_user(db: Session, attrs: dict) -> User:
    """Create a new user. Email addresses are unique and stored lower-cased."""
    data = require_valid(RegisterRequest, attrs)

    if get_user_by_email(db, data.email):
        raise Conflict("User already exists")

    user = User(
        name=data.name,
        email=data.email,
        password_hash=hash_password(data.password)
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same email
        db.rollback()
        logger.warning("Duplicate registration for %s", data.email)
        raise Conflict("User already exists")
    db.refresh(user)

    logger.info("Registered user %s", user.id)
    return user


def authenticate_user(db: Session, attrs: dict) -> User:
    """Authenticate a user by email and password."""
    data = require_valid(LoginRequest, attrs)

    user = get_user_by_email(db, data.email)
    if not user or not verify_password(data.password, user.password_hash):
        raise Unauthorized("Invalid credentials")

    return user


def refresh_access_token(db: Session, attrs: dict) -> str:
    """Exchange a valid refresh token for a new access token."""
    data = require_valid(RefreshRequest, attrs)
    user = verify_refresh_token(db, data.refresh_token)
    return issue_access_token(db, user.id)


def logout_user(db: Session, user: User, access_token: str) -> None:
    revoke_access_token(db, access_token)
    clear_refresh_token(db, user)
    logger.info("User %s logged out", user.id)
