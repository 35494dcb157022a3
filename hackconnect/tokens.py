"""
Password hashing and token issuing.

Access tokens are opaque random strings persisted in ``access_tokens`` with
an expiry. Refresh tokens live on the user row; issuing a new one replaces
(and therefore invalidates) the previous one.
"""

import secrets
from datetime import datetime, timedelta, UTC

import bcrypt
from sqlmodel import Session, select

from .config import ACCESS_TOKEN_EXPIRE_MINUTES, REFRESH_TOKEN_EXPIRE_DAYS
from .errors import Unauthorized
from .models import AccessToken, User

# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


def hash_password(password: str) -> str:
    """Hash a password using bcrypt. Truncates to 72 bytes for bcrypt compatibility."""
    password_bytes = password.encode('utf-8')[:BCRYPT_MAX_BYTES]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt())
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    password_bytes = plain_password.encode('utf-8')[:BCRYPT_MAX_BYTES]
    return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))


def generate_token() -> str:
    """Generate a secure random token."""
    return secrets.token_urlsafe(32)


def issue_access_token(db: Session, user_id: int) -> str:
    """Create a new access token for a user."""
    access_token = AccessToken(
        user_id=user_id,
        token=generate_token(),
        expires_at=datetime.now(UTC) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    db.add(access_token)
    db.commit()
    return access_token.token


def verify_access_token(db: Session, token: str) -> int:
    """Return the user id the token was issued to, or raise Unauthorized."""
    statement = select(AccessToken).where(
        AccessToken.token == token,
        AccessToken.expires_at > datetime.now(UTC)
    )
    access_token = db.exec(statement).first()
    if not access_token:
        raise Unauthorized("Not authorized to access this route")
    return access_token.user_id


def revoke_access_token(db: Session, token: str) -> None:
    statement = select(AccessToken).where(AccessToken.token == token)
    access_token = db.exec(statement).first()
    if access_token:
        db.delete(access_token)
        db.commit()


def issue_refresh_token(db: Session, user: User) -> str:
    """Store a fresh refresh token on the user, replacing any previous one."""
    user.refresh_token = generate_token()
    user.refresh_token_expires_at = datetime.now(UTC) + timedelta(days=REFRESH_TOKEN_EXPIRE_DAYS)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user.refresh_token


def verify_refresh_token(db: Session, token: str) -> User:
    statement = select(User).where(
        User.refresh_token == token,
        User.refresh_token_expires_at > datetime.now(UTC)
    )
    user = db.exec(statement).first()
    if not user:
        raise Unauthorized("Invalid refresh token")
    return user


def clear_refresh_token(db: Session, user: User) -> None:
    user.refresh_token = None
    user.refresh_token_expires_at = None
    db.add(user)
    db.commit()
