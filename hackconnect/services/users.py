import logging
from datetime import datetime, UTC
from typing import Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func
from sqlmodel import Session, select

from ..errors import NotFound
from ..filters import Page
from ..models import User
from ..schemas import ProfileUpdate, UserPublic, UserSummary
from ..validation import require_valid

logger = logging.getLogger(__name__)


def to_public(user: User) -> UserPublic:
    """Profile without the password hash or refresh token."""
    return UserPublic.model_validate(user)


def to_summary(user: Optional[User]) -> Optional[UserSummary]:
    if user is None:
        return None
    return UserSummary.model_validate(user)


def load_users(db: Session, user_ids: Iterable[int]) -> Dict[int, User]:
    """Fetch users by id in one query; missing ids are simply absent."""
    ids = set(user_ids)
    if not ids:
        return {}
    users = db.exec(select(User).where(User.id.in_(ids))).all()
    return {user.id: user for user in users}


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFound(f"User not found with id of {user_id}")
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    statement = select(User).where(User.email == email.strip().lower())
    return db.exec(statement).first()


def list_users(
    db: Session,
    page: Page,
    skill: Optional[str] = None,
    role: Optional[str] = None,
    experience_level: Optional[str] = None
) -> Tuple[List[User], int]:
    """Directory listing ordered by id. Returns one page plus the total count."""
    statement = select(User)
    if role:
        statement = statement.where(User.role == role)
    if experience_level:
        statement = statement.where(User.experience_level == experience_level)

    if skill:
        # skills is a JSON column, so match in Python
        users = [u for u in db.exec(statement.order_by(User.id)).all() if skill in (u.skills or [])]
        return users[page.offset:page.offset + page.limit], len(users)

    total = db.exec(select(func.count()).select_from(statement.subquery())).one()
    users = db.exec(statement.order_by(User.id).offset(page.offset).limit(page.limit)).all()
    return list(users), total


def update_profile(db: Session, user: User, attrs: dict) -> User:
    update = require_valid(ProfileUpdate, attrs)

    for field, value in update.model_dump(exclude_unset=True, mode="json").items():
        if value is None and field in ("name", "skills", "interests", "role", "experience_level", "avatar"):
            continue
        setattr(user, field, value)
    user.updated_at = datetime.now(UTC)

    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Updated profile of user %s", user.id)
    return user
