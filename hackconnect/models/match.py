from datetime import datetime, UTC
from typing import Optional, Tuple
from sqlmodel import SQLModel, Field, UniqueConstraint, CheckConstraint

DEFAULT_LAST_MESSAGE = "You are now connected!"


def ordered_pair(user_a: int, user_b: int) -> Tuple[int, int]:
    """Normalise an unordered pair so the smaller id comes first."""
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


class Match(SQLModel, table=True):
    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="unique_match_pair"),
        CheckConstraint("user_low_id < user_high_id", name="ordered_match_pair"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_low_id: int = Field(foreign_key="users.id", index=True)
    user_high_id: int = Field(foreign_key="users.id", index=True)
    matched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    last_message: str = Field(default=DEFAULT_LAST_MESSAGE)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def counterpart_of(self, user_id: int) -> int:
        return self.user_high_id if self.user_low_id == user_id else self.user_low_id
