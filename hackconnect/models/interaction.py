from datetime import datetime, UTC
from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field, UniqueConstraint


class InteractionKind(str, Enum):
    LIKE = "like"
    SKIP = "skip"


class Interaction(SQLModel, table=True):
    __tablename__ = "interactions"
    __table_args__ = (UniqueConstraint("actor_id", "target_id", name="unique_actor_target"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    actor_id: int = Field(foreign_key="users.id", index=True)
    target_id: int = Field(foreign_key="users.id", index=True)
    kind: str  # like, skip
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
