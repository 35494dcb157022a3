from datetime import datetime, UTC
from typing import Optional
from sqlmodel import SQLModel, Field


class AccessToken(SQLModel, table=True):
    __tablename__ = "access_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    token: str = Field(unique=True, index=True)
    expires_at: datetime
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
