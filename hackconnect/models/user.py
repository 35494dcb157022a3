from datetime import datetime, UTC
from enum import Enum
from typing import List, Optional
from sqlmodel import SQLModel, Field, Column, JSON


class UserRole(str, Enum):
    DEVELOPER = "developer"
    DESIGNER = "designer"
    PRODUCT_MANAGER = "product manager"
    DATA_SCIENTIST = "data scientist"
    OTHER = "other"


class ExperienceLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=50)
    email: str = Field(unique=True, index=True, max_length=255)  # stored lower-cased
    password_hash: str
    bio: Optional[str] = Field(default=None, max_length=500)
    skills: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    interests: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    role: str = Field(default=UserRole.DEVELOPER.value)
    experience_level: str = Field(default=ExperienceLevel.BEGINNER.value)
    avatar: str = Field(default="default-avatar.png")
    github: Optional[str] = Field(default=None)
    linkedin: Optional[str] = Field(default=None)

    # Replaced on every login; clearing it invalidates outstanding refresh tokens
    refresh_token: Optional[str] = Field(default=None, index=True)
    refresh_token_expires_at: Optional[datetime] = Field(default=None)

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
