"""
Request and response schemas for the JSON API.

Request schemas are applied by ``validation.validate`` inside the services;
response schemas are built from table models with ``model_validate``.
"""

from datetime import datetime
from typing import Annotated, List, Literal, Optional
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from .config import TEAM_DEFAULT_MAX_MEMBERS, TEAM_MAX_MEMBERS, TEAM_MIN_MEMBERS
from .models import ExperienceLevel, InteractionKind, TaskPriority, TaskStatus, UserRole

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
URL_PATTERN = r'^https?://\S+$'


def _strip(value):
    if isinstance(value, str):
        return value.strip()
    return value


StrippedStr = Annotated[str, BeforeValidator(_strip)]


# Auth

class RegisterRequest(BaseModel):
    name: StrippedStr = Field(min_length=2, max_length=50)
    email: StrippedStr = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=6, max_length=72)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class LoginRequest(BaseModel):
    email: StrippedStr = Field(min_length=1)
    password: str = Field(min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1)


# Users

class ProfileUpdate(BaseModel):
    name: Optional[StrippedStr] = Field(default=None, min_length=2, max_length=50)
    bio: Optional[str] = Field(default=None, max_length=500)
    skills: Optional[List[str]] = None
    interests: Optional[List[str]] = None
    role: Optional[UserRole] = None
    experience_level: Optional[ExperienceLevel] = None
    avatar: Optional[str] = None
    github: Optional[str] = Field(default=None, pattern=URL_PATTERN)
    linkedin: Optional[str] = Field(default=None, pattern=URL_PATTERN)


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    avatar: str
    role: str
    experience_level: str


class UserPublic(UserSummary):
    bio: Optional[str] = None
    skills: List[str] = []
    interests: List[str] = []
    github: Optional[str] = None
    linkedin: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# Matching

class InteractionRequest(BaseModel):
    interaction_type: InteractionKind


class InteractionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    actor_id: int
    target_id: int
    kind: str
    created_at: datetime


class MatchRead(BaseModel):
    id: int
    user: UserSummary
    matched_at: datetime
    last_message: str
    created_at: datetime
    updated_at: datetime


# Teams

class TeamCreate(BaseModel):
    name: StrippedStr = Field(min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    project_idea: Optional[str] = Field(default=None, max_length=1000)
    skills_needed: List[str] = []
    max_members: int = Field(
        default=TEAM_DEFAULT_MAX_MEMBERS, ge=TEAM_MIN_MEMBERS, le=TEAM_MAX_MEMBERS
    )
    is_open: bool = True


class TeamUpdate(BaseModel):
    name: Optional[StrippedStr] = Field(default=None, min_length=1, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    project_idea: Optional[str] = Field(default=None, max_length=1000)
    skills_needed: Optional[List[str]] = None
    max_members: Optional[int] = Field(default=None, ge=TEAM_MIN_MEMBERS, le=TEAM_MAX_MEMBERS)
    is_open: Optional[bool] = None


class InviteRequest(BaseModel):
    message: Optional[str] = Field(default=None, max_length=500)


class InviteDecision(BaseModel):
    status: Literal["accepted", "rejected"]


class TeamMemberRead(BaseModel):
    user: Optional[UserSummary]
    role: str
    joined_at: datetime


class TeamInviteRead(BaseModel):
    id: int
    user: Optional[UserSummary]
    invited_by: Optional[UserSummary]
    status: str
    message: Optional[str]
    created_at: datetime


class TeamRead(BaseModel):
    id: int
    name: str
    description: Optional[str]
    project_idea: Optional[str]
    skills_needed: List[str]
    max_members: int
    member_count: int
    is_open: bool
    members: List[TeamMemberRead]
    invites: List[TeamInviteRead]
    created_at: datetime
    updated_at: datetime


# Tasks

class TaskCreate(BaseModel):
    title: StrippedStr = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[datetime] = None
    labels: List[str] = []
    team: int


class TaskUpdate(BaseModel):
    title: Optional[StrippedStr] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = None
    labels: Optional[List[str]] = None


class AssignRequest(BaseModel):
    user_ids: List[int] = Field(min_length=1)


class CommentCreate(BaseModel):
    text: str = Field(min_length=1, max_length=1000)


class AssigneeRead(BaseModel):
    user: Optional[UserSummary]
    assigned_at: datetime


class CommentRead(BaseModel):
    id: int
    user: Optional[UserSummary]
    text: str
    created_at: datetime


class TaskRead(BaseModel):
    id: int
    title: str
    description: Optional[str]
    status: str
    priority: str
    due_date: Optional[datetime]
    team: int
    created_by: Optional[UserSummary]
    assignees: List[AssigneeRead]
    labels: List[str]
    comments: List[CommentRead]
    created_at: datetime
    updated_at: datetime
