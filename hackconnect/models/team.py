from datetime import datetime, UTC
from enum import Enum
from typing import TYPE_CHECKING, List, Optional
from sqlalchemy import Index, text
from sqlmodel import SQLModel, Field, Column, JSON, Relationship

if TYPE_CHECKING:
    from .task import Task


class MemberRole(str, Enum):
    LEADER = "leader"
    MEMBER = "member"


class InviteStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Team(SQLModel, table=True):
    __tablename__ = "teams"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True, max_length=50)
    description: Optional[str] = Field(default=None, max_length=500)
    project_idea: Optional[str] = Field(default=None, max_length=1000)
    skills_needed: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    max_members: int = Field(default=5)
    is_open: bool = Field(default=True)

    # Only changed through conditional UPDATEs, see services.teams
    member_count: int = Field(default=0)

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationships
    members: List["TeamMember"] = Relationship(
        back_populates="team",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "TeamMember.id"}
    )
    invites: List["TeamInvite"] = Relationship(
        back_populates="team",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "TeamInvite.id"}
    )
    tasks: List["Task"] = Relationship(
        back_populates="team",
        sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )


class TeamMember(SQLModel, table=True):
    __tablename__ = "team_members"

    id: Optional[int] = Field(default=None, primary_key=True)
    team_id: int = Field(foreign_key="teams.id", index=True)
    # Unique across all teams: a user belongs to at most one team
    user_id: int = Field(foreign_key="users.id", unique=True)
    role: str = Field(default=MemberRole.MEMBER.value)  # leader, member
    joined_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    team: Optional[Team] = Relationship(back_populates="members")

    @property
    def is_leader(self) -> bool:
        return self.role == MemberRole.LEADER.value


class TeamInvite(SQLModel, table=True):
    __tablename__ = "team_invites"
    __table_args__ = (
        Index(
            "unique_pending_invite",
            "team_id",
            "user_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    team_id: int = Field(foreign_key="teams.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    invited_by: int = Field(foreign_key="users.id")
    status: str = Field(default=InviteStatus.PENDING.value)  # pending, accepted, rejected
    message: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    team: Optional[Team] = Relationship(back_populates="invites")
