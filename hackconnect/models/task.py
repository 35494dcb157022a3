from datetime import datetime, UTC
from enum import Enum
from typing import TYPE_CHECKING, List, Optional
from sqlmodel import SQLModel, Field, Column, JSON, Relationship, UniqueConstraint

if TYPE_CHECKING:
    from .team import Team


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    IN_REVIEW = "in_review"
    COMPLETED = "completed"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class Task(SQLModel, table=True):
    __tablename__ = "tasks"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    status: str = Field(default=TaskStatus.TODO.value, index=True)
    priority: str = Field(default=TaskPriority.MEDIUM.value)
    due_date: Optional[datetime] = Field(default=None)
    # Set at creation, never updated
    team_id: int = Field(foreign_key="teams.id", index=True)
    created_by: int = Field(foreign_key="users.id")
    labels: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    # Relationships
    team: Optional["Team"] = Relationship(back_populates="tasks")
    assignees: List["TaskAssignee"] = Relationship(
        back_populates="task",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "TaskAssignee.id"}
    )
    comments: List["TaskComment"] = Relationship(
        back_populates="task",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "TaskComment.id"}
    )


class TaskAssignee(SQLModel, table=True):
    __tablename__ = "task_assignees"
    __table_args__ = (UniqueConstraint("task_id", "user_id", name="unique_task_assignee"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="tasks.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    assigned_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    task: Optional[Task] = Relationship(back_populates="assignees")


class TaskComment(SQLModel, table=True):
    __tablename__ = "task_comments"

    id: Optional[int] = Field(default=None, primary_key=True)
    task_id: int = Field(foreign_key="tasks.id", index=True)
    user_id: int = Field(foreign_key="users.id")
    text: str = Field(max_length=1000)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    task: Optional[Task] = Relationship(back_populates="comments")
