import logging
from datetime import datetime, UTC
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..errors import BadRequest, Forbidden, NotFound
from ..models import Task, TaskAssignee, TaskComment, TaskPriority, TaskStatus, TeamMember, User
from ..policies import TaskAction, TeamAction, evaluate_task_policy, evaluate_team_policy
from ..schemas import (
    AssigneeRead,
    AssignRequest,
    CommentCreate,
    CommentRead,
    TaskCreate,
    TaskRead,
    TaskUpdate,
)
from ..validation import require_valid
from .teams import get_membership_in, get_team
from .users import load_users, to_summary

logger = logging.getLogger(__name__)

_DENIED_MESSAGES = {
    TaskAction.READ: "Not authorized to view this task",
    TaskAction.UPDATE: "Not authorized to update this task",
    TaskAction.ASSIGN: "Not authorized to assign this task",
    TaskAction.COMMENT: "Not authorized to comment on this task",
    TaskAction.DELETE: "Not authorized to delete this task",
}


def _get_task(db: Session, task_id: int) -> Task:
    task = db.get(Task, task_id)
    if not task:
        raise NotFound(f"Task not found with id of {task_id}")
    return task


def _authorized_task(db: Session, user: User, task_id: int, action: TaskAction) -> Task:
    task = _get_task(db, task_id)
    actor = get_membership_in(db, task.team_id, user.id)
    if not evaluate_task_policy(actor, action, task):
        raise Forbidden(_DENIED_MESSAGES[action])
    return task


def _touch(task: Task) -> None:
    task.updated_at = datetime.now(UTC)


def task_to_read(db: Session, task: Task) -> TaskRead:
    user_ids = [task.created_by]
    user_ids.extend(a.user_id for a in task.assignees)
    user_ids.extend(c.user_id for c in task.comments)
    users = load_users(db, user_ids)

    return TaskRead(
        id=task.id,
        title=task.title,
        description=task.description,
        status=task.status,
        priority=task.priority,
        due_date=task.due_date,
        team=task.team_id,
        created_by=to_summary(users.get(task.created_by)),
        assignees=[
            AssigneeRead(user=to_summary(users.get(a.user_id)), assigned_at=a.assigned_at)
            for a in task.assignees
        ],
        labels=task.labels or [],
        comments=[comment_to_read(c, users) for c in task.comments],
        created_at=task.created_at,
        updated_at=task.updated_at
    )


def comment_to_read(comment: TaskComment, users: dict) -> CommentRead:
    return CommentRead(
        id=comment.id,
        user=to_summary(users.get(comment.user_id)),
        text=comment.text,
        created_at=comment.created_at
    )


def create_task(db: Session, requester: User, attrs: dict) -> Task:
    data = require_valid(TaskCreate, attrs)

    team = get_team(db, data.team)
    actor = get_membership_in(db, team.id, requester.id)
    if not evaluate_team_policy(actor, TeamAction.MANAGE_TASKS, team):
        raise Forbidden("Not authorized to create tasks for this team")

    task = Task(
        title=data.title,
        description=data.description,
        priority=data.priority.value,
        due_date=data.due_date,
        labels=data.labels,
        team_id=team.id,
        created_by=requester.id
    )
    db.add(task)
    db.commit()
    db.refresh(task)

    logger.info("Task %s created in team %s by user %s", task.id, team.id, requester.id)
    return task


def list_team_tasks(
    db: Session,
    requester: User,
    team_id: int,
    status: Optional[str] = None,
    assigned_to: Optional[int] = None,
    priority: Optional[str] = None
) -> List[Task]:
    team = get_team(db, team_id)
    actor = get_membership_in(db, team.id, requester.id)
    if not evaluate_team_policy(actor, TeamAction.MANAGE_TASKS, team):
        raise Forbidden("Not authorized to view these tasks")

    statement = select(Task).where(Task.team_id == team.id)

    if status:
        if status not in {s.value for s in TaskStatus}:
            raise BadRequest(f"Invalid status: {status}")
        statement = statement.where(Task.status == status)

    if priority:
        if priority not in {p.value for p in TaskPriority}:
            raise BadRequest(f"Invalid priority: {priority}")
        statement = statement.where(Task.priority == priority)

    if assigned_to is not None:
        statement = statement.join(TaskAssignee, TaskAssignee.task_id == Task.id).where(
            TaskAssignee.user_id == assigned_to
        )

    statement = statement.order_by(Task.created_at.desc(), Task.id.desc())
    return list(db.exec(statement).all())


def get_task(db: Session, requester: User, task_id: int) -> Task:
    return _authorized_task(db, requester, task_id, TaskAction.READ)


def update_task(db: Session, requester: User, task_id: int, attrs: dict) -> Task:
    task = _authorized_task(db, requester, task_id, TaskAction.UPDATE)
    data = require_valid(TaskUpdate, attrs)

    # The owning team is not part of TaskUpdate and so can never change
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field in ("title", "status", "priority", "labels"):
            continue
        if isinstance(value, (TaskStatus, TaskPriority)):
            value = value.value
        setattr(task, field, value)
    _touch(task)

    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def _add_assignees(db: Session, task: Task, user_ids: List[int]) -> List[int]:
    member_ids = set(db.exec(
        select(TeamMember.user_id).where(TeamMember.team_id == task.team_id)
    ).all())
    if any(user_id not in member_ids for user_id in user_ids):
        raise BadRequest("One or more users are not team members")

    existing = {a.user_id for a in task.assignees}
    added = [user_id for user_id in dict.fromkeys(user_ids) if user_id not in existing]
    if not added:
        return added

    for user_id in added:
        task.assignees.append(TaskAssignee(user_id=user_id))
    _touch(task)

    db.add(task)
    db.commit()
    return added


def assign_task(db: Session, requester: User, task_id: int, attrs: dict) -> Task:
    """
    Add assignees to a task. Every assignee must currently be on the task's
    team; users already assigned are left as they are.
    """
    task = _authorized_task(db, requester, task_id, TaskAction.ASSIGN)
    data = require_valid(AssignRequest, attrs)

    try:
        added = _add_assignees(db, task, data.user_ids)
    except IntegrityError:
        # Someone assigned the same user concurrently; recompute against the new state
        db.rollback()
        added = _add_assignees(db, task, data.user_ids)

    if added:
        db.refresh(task)
        logger.info("Task %s assigned to users %s", task.id, added)
    return task


def remove_assignee(db: Session, requester: User, task_id: int, user_id: int) -> Task:
    task = _authorized_task(db, requester, task_id, TaskAction.ASSIGN)

    assignee = next((a for a in task.assignees if a.user_id == user_id), None)
    if assignee:
        task.assignees.remove(assignee)
        _touch(task)
        db.add(task)
        db.commit()
        db.refresh(task)
    return task


def add_comment(db: Session, requester: User, task_id: int, attrs: dict) -> CommentRead:
    task = _authorized_task(db, requester, task_id, TaskAction.COMMENT)
    data = require_valid(CommentCreate, attrs)

    comment = TaskComment(task_id=task.id, user_id=requester.id, text=data.text)
    db.add(comment)
    db.commit()
    db.refresh(comment)

    return comment_to_read(comment, {requester.id: requester})


def delete_task(db: Session, requester: User, task_id: int) -> None:
    task = _authorized_task(db, requester, task_id, TaskAction.DELETE)
    db.delete(task)
    db.commit()
    logger.info("Task %s deleted by user %s", task_id, requester.id)
