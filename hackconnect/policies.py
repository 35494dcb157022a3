"""
Who may do what to teams and tasks.

Every permission decision goes through ``evaluate_team_policy`` or
``evaluate_task_policy``. ``actor`` is the requester's membership row in the
team that owns the resource, or ``None`` when they are not a member.
"""

from enum import Enum
from typing import Optional

from .models import Task, Team, TeamMember


class TeamAction(str, Enum):
    VIEW = "view"
    UPDATE = "update"
    INVITE = "invite"
    REMOVE_MEMBER = "remove_member"
    MANAGE_TASKS = "manage_tasks"


class TaskAction(str, Enum):
    READ = "read"
    UPDATE = "update"
    ASSIGN = "assign"
    COMMENT = "comment"
    DELETE = "delete"


_TEAM_LEADER_ACTIONS = {TeamAction.UPDATE, TeamAction.REMOVE_MEMBER}


def _is_member_of(actor: Optional[TeamMember], team_id: int) -> bool:
    return actor is not None and actor.team_id == team_id


def evaluate_team_policy(actor: Optional[TeamMember], action: TeamAction, team: Team) -> bool:
    if not _is_member_of(actor, team.id):
        return False
    if action in _TEAM_LEADER_ACTIONS:
        return actor.is_leader
    return True


def evaluate_task_policy(actor: Optional[TeamMember], action: TaskAction, task: Task) -> bool:
    if not _is_member_of(actor, task.team_id):
        return False
    if action == TaskAction.DELETE:
        return actor.is_leader or task.created_by == actor.user_id
    return True
