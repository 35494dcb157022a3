from .user import User, UserRole, ExperienceLevel
from .token import AccessToken
from .interaction import Interaction, InteractionKind
from .match import Match, ordered_pair
from .team import Team, TeamMember, TeamInvite, MemberRole, InviteStatus
from .task import Task, TaskAssignee, TaskComment, TaskStatus, TaskPriority

__all__ = [
    "User",
    "UserRole",
    "ExperienceLevel",
    "AccessToken",
    "Interaction",
    "InteractionKind",
    "Match",
    "ordered_pair",
    "Team",
    "TeamMember",
    "TeamInvite",
    "MemberRole",
    "InviteStatus",
    "Task",
    "TaskAssignee",
    "TaskComment",
    "TaskStatus",
    "TaskPriority",
]
