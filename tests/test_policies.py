import pytest

from hackconnect.models import MemberRole, Task, Team, TeamMember
from hackconnect.policies import TaskAction, TeamAction, evaluate_task_policy, evaluate_team_policy

TEAM = Team(id=1, name="Alpha")
TASK = Task(id=1, title="Demo", team_id=1, created_by=2)

LEADER = TeamMember(id=1, team_id=1, user_id=1, role=MemberRole.LEADER.value)
MEMBER = TeamMember(id=2, team_id=1, user_id=2, role=MemberRole.MEMBER.value)
OTHER_MEMBER = TeamMember(id=3, team_id=1, user_id=3, role=MemberRole.MEMBER.value)
FOREIGN_LEADER = TeamMember(id=4, team_id=2, user_id=4, role=MemberRole.LEADER.value)


@pytest.mark.parametrize("action", list(TeamAction))
def test_non_members_are_denied_team_actions(action):
    assert evaluate_team_policy(None, action, TEAM) is False
    assert evaluate_team_policy(FOREIGN_LEADER, action, TEAM) is False


@pytest.mark.parametrize("action,member_allowed", [
    (TeamAction.VIEW, True),
    (TeamAction.INVITE, True),
    (TeamAction.MANAGE_TASKS, True),
    (TeamAction.UPDATE, False),
    (TeamAction.REMOVE_MEMBER, False),
])
def test_team_actions(action, member_allowed):
    assert evaluate_team_policy(LEADER, action, TEAM) is True
    assert evaluate_team_policy(MEMBER, action, TEAM) is member_allowed


@pytest.mark.parametrize("action", list(TaskAction))
def test_non_members_are_denied_task_actions(action):
    assert evaluate_task_policy(None, action, TASK) is False
    assert evaluate_task_policy(FOREIGN_LEADER, action, TASK) is False


@pytest.mark.parametrize("action", [TaskAction.READ, TaskAction.UPDATE, TaskAction.ASSIGN, TaskAction.COMMENT])
def test_members_share_task_work(action):
    assert evaluate_task_policy(OTHER_MEMBER, action, TASK) is True


def test_task_deletion():
    assert evaluate_task_policy(LEADER, TaskAction.DELETE, TASK) is True
    assert evaluate_task_policy(MEMBER, TaskAction.DELETE, TASK) is True  # creator
    assert evaluate_task_policy(OTHER_MEMBER, TaskAction.DELETE, TASK) is False
