import pytest
from sqlmodel import select

from hackconnect.errors import BadRequest, Forbidden, NotFound
from hackconnect.models import Task, TaskAssignee, TaskComment
from hackconnect.services import tasks as task_service
from hackconnect.services import teams as team_service


@pytest.fixture(name="crew")
def crew_fixture(session, make_user):
    """A team led by ``leader`` with one ``member``, plus an ``outsider``."""
    leader, member, outsider = make_user("Leader"), make_user("Member"), make_user("Outsider")
    team = team_service.create_team(session, leader, {"name": "Alpha"})
    team_service.invite(session, leader, team.id, member.id, {})
    team_service.respond_to_invite(session, member, team.id, {"status": "accepted"})
    return {"team": team, "leader": leader, "member": member, "outsider": outsider}


def _new_task(session, user, team, **attrs):
    return task_service.create_task(session, user, {"title": "Build demo", "team": team.id, **attrs})


def _assignee_ids(session, task_id):
    return [a.user_id for a in session.exec(
        select(TaskAssignee).where(TaskAssignee.task_id == task_id).order_by(TaskAssignee.id)
    ).all()]


def test_create_task(session, crew):
    task = _new_task(session, crew["member"], crew["team"], priority="high", labels=["frontend"])

    assert task.status == "todo"
    assert task.priority == "high"
    assert task.labels == ["frontend"]
    assert task.team_id == crew["team"].id
    assert task.created_by == crew["member"].id


def test_create_task_outside_team(session, crew):
    with pytest.raises(Forbidden):
        _new_task(session, crew["outsider"], crew["team"])


def test_create_task_validation(session, crew):
    with pytest.raises(BadRequest) as excinfo:
        task_service.create_task(session, crew["leader"], {"title": "", "team": crew["team"].id, "priority": "asap"})

    fields = {detail.split(":")[0] for detail in excinfo.value.details}
    assert fields == {"title", "priority"}


def test_create_task_missing_team(session, crew):
    with pytest.raises(NotFound):
        task_service.create_task(session, crew["leader"], {"title": "Orphan", "team": 9999})


def test_outsider_cannot_touch_task(session, crew):
    task = _new_task(session, crew["leader"], crew["team"])
    outsider = crew["outsider"]

    with pytest.raises(Forbidden):
        task_service.get_task(session, outsider, task.id)
    with pytest.raises(Forbidden):
        task_service.update_task(session, outsider, task.id, {"status": "completed"})
    with pytest.raises(Forbidden):
        task_service.assign_task(session, outsider, task.id, {"user_ids": [outsider.id]})
    with pytest.raises(Forbidden):
        task_service.add_comment(session, outsider, task.id, {"text": "Hi"})
    with pytest.raises(Forbidden):
        task_service.delete_task(session, outsider, task.id)


def test_update_task_keeps_team(session, crew, make_user):
    other_leader = make_user("Other")
    other_team = team_service.create_team(session, other_leader, {"name": "Beta"})
    task = _new_task(session, crew["leader"], crew["team"])

    updated = task_service.update_task(
        session,
        crew["member"],
        task.id,
        {"status": "in_progress", "title": "Build better demo", "team": other_team.id, "team_id": other_team.id}
    )

    assert updated.status == "in_progress"
    assert updated.title == "Build better demo"
    assert updated.team_id == crew["team"].id


def test_update_task_invalid_status(session, crew):
    task = _new_task(session, crew["leader"], crew["team"])

    with pytest.raises(BadRequest):
        task_service.update_task(session, crew["leader"], task.id, {"status": "done"})


def test_assign_non_member_leaves_assignees_unchanged(session, crew):
    task = _new_task(session, crew["leader"], crew["team"])
    task_service.assign_task(session, crew["leader"], task.id, {"user_ids": [crew["member"].id]})

    with pytest.raises(BadRequest, match="not team members"):
        task_service.assign_task(
            session, crew["leader"], task.id, {"user_ids": [crew["leader"].id, crew["outsider"].id]}
        )

    assert _assignee_ids(session, task.id) == [crew["member"].id]


def test_assign_is_idempotent(session, crew):
    task = _new_task(session, crew["leader"], crew["team"])
    member_id = crew["member"].id

    task_service.assign_task(session, crew["leader"], task.id, {"user_ids": [member_id, member_id]})
    task_service.assign_task(session, crew["member"], task.id, {"user_ids": [member_id]})

    assert _assignee_ids(session, task.id) == [member_id]


def test_assign_requires_user_ids(session, crew):
    task = _new_task(session, crew["leader"], crew["team"])

    with pytest.raises(BadRequest):
        task_service.assign_task(session, crew["leader"], task.id, {"user_ids": []})


def test_remove_assignee(session, crew):
    task = _new_task(session, crew["leader"], crew["team"])
    ids = [crew["leader"].id, crew["member"].id]
    task_service.assign_task(session, crew["leader"], task.id, {"user_ids": ids})

    task_service.remove_assignee(session, crew["member"], task.id, crew["leader"].id)
    # Removing someone not assigned is a no-op
    task_service.remove_assignee(session, crew["member"], task.id, crew["outsider"].id)

    assert _assignee_ids(session, task.id) == [crew["member"].id]


def test_comments_keep_insertion_order(session, crew):
    task = _new_task(session, crew["leader"], crew["team"])

    first = task_service.add_comment(session, crew["member"], task.id, {"text": "Started"})
    task_service.add_comment(session, crew["leader"], task.id, {"text": "Thanks"})

    assert first.user.id == crew["member"].id
    read = task_service.task_to_read(session, task_service.get_task(session, crew["leader"], task.id))
    assert [(c.text, c.user.name) for c in read.comments] == [("Started", "Member"), ("Thanks", "Leader")]


def test_delete_by_member_who_did_not_create(session, crew):
    task = _new_task(session, crew["leader"], crew["team"])

    with pytest.raises(Forbidden):
        task_service.delete_task(session, crew["member"], task.id)


@pytest.mark.parametrize("deleter", ["leader", "member"])
def test_delete_by_leader_or_creator(session, crew, deleter):
    task = _new_task(session, crew["member"], crew["team"])
    task_id = task.id
    task_service.assign_task(session, crew["member"], task_id, {"user_ids": [crew["member"].id]})
    task_service.add_comment(session, crew["member"], task_id, {"text": "Done soon"})

    task_service.delete_task(session, crew[deleter], task_id)

    assert session.get(Task, task_id) is None
    assert session.exec(select(TaskAssignee)).all() == []
    assert session.exec(select(TaskComment)).all() == []


def test_list_team_tasks_filters(session, crew):
    first = _new_task(session, crew["leader"], crew["team"], priority="low")
    second = _new_task(session, crew["leader"], crew["team"], priority="urgent")
    task_service.update_task(session, crew["leader"], second.id, {"status": "completed"})
    task_service.assign_task(session, crew["leader"], first.id, {"user_ids": [crew["member"].id]})
    team_id = crew["team"].id

    def ids(**filters):
        return [t.id for t in task_service.list_team_tasks(session, crew["member"], team_id, **filters)]

    assert set(ids()) == {first.id, second.id}
    assert ids(status="completed") == [second.id]
    assert ids(priority="low") == [first.id]
    assert ids(assigned_to=crew["member"].id) == [first.id]

    with pytest.raises(BadRequest):
        ids(status="finished")
    with pytest.raises(Forbidden):
        task_service.list_team_tasks(session, crew["outsider"], team_id)


def test_leaving_team_revokes_task_access(session, crew):
    task = _new_task(session, crew["member"], crew["team"])

    team_service.leave(session, crew["member"], crew["team"].id)

    with pytest.raises(Forbidden):
        task_service.get_task(session, crew["member"], task.id)


def test_task_endpoints(client, crew, auth_headers):
    leader, member = crew["leader"], crew["member"]
    team_id = crew["team"].id

    response = client.post(
        "/api/tasks",
        json={"title": "Slides", "team": team_id, "labels": ["pitch"]},
        headers=auth_headers(leader)
    )
    assert response.status_code == 201
    task = response.json()["data"]
    assert task["created_by"]["id"] == leader.id
    assert task["team"] == team_id

    response = client.post(
        f"/api/tasks/{task['id']}/assign",
        json={"user_ids": [member.id]},
        headers=auth_headers(leader)
    )
    assert [a["user"]["id"] for a in response.json()["data"]["assignees"]] == [member.id]

    response = client.post(
        f"/api/tasks/{task['id']}/comments",
        json={"text": "On it"},
        headers=auth_headers(member)
    )
    assert response.status_code == 201
    assert response.json()["data"]["text"] == "On it"

    response = client.get(f"/api/tasks/team/{team_id}?status=todo", headers=auth_headers(member))
    assert response.json()["count"] == 1

    response = client.put(
        f"/api/tasks/{task['id']}",
        json={"status": "in_review"},
        headers=auth_headers(member)
    )
    assert response.json()["data"]["status"] == "in_review"

    response = client.delete(f"/api/tasks/{task['id']}/assign/{member.id}", headers=auth_headers(member))
    assert response.json()["data"]["assignees"] == []

    response = client.delete(f"/api/tasks/{task['id']}", headers=auth_headers(member))
    assert response.status_code == 403

    response = client.delete(f"/api/tasks/{task['id']}", headers=auth_headers(leader))
    assert response.status_code == 200

    response = client.get(f"/api/tasks/{task['id']}", headers=auth_headers(leader))
    assert response.status_code == 404
    assert response.json()["error"] == "not_found"
