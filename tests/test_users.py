import pytest

from hackconnect.errors import BadRequest, NotFound
from hackconnect.filters import Page
from hackconnect.services.users import get_user, list_users, to_public, update_profile


def test_public_profile_hides_secrets(make_user):
    user = make_user("Ada", refresh_token="secret")

    data = to_public(user).model_dump()

    assert data["name"] == "Ada"
    assert "password_hash" not in data
    assert "refresh_token" not in data


def test_update_profile(session, make_user):
    user = make_user("Ada")

    updated = update_profile(session, user, {
        "bio": "Compilers",
        "skills": ["python", "rust"],
        "role": "data scientist",
        "experience_level": "expert",
        "github": "https://github.com/ada"
    })

    assert updated.bio == "Compilers"
    assert updated.skills == ["python", "rust"]
    assert updated.role == "data scientist"
    assert updated.experience_level == "expert"


def test_update_profile_ignores_unknown_fields(session, make_user):
    user = make_user("Ada")

    updated = update_profile(session, user, {"email": "other@example.com", "password_hash": "x"})

    assert updated.email == "ada@example.com"
    assert updated.password_hash != "x"


@pytest.mark.parametrize("attrs", [
    {"role": "wizard"},
    {"github": "not a url"},
    {"name": "A"},
    {"skills": "python"},
])
def test_update_profile_rejects_invalid(session, make_user, attrs):
    with pytest.raises(BadRequest):
        update_profile(session, make_user(), attrs)


def test_get_missing_user(session):
    with pytest.raises(NotFound):
        get_user(session, 42)


def test_list_users_filters(session, make_user):
    make_user("Ada", skills=["python"], role="developer")
    make_user("Grace", skills=["cobol"], role="developer", experience_level="expert")
    make_user("Don", skills=["python", "figma"], role="designer")

    users, total = list_users(session, Page(page=1, limit=10), skill="python")
    assert [u.name for u in users] == ["Ada", "Don"]
    assert total == 2

    users, _ = list_users(session, Page(page=1, limit=10), role="developer", experience_level="expert")
    assert [u.name for u in users] == ["Grace"]

    users, total = list_users(session, Page(page=2, limit=2))
    assert [u.name for u in users] == ["Don"]
    assert total == 3


def test_user_endpoints(client, make_user, auth_headers):
    me, other = make_user("Ada"), make_user("Grace")

    response = client.put("/api/users/me", json={"skills": ["python"]}, headers=auth_headers(me))
    assert response.status_code == 200
    assert response.json()["data"]["skills"] == ["python"]

    response = client.get(f"/api/users/{other.id}", headers=auth_headers(me))
    assert response.json()["data"]["name"] == "Grace"

    response = client.get("/api/users?limit=1", headers=auth_headers(me))
    body = response.json()
    assert body["count"] == 1
    assert body["total"] == 2
    assert body["pagination"] == {"next": {"page": 2, "limit": 1}}

    response = client.get("/api/users/999", headers=auth_headers(me))
    assert response.status_code == 404

    response = client.get("/api/users?limit=1000", headers=auth_headers(me))
    assert response.status_code == 400
