def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "HackConnect API is running..."}


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_unknown_route_envelope(client):
    response = client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": "not_found",
        "message": "Not Found - /api/nowhere"
    }


def test_malformed_token_is_unauthorized(client):
    response = client.get("/api/teams", headers={"Authorization": "Token abc"})
    assert response.status_code == 401
    assert response.json()["error"] == "unauthorized"


def test_non_object_body_is_bad_request(client, make_user, auth_headers):
    response = client.post("/api/teams", json=["Alpha"], headers=auth_headers(make_user()))
    assert response.status_code == 400
    assert response.json()["success"] is False


def test_path_param_type_is_bad_request(client, make_user, auth_headers):
    response = client.get("/api/teams/alpha", headers=auth_headers(make_user()))
    assert response.status_code == 400
    assert response.json()["error"] == "bad_request"
