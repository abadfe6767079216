def test_health(client, alice):
    resp = client.get("/api/v1/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok", "version": "1.0.0", "users": 1}


def test_root_points_to_docs(client):
    body = client.get("/").get_json()
    assert body["docs"] == "/apidocs/"


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/v1/nothing-here")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "NOT_FOUND"


def test_swagger_spec_lists_routes(client):
    paths = client.get("/swagger.json").get_json()["paths"]
    assert "/api/v1/auth/refresh" in paths
    assert "/api/v1/articles/{article_id}/like" in paths
