import logging

from fastapi.testclient import TestClient

from app import create_app


def test_root_lists_capabilities(client):
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["version"] == "2.0.0"
    assert body["endpoints"]["users"] == "/api/users"
    assert "DELETE /api/users/:id" in body["documentation"]


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "healthy"
    assert body["database"] == "PostgreSQL"
    assert body["timestamp"].endswith("Z")


def test_lifespan_initializes_and_closes_database(database):
    app = create_app(database=database, development=False)

    with TestClient(app) as client:
        assert database.initialized
        assert database.connected
        assert client.get("/api/users").status_code == 200

    assert not database.connected


def test_security_headers_are_set(client):
    response = client.get("/health")

    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["x-frame-options"] == "SAMEORIGIN"
    assert "content-security-policy" in response.headers
    assert "x-trace-id" in response.headers


def test_cors_allows_any_origin(client):
    response = client.get("/api/users", headers={"Origin": "https://example.com"})

    assert response.headers["access-control-allow-origin"] == "*"


def test_cors_preflight(client):
    response = client.options(
        "/api/users",
        headers={"Origin": "https://example.com", "Access-Control-Request-Method": "PATCH"},
    )

    assert response.status_code == 200
    assert "PATCH" in response.headers["access-control-allow-methods"]


def test_unknown_route_returns_not_found_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {
        "success": False,
        "error": "Not Found",
        "message": "Not Found - /api/nothing-here",
    }
    assert response.headers["x-content-type-options"] == "nosniff"


def test_unsupported_method_returns_not_found_envelope(client):
    response = client.delete("/api/users")

    assert response.status_code == 404
    assert response.json()["error"] == "Not Found"


def test_unexpected_exception_returns_server_error_envelope(app):
    @app.get("/boom")
    async def boom():
        raise RuntimeError("kaboom")

    # Default client re-raises anything that reaches the server error layer
    with TestClient(app) as client:
        response = client.get("/boom", headers={"Origin": "https://example.com"})

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "Server Error"
    assert body["message"] == "An unexpected error occurred"
    assert "kaboom" not in response.text
    assert body["trace_id"]
    assert response.headers["x-trace-id"] == body["trace_id"]
    assert response.headers["x-content-type-options"] == "nosniff"
    assert response.headers["access-control-allow-origin"] == "*"


def test_request_logging_only_in_development(database, caplog):
    with caplog.at_level(logging.INFO, logger="middleware.request_logging"):
        with TestClient(create_app(database=database, development=False)) as client:
            client.get("/api/users")
        assert not [r for r in caplog.records if r.name == "middleware.request_logging"]

        with TestClient(create_app(database=database, development=True)) as client:
            client.get("/api/users?x=1")

    messages = [r.getMessage() for r in caplog.records if r.name == "middleware.request_logging"]
    assert len(messages) == 1
    assert messages[0].startswith("GET /api/users?x=1 200 ")
