from fastapi.testclient import TestClient

from gigmarket.main import app
from gigmarket.utils.errors import AppError, ErrorKind


def test_unknown_route_uses_envelope(client):
    response = client.get("/api/v1/does-not-exist")

    assert response.status_code == 404
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Endpoint was not found"
    assert "stack" in body


def test_security_headers(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Cache-Control"] == "no-store"


def test_error_kinds_carry_default_status():
    assert AppError(ErrorKind.RATE_LIMITED, "x").status_code == 429
    assert AppError(ErrorKind.NOT_FOUND, "x").status_code == 404
    assert AppError(ErrorKind.NOT_FOUND, "x", status_code=400).status_code == 400
    assert AppError(ErrorKind.INTERNAL, "x").status_code == 500


def test_unhandled_errors_become_500_envelope():
    @app.get("/api/test-boom")
    async def boom():
        raise RuntimeError("boom")

    try:
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/api/test-boom")
    finally:
        app.router.routes = [r for r in app.router.routes if getattr(r, "path", None) != "/api/test-boom"]

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["statusCode"] == 500
