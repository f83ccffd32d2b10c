import json

import pytest
from fastapi.testclient import TestClient
from starlette.requests import Request

from app.middleware.exceptions import global_exception_handler


def test_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.headers["X-Request-ID"]


def test_http_errors_use_the_error_envelope(client: TestClient, user_headers):
    response = client.get("/exams/31337", headers={**user_headers, "X-Request-ID": "req-123"})

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == {"code": "NOT_FOUND", "message": "Exam not found.", "details": None}
    assert body["path"] == "/exams/31337"
    assert body["request_id"] == "req-123"
    assert response.headers["X-Request-ID"] == "req-123"


def test_validation_errors_list_the_bad_fields(client: TestClient, admin_headers):
    response = client.post("/exams/", headers=admin_headers, json={"exam_type": "Reading"})

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert any("exam_name" in e["loc"] for e in error["details"]["validation_errors"])


@pytest.mark.asyncio
async def test_unhandled_errors_hide_internals():
    request = Request({
        "type": "http",
        "method": "GET",
        "path": "/exams/",
        "query_string": b"",
        "headers": [],
        "scheme": "http",
        "server": ("testserver", 80),
        "root_path": "",
    })
    request.state.request_id = "req-500"

    response = await global_exception_handler(request, RuntimeError("database password is hunter2"))

    assert response.status_code == 500
    body = json.loads(response.body)
    assert body["error"]["code"] == "INTERNAL_SERVER_ERROR"
    assert body["error"]["message"] == "An unexpected error occurred"
    assert "hunter2" not in response.body.decode()
    assert body["request_id"] == "req-500"
