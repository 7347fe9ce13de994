# ruff: noqa: INP001
"""Dashboard error taxonomy mapped to `{"error", "request_id"}` responses."""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from queuewatch.core import error_handling
from queuewatch.core.error_handling import REQUEST_ID_HEADER, install_error_handling
from queuewatch.core.errors import (
    AccessDenied,
    BackingStoreUnavailable,
    DashboardError,
    NotFoundError,
    QueryFailure,
    ValidationFailure,
)


def _app_raising(exc: Exception) -> FastAPI:
    app = FastAPI()
    install_error_handling(app)

    @app.get("/api/task/{task_id}")
    def get_task(task_id: int) -> None:
        raise exc

    return app


@pytest.mark.parametrize(
    ("exc", "expected_status"),
    [
        (NotFoundError("Task not found: 9"), 404),
        (ValidationFailure("Path parameter is required"), 400),
        (AccessDenied("Access denied"), 403),
        (BackingStoreUnavailable("Database not found"), 500),
        (QueryFailure("Query failed"), 500),
    ],
)
def test_dashboard_errors_map_to_status_and_message(
    exc: DashboardError,
    expected_status: int,
) -> None:
    client = TestClient(_app_raising(exc), raise_server_exceptions=False)
    resp = client.get("/api/task/9")

    assert resp.status_code == expected_status
    body = resp.json()
    assert body == {"error": exc.message, "request_id": body["request_id"]}
    assert resp.headers.get(REQUEST_ID_HEADER) == body["request_id"]


def test_unhandled_exception_returns_500_with_request_id() -> None:
    client = TestClient(_app_raising(RuntimeError("boom")), raise_server_exceptions=False)
    resp = client.get("/api/task/9")

    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Internal Server Error"
    assert "boom" not in resp.text
    assert resp.headers.get(REQUEST_ID_HEADER) == body["request_id"]


def test_non_numeric_task_id_is_a_validation_error() -> None:
    client = TestClient(_app_raising(NotFoundError("unreachable")))
    resp = client.get("/api/task/abc")

    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "Request validation failed"
    assert isinstance(body.get("detail"), list)
    assert resp.headers.get(REQUEST_ID_HEADER) == body["request_id"]


def test_unknown_route_returns_json_error() -> None:
    app = FastAPI()
    install_error_handling(app)

    resp = TestClient(app).get("/api/widget/1")

    assert resp.status_code == 404
    assert resp.json()["error"] == "Not Found"


def test_client_provided_request_id_is_echoed_once() -> None:
    client = TestClient(_app_raising(NotFoundError("Task not found: 9")))
    resp = client.get("/api/task/9", headers={REQUEST_ID_HEADER: "  req-123  "})

    assert resp.status_code == 404
    assert resp.json()["request_id"] == "req-123"
    assert resp.headers.get_list(REQUEST_ID_HEADER) == ["req-123"]


def test_health_route_skips_request_logs_when_disabled(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    infos: list[str] = []
    monkeypatch.setattr(error_handling.settings, "request_log_include_health", False)
    monkeypatch.setattr(
        error_handling.logger,
        "info",
        lambda message, *args, **kwargs: infos.append(message),
    )

    app = FastAPI()
    install_error_handling(app)

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    resp = TestClient(app).get("/healthz")

    assert resp.status_code == 200
    assert isinstance(resp.headers.get(REQUEST_ID_HEADER), str)
    assert "http.request.completed" not in infos
