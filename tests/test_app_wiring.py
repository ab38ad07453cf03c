# ruff: noqa

from __future__ import annotations

import json
import logging

from fastapi.testclient import TestClient

from release_planner.core.logging import TRACE_LEVEL, JsonFormatter
from release_planner.main import app


def test_health_probes_return_ok() -> None:
    client = TestClient(app)

    for path in ("/health", "/healthz", "/readyz"):
        resp = client.get(path)
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}


def test_planning_routes_are_registered() -> None:
    paths = {route.path for route in app.routes}

    assert "/api/v1/organizations/{organization_id}/tasks/top" in paths
    assert "/api/v1/organizations/{organization_id}/solution" in paths
    assert "/api/v1/organizations/{organization_id}/tasks/{task_id}/rating" in paths
    assert "/api/v1/organizations/{organization_id}/members/{user_id}" in paths


def test_version_and_organization_routes_are_registered() -> None:
    routes = {
        (route.path, method)
        for route in app.routes
        for method in getattr(route, "methods", None) or ()
    }

    assert ("/api/v1/organizations", "GET") in routes
    assert ("/api/v1/organizations/{organization_id}", "DELETE") in routes
    assert ("/api/v1/organizations/{organization_id}/versions/{version_id}/restore", "POST") in routes
    assert ("/api/v1/organizations/{organization_id}/versions/{version_id}", "DELETE") in routes


def test_openapi_lists_planning_tags() -> None:
    schema = app.openapi()

    assert {tag["name"] for tag in schema["tags"]} >= {"organizations", "planning", "versions"}
    operation = schema["paths"]["/api/v1/organizations/{organization_id}/solution"]["get"]
    assert operation["tags"] == ["planning"]


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord(
        "release_planner.test", logging.INFO, __file__, 1, "ratings.%s", ("updated",), None
    )
    record.task_id = "t-1"

    payload = json.loads(JsonFormatter().format(record))

    assert payload["message"] == "ratings.updated"
    assert payload["level"] == "INFO"
    assert payload["task_id"] == "t-1"


def test_trace_level_is_registered() -> None:
    assert logging.getLevelName(TRACE_LEVEL) == "TRACE"
