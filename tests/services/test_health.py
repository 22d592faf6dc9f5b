"""Health probes and the global error handlers."""

import json

from starlette.requests import Request

import sitetrack.infrastructure.database as db_module
from sitetrack.api.error_handlers import generic_error_handler, sitetrack_error_handler
from sitetrack.core.errors import DatabaseError, SinkWriteError


def _request(path="/api/v1/visits"):
    return Request({
        "type": "http", "method": "POST", "path": path,
        "headers": [], "query_string": b"",
    })


async def test_liveness(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["status"] == "healthy"


async def test_readiness_with_database(client):
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json()["checks"]["database"] == "healthy"


async def test_readiness_without_database(client, monkeypatch):
    monkeypatch.setattr(db_module, "db_manager", None)
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 503
    assert res.json()["reason"] == "database_unavailable"


async def test_domain_error_maps_to_structured_response():
    res = await sitetrack_error_handler(_request(), DatabaseError("timeout", "commit"))
    body = json.loads(res.body)
    assert res.status_code == 503
    assert body["error"]["code"] == "DATABASE_ERROR"
    assert body["error"]["severity"] == "critical"


async def test_sink_error_carries_sink_name():
    res = await sitetrack_error_handler(_request(), SinkWriteError("HTTP 500", "system_logs"))
    body = json.loads(res.body)
    assert res.status_code == 502
    assert body["error"]["context"]["sink"] == "system_logs"


async def test_generic_error_hides_details():
    res = await generic_error_handler(_request(), RuntimeError("secret dsn"))
    assert res.status_code == 500
    assert b"secret" not in res.body
