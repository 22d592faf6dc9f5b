"""HTTP Telemetry Sink — one POST per record, any non-2xx is a SinkWriteError.

Design Decisions:
    - httpx.MockTransport for unit cases; the real ASGI app for the end-to-end case
"""

import json

import httpx
import pytest

from sitetrack.core.domain_types import RecordSink
from sitetrack.core.errors import SinkWriteError
from sitetrack.infrastructure.http_sink import HttpTelemetrySink


def _sink(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpTelemetrySink("https://ingest.example.com/", client=client), client


async def test_posts_visit_to_visits_path():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(201, json={"status": "created"})

    sink, _ = _sink(handler)
    await sink.insert(RecordSink.VISITS, {"visitor_id": "v_1_a"})

    assert seen[0].method == "POST"
    assert str(seen[0].url) == "https://ingest.example.com/api/v1/visits"
    assert json.loads(seen[0].content) == {"visitor_id": "v_1_a"}


async def test_posts_log_to_logs_path():
    seen = []

    def handler(request):
        seen.append(request.url.path)
        return httpx.Response(201, json={})

    sink, _ = _sink(handler)
    await sink.insert(RecordSink.LOGS, {"source": "X", "message": "m"})
    assert seen == ["/api/v1/logs"]


async def test_duplicate_200_is_success():
    sink, _ = _sink(lambda request: httpx.Response(200, json={"status": "duplicate"}))
    await sink.insert(RecordSink.VISITS, {})


async def test_server_error_raises_with_status():
    sink, _ = _sink(lambda request: httpx.Response(500))
    with pytest.raises(SinkWriteError) as exc_info:
        await sink.insert(RecordSink.VISITS, {})
    assert exc_info.value.status_code == 500
    assert exc_info.value.sink == "site_visits"


async def test_transport_error_raises():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    sink, _ = _sink(handler)
    with pytest.raises(SinkWriteError) as exc_info:
        await sink.insert(RecordSink.LOGS, {})
    assert exc_info.value.status_code is None


async def test_injected_client_not_closed():
    sink, client = _sink(lambda request: httpx.Response(201))
    await sink.aclose()
    assert client.is_closed is False
    await client.aclose()


async def test_owned_client_closed():
    sink = HttpTelemetrySink("https://ingest.example.com")
    await sink.aclose()
    assert sink._client.is_closed is True


async def test_end_to_end_against_ingest_api(client):
    sink = HttpTelemetrySink("http://test", client=client)
    record = {
        "event_id": "6f1c0c1e-54a3-4a4e-9a53-8f0b8a6f4e01",
        "visitor_id": "v_1_a",
        "session_id": "s_1_b",
        "page_url": "/shop",
    }
    await sink.insert(RecordSink.VISITS, record)
    await sink.insert(RecordSink.VISITS, record)

    res = await client.get("/api/v1/visits/stats", params={"range": "24h"})
    assert res.json()["page_views"] == 1
