"""HTTP Telemetry Sink — posts visit/log records to a remote sitetrack ingest API.

Invariants:
    - One POST per record: site_visits → /api/v1/visits, system_logs → /api/v1/logs
    - 2xx is success (200 duplicate visit included); anything else raises SinkWriteError
    - Transport errors (timeout, connect, protocol) raise SinkWriteError
    - No retries and no offline queue: delivery is best-effort

Design Decisions:
    - httpx.AsyncClient injected or owned: tests pass one built on httpx.MockTransport
"""

import logging

import httpx

from sitetrack.core.domain_types import RecordSink
from sitetrack.core.errors import SinkWriteError

logger = logging.getLogger(__name__)

SINK_PATHS = {
    RecordSink.VISITS: "/api/v1/visits",
    RecordSink.LOGS: "/api/v1/logs",
}


class HttpTelemetrySink:
    """TelemetrySink over HTTP."""

    def __init__(
        self,
        endpoint_url: str,
        timeout: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.endpoint_url = endpoint_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def insert(self, sink: RecordSink, record: dict) -> None:
        url = f"{self.endpoint_url}{SINK_PATHS[sink]}"
        try:
            response = await self._client.post(url, json=record)
        except httpx.HTTPError as e:
            raise SinkWriteError(f"{type(e).__name__}: {e}", sink.value)

        if response.is_success:
            return
        raise SinkWriteError(
            f"HTTP {response.status_code}", sink.value,
            status_code=response.status_code,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
