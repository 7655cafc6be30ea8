"""Analytics adapters: structured log lines or HTTP delivery to a collector."""

import logging
from typing import Any

import httpx

from leitbox.domain.constants import ANALYTICS_TIMEOUT
from leitbox.domain.ports import AnalyticsSink


class LoggingAnalyticsSink(AnalyticsSink):
    """Emits each event as an INFO log line for QA and event verification."""

    def __init__(self, logger_name: str = "leitbox.analytics"):
        self.logger = logging.getLogger(logger_name)

    async def track(self, event: str, payload: dict[str, Any]) -> None:
        self.logger.info(f"[analytics] {event} {payload}")


class HttpAnalyticsSink(AnalyticsSink):
    """POSTs ``{"event": ..., "payload": ...}`` to a collector endpoint."""

    def __init__(
        self,
        url: str,
        timeout: float = ANALYTICS_TIMEOUT,
        client: httpx.AsyncClient | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)
        self._client = client

    async def track(self, event: str, payload: dict[str, Any]) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        resp = await self._client.post(self.url, json={"event": event, "payload": payload})
        resp.raise_for_status()
        self.logger.debug(f"Delivered '{event}' to {self.url}")

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None
