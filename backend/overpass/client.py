from __future__ import annotations

import logging
from typing import Any

import httpx

from overpass.config import client_deadline_s, overpass_timeout_s, overpass_url
from overpass.errors import (
    OverpassResponseError,
    OverpassStatusError,
    OverpassTransportError,
)
from overpass.query import build_query

logger = logging.getLogger(__name__)


class OverpassClient:
    """
    Thin async wrapper around the Overpass interpreter endpoint.

    A fresh `httpx.AsyncClient` is opened per fetch so the client is safe to share
    across event loops. Tests inject an `httpx.MockTransport`.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        timeout_s: int | None = None,
        deadline_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url or overpass_url()
        self.timeout_s = timeout_s if timeout_s is not None else overpass_timeout_s()
        self.deadline_s = deadline_s if deadline_s is not None else client_deadline_s(self.timeout_s)
        self._transport = transport

    async def fetch(self, bbox: str) -> dict[str, Any]:
        """
        Run the footprint query for `bbox` and return the decoded JSON document.

        Raises:
            OverpassTransportError: connection failure or client deadline exceeded
            OverpassStatusError: non-2xx response
            OverpassResponseError: body is not a JSON object
        """
        query = build_query(bbox, timeout_s=self.timeout_s)
        logger.debug("Overpass request for bbox %s", bbox)

        async with httpx.AsyncClient(transport=self._transport, timeout=self.deadline_s) as client:
            try:
                response = await client.get(self.url, params={"data": query})
            except httpx.TimeoutException as e:
                raise OverpassTransportError(
                    f"Overpass API timed out after {self.deadline_s:.0f}s"
                ) from e
            except httpx.HTTPError as e:
                raise OverpassTransportError(f"Overpass API unreachable: {e}") from e

        if not response.is_success:
            raise OverpassStatusError(response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise OverpassResponseError("Overpass API returned invalid JSON") from e
        if not isinstance(data, dict):
            raise OverpassResponseError("Overpass API returned an unexpected document")
        return data
