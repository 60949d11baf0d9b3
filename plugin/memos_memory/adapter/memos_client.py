"""HTTP adapter for the MemOS REST gateway.

Endpoints used by the hooks:

- ``POST /product/search``         memory retrieval (text, skill, preference)
- ``POST /product/chat/complete``  free-text completion (relevance judge, summaries)
- ``POST /product/add``            persist one memory
- ``GET  /product/scheduler/allstatus``  liveness probe

Every call is bounded by a wall-clock timeout.  Any failure, including a
non-2xx status or a body that is not a JSON object, surfaces as
:class:`MemosRequestError`; callers decide whether that means "fall back" or
"emit nothing".
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, Optional

import httpx

from memos_memory.config import MemosConfig
from memos_memory.errors import MemosRequestError

logger = logging.getLogger(__name__)

SEARCH_PATH = "/product/search"
COMPLETE_PATH = "/product/chat/complete"
ADD_PATH = "/product/add"
STATUS_PATH = "/product/scheduler/allstatus"


class MemosClient:
    """Async client for one hook invocation."""

    def __init__(
        self,
        config: MemosConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.api_url,
            headers=config.headers(),
            transport=transport,
            # Wall-clock limits are enforced per call in ``_request``.
            timeout=None,
        )

    @property
    def config(self) -> MemosConfig:
        return self._config

    async def __aenter__(self) -> "MemosClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # -- Endpoints -----------------------------------------------------

    async def search(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request_json(
            "POST", SEARCH_PATH, body, self._config.search_timeout
        )

    async def complete(self, body: Dict[str, Any], timeout: float) -> Dict[str, Any]:
        return await self._request_json("POST", COMPLETE_PATH, body, timeout)

    async def add(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request_json(
            "POST", ADD_PATH, body, self._config.add_timeout
        )

    async def health(self) -> int:
        """Return the HTTP status of the liveness probe.

        Raises :class:`MemosRequestError` only when the gateway is unreachable.
        """
        response = await self._request("GET", STATUS_PATH, None, self._config.health_timeout)
        return response.status_code

    # -- Internal helpers ----------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]],
        timeout: float,
    ) -> httpx.Response:
        start = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self._client.request(method, path, json=body), timeout=timeout
            )
        except asyncio.TimeoutError as exc:
            raise MemosRequestError(f"{method} {path} timed out after {timeout}s") from exc
        except httpx.HTTPError as exc:
            raise MemosRequestError(f"{method} {path} failed: {exc}") from exc

        elapsed_ms = (time.monotonic() - start) * 1000
        logger.debug(
            "memos.request %s %s status=%d elapsed_ms=%.1f",
            method, path, response.status_code, elapsed_ms,
        )
        return response

    async def _request_json(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]],
        timeout: float,
    ) -> Dict[str, Any]:
        response = await self._request(method, path, body, timeout)
        if not response.is_success:
            raise MemosRequestError(
                f"{method} {path} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise MemosRequestError(
                f"{method} {path} returned a non-JSON body",
                status_code=response.status_code,
            ) from exc
        if not isinstance(data, dict):
            raise MemosRequestError(
                f"{method} {path} returned {type(data).__name__}, expected an object",
                status_code=response.status_code,
            )
        return data
