"""HTTP client for the face2face video-synthesis service."""

import logging
from typing import Any, Dict, Optional

import httpx

from app.errors import TransportError

logger = logging.getLogger(__name__)


class Face2FaceClient:
    """Submits synthesis tasks and queries their status by job code."""

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _build_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout, trust_env=False)

    async def submit(self, param: Dict[str, Any]) -> Dict[str, Any]:
        """POST the task. Returns the raw ``{code, msg, ...}`` body."""
        return await self._request("POST", "/submit", json=param)

    async def query(self, code: str) -> Dict[str, Any]:
        """Returns the raw ``{code, msg, data: {...}}`` status body."""
        return await self._request("GET", "/query", params={"code": code})

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        url = f"{self._base_url}{path}"
        try:
            async with self._build_client() as client:
                response = await client.request(method, url, **kwargs)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"face2face {path} returned {e.response.status_code}: {e.response.text}")
            raise TransportError(
                f"face2face {path} returned {e.response.status_code}",
                e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"face2face {path} request failed: {e}")
            raise TransportError(f"face2face {path} request failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"face2face {path} returned a non-JSON body") from e
        logger.debug(f"face2face {path} response: {payload}")
        return payload
