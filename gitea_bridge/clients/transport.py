"""
HTTP transport shared by every Gitea call.

Wraps ``httpx`` so callers receive parsed bodies or a ``TransportError``
carrying the status code, and keeps track of whether the network is reachable.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from gitea_bridge.core.errors import TransportError

logger = logging.getLogger(__name__)


class ConnectivityState:
    """Tracks whether the last network attempt could reach a server."""

    def __init__(self, offline: bool = False) -> None:
        self._offline = offline

    @property
    def offline(self) -> bool:
        return self._offline

    def mark_offline(self) -> None:
        if not self._offline:
            logger.warning("Network unreachable; switching to offline mode.")
        self._offline = True

    def mark_online(self) -> None:
        if self._offline:
            logger.info("Network reachable again.")
        self._offline = False


class TransportClient:
    """Perform HTTP requests and return parsed response bodies."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        connectivity: Optional[ConnectivityState] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self.connectivity = connectivity or ConnectivityState()

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Send a request; JSON bodies are decoded, empty bodies yield ``None``."""
        request_headers: Dict[str, str] = {"Accept": "application/json"}
        request_headers.update(headers or {})

        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            try:
                response = await client.request(
                    method,
                    url,
                    params=_clean_params(params),
                    json=json,
                    headers=request_headers,
                )
            except (httpx.NetworkError, httpx.ConnectTimeout) as exc:
                self.connectivity.mark_offline()
                raise TransportError(f"{method} {url} failed: {exc}") from exc
            except httpx.HTTPError as exc:
                raise TransportError(f"{method} {url} failed: {exc}") from exc

        self.connectivity.mark_online()

        if response.is_error:
            logger.debug("%s %s returned %s", method, url, response.status_code)
            raise TransportError(
                f"{method} {url} returned HTTP {response.status_code}",
                status=response.status_code,
                body=response.text,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text


def _clean_params(params: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    if params is None:
        return None
    cleaned: Dict[str, Any] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[key] = value
    return cleaned


__all__ = ["ConnectivityState", "TransportClient"]
