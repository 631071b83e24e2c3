"""JSON-over-HTTP request executor shared by every storefront service.

The gateway owns the ``httpx.AsyncClient`` and knows nothing about the
catalog or the social graph: it resolves an endpoint against the configured
base URL, sends an optional JSON body and returns the decoded JSON document.
Failures are raised as :class:`GatewayError` subclasses so that callers can
decide how to degrade; the gateway itself never retries.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import httpx

from furni.monitoring import setup_request_monitoring
from furni.schemas.error import ErrorType, FurniError
from furni.settings import AppSettings
from furni.utils.request_context import REQUEST_ID_HEADER, ensure_request_id

logger = logging.getLogger(__name__)

# Status codes for which an empty body is a complete, successful answer.
_EMPTY_BODY_STATUSES = frozenset({204, 205})


class GatewayError(FurniError):
    """Base class for request failures surfaced by :class:`RemoteGateway`."""

    def __init__(
        self,
        message: str,
        *,
        method: str,
        url: str,
        status_code: int | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message, detail=detail)
        self.method = method
        self.url = url
        self.status_code = status_code


class NetworkError(GatewayError):
    """Transport failure or non-2xx response."""

    error_type = ErrorType.NETWORK_ERROR


class ResponseParseError(GatewayError):
    """A response arrived but its body is not JSON of the expected shape."""

    error_type = ErrorType.PARSE_ERROR


class RemoteGateway:
    """Issue JSON requests against a fixed base URL."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        slow_request_threshold: float | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/") + "/"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )
        if slow_request_threshold is not None:
            setup_request_monitoring(self._client, slow_request_threshold)

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> RemoteGateway:
        """Build a gateway configured from :class:`AppSettings`."""

        return cls(
            settings.resolved_api_base_url,
            timeout=settings.request_timeout_seconds,
            transport=transport,
            slow_request_threshold=settings.slow_request_threshold,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def url_for(self, endpoint: str) -> str:
        """Return the absolute URL ``endpoint`` resolves to."""

        return self._base_url + endpoint.lstrip("/")

    async def get(self, endpoint: str) -> Any:
        return await self.request("GET", endpoint)

    async def post(self, endpoint: str, payload: Mapping[str, Any] | None = None) -> Any:
        return await self.request("POST", endpoint, payload)

    async def delete(self, endpoint: str, payload: Mapping[str, Any] | None = None) -> Any:
        return await self.request("DELETE", endpoint, payload)

    async def send(
        self,
        method: str,
        endpoint: str,
        payload: Mapping[str, Any] | None = None,
    ) -> httpx.Response:
        """Send the request and return the raw response whatever its status.

        Raises:
            NetworkError: the request could not be completed.
        """

        url = self.url_for(endpoint)
        request_id = ensure_request_id()
        fields = sorted(payload) if payload else []
        logger.debug(f"Starting {method} {url} (fields: {fields}) [{request_id}]")

        try:
            response = await self._client.request(
                method,
                url,
                json=dict(payload) if payload is not None else None,
                headers={REQUEST_ID_HEADER: request_id},
            )
        except httpx.HTTPError as exc:
            logger.warning(f"Request {method} {url} failed [{request_id}]: {exc}")
            raise NetworkError(
                "Request failed", method=method, url=url, detail=str(exc)
            ) from exc

        logger.debug(f"Finished {method} {url}: {response.status_code} [{request_id}]")
        return response

    async def request(
        self,
        method: str,
        endpoint: str,
        payload: Mapping[str, Any] | None = None,
    ) -> Any:
        """Send ``method`` to ``endpoint`` and return the decoded JSON body.

        Raises:
            NetworkError: the request could not be completed or returned a
                non-2xx status.
            ResponseParseError: the body is not valid JSON.
        """

        response = await self.send(method, endpoint, payload)
        url = str(response.request.url)
        request_id = response.request.headers.get(REQUEST_ID_HEADER, "")

        if not response.is_success:
            logger.warning(
                f"Request {method} {url} returned status {response.status_code} "
                f"[{request_id}]: {response.text[:500]}"
            )
            raise NetworkError(
                f"Unexpected status {response.status_code}",
                method=method,
                url=url,
                status_code=response.status_code,
                detail=response.text[:500] or None,
            )

        if response.status_code in _EMPTY_BODY_STATUSES:
            return None

        try:
            return response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.warning(
                f"Response to {method} {url} is not JSON [{request_id}]: "
                f"{response.text[:500]!r}"
            )
            raise ResponseParseError(
                "Response body is not JSON",
                method=method,
                url=url,
                status_code=response.status_code,
                detail=str(exc),
            ) from exc

    async def aclose(self) -> None:
        """Close the underlying HTTP client when the gateway created it."""

        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> RemoteGateway:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = [
    "GatewayError",
    "NetworkError",
    "RemoteGateway",
    "ResponseParseError",
]
