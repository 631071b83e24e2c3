"""Logging setup and request performance monitoring for the storefront client.

This module provides tools to time gateway requests and identify slow backend
endpoints.
"""

import logging
import time
from typing import Any

import httpx

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_START_TIME_EXTENSION = "furni.start_time"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Configure the root logger once with the project-wide format."""

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger().setLevel(level)


def setup_request_monitoring(
    client: httpx.AsyncClient,
    slow_request_threshold: float = 1.0,
) -> None:
    """Set up request performance monitoring on ``client``.

    This will log warnings for requests that exceed the slow request threshold,
    helping identify slow backend endpoints.

    Args:
        client: HTTP client to monitor
        slow_request_threshold: Log requests slower than this many seconds (default: 1.0s)
    """

    async def receive_request(request: httpx.Request) -> None:
        """Record request start time."""
        request.extensions[_START_TIME_EXTENSION] = time.perf_counter()

    async def receive_response(response: httpx.Response) -> None:
        """Log slow requests once the response headers arrived."""
        request = response.request
        started: Any = request.extensions.get(_START_TIME_EXTENSION)
        if started is None:
            return

        total = time.perf_counter() - started
        if total > slow_request_threshold:
            logger.warning(
                f"Slow request detected ({total:.3f}s): {request.method} {request.url}",
                extra={
                    "duration_seconds": total,
                    "status_code": response.status_code,
                    "threshold_seconds": slow_request_threshold,
                },
            )
        else:
            logger.debug(
                f"{request.method} {request.url} finished in {total:.3f}s "
                f"with status {response.status_code}"
            )

    client.event_hooks["request"].append(receive_request)
    client.event_hooks["response"].append(receive_response)

    logger.info(
        f"Request performance monitoring enabled "
        f"(slow request threshold: {slow_request_threshold}s)"
    )


__all__ = ["LOG_FORMAT", "configure_logging", "setup_request_monitoring"]
