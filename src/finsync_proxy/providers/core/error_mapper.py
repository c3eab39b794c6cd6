"""Domain concept for mapping proxy exceptions to HTTP responses."""
import asyncio
from dataclasses import dataclass
from typing import Any

import httpx

from finsync_proxy.providers.core.exceptions import (UPSTREAM_USER_MESSAGE,
                                                     ProxyError,
                                                     UpstreamCallFailure)


@dataclass(frozen=True)
class ProxyErrorMapper:
    """Maps proxy/upstream exceptions to HTTP (status_code, body).

    The body always carries a machine-readable ``error`` and a user-facing
    ``message``; ``details`` is included when there is diagnostic text
    (e.g. the raw upstream error body).
    """

    api_name: str = "Friend API"

    def to_http(self, exc: Exception) -> tuple[int, dict[str, Any]]:
        """Map an exception to (status_code, body) for a JSON response."""
        if isinstance(exc, ProxyError):
            body: dict[str, Any] = {"error": exc.error, "message": exc.user_message}
            if exc.details:
                body["details"] = exc.details
            status = exc.status_code
            if isinstance(exc, UpstreamCallFailure) and status < 400:
                status = 502
            return status, body
        if isinstance(exc, httpx.TimeoutException | asyncio.TimeoutError | TimeoutError):
            return 504, {
                "error": f"Request to {self.api_name} timed out",
                "message": UPSTREAM_USER_MESSAGE,
            }
        if isinstance(exc, httpx.HTTPError):
            return 502, {
                "error": f"{self.api_name} error",
                "details": str(exc),
                "message": UPSTREAM_USER_MESSAGE,
            }
        return 500, {"error": "Internal server error", "message": UPSTREAM_USER_MESSAGE}
