"""Async HTTP client for the Friend API finance backend."""
import logging
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any

import httpx

from finsync_proxy.providers.core.exceptions import (UpstreamCallFailure,
                                                     UpstreamTimeout)

logger = logging.getLogger(__name__)

LOGIN_PATH = "/api/input/login"
NEW_USER_PATH = "/api/input/newUser"
UPDATE_USER_PATH = "/api/input/updateUser"
PROFIT_LOSS_PATH = "/api/output/calculateProfitOrLoss"
PREDICT_PATH = "/api/output/predict"


def stock_path(symbol: str) -> str:
    return f"/api/output/stocks/{symbol}"


class _RejectAllCookies(DefaultCookiePolicy):
    """Cookie policy that never stores a cookie in the shared client."""

    def set_ok(self, cookie, request) -> bool:  # noqa: ANN001
        return False


class FriendApiClient:
    """Thin wrapper over ``httpx.AsyncClient`` bound to the Friend API base URL.

    One client is shared by every user, so its cookie jar refuses all
    cookies and callers pass the ``Cookie`` header explicitly per request.
    Transport problems are raised as proxy errors;
    HTTP error statuses are returned to the caller untouched.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Friend API root, e.g. "https://finance-portfolio-management-apis.onrender.com".
            timeout: Per-call timeout in seconds (connect, read, write and pool).
            transport: Optional httpx transport (used by tests to fake the API).
        """
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers={"Accept": "application/json"},
            timeout=httpx.Timeout(timeout),
            transport=transport,
            cookies=CookieJar(policy=_RejectAllCookies()),
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send one request; returns the response whatever its status.

        Raises:
            UpstreamTimeout: the call exceeded the configured timeout.
            UpstreamCallFailure: the Friend API could not be reached (status 502).
        """
        try:
            response = await self._client.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.TimeoutException as exc:
            logger.warning("Friend API %s %s timed out", method, path)
            raise UpstreamTimeout(f"{method} {path} timed out") from exc
        except httpx.TransportError as exc:
            logger.warning("Friend API %s %s unreachable: %s", method, path, exc)
            raise UpstreamCallFailure(
                502, str(exc), error="External API unreachable"
            ) from exc
        logger.debug("Friend API %s %s -> %s", method, path, response.status_code)
        return response

    async def login(self, email: str, password: str) -> httpx.Response:
        """``POST /api/input/login``; a 2xx response carries the session ``Set-Cookie``."""
        return await self.request(
            "POST",
            LOGIN_PATH,
            json={"email": email, "password": password},
            headers={"Content-Type": "application/json"},
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
