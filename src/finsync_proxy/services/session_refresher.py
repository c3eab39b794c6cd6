"""Re-authenticate to the Friend API and keep the stored session cookie current."""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from finsync_proxy.credentials import CredentialStoreABC, extract_cookie_pairs
from finsync_proxy.providers.core import (ProxyError, RetryExhausted,
                                          UpstreamAuthFailure,
                                          retry_with_backoff)
from finsync_proxy.providers.friend_api import FriendApiClient

logger = logging.getLogger(__name__)


class RefreshFailure(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    UPSTREAM_REJECTED = "upstream_rejected"
    UPSTREAM_UNREACHABLE = "upstream_unreachable"


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of a login round-trip. Never carries a fabricated cookie."""

    ok: bool
    cookie: str | None = None
    token: str | None = None
    reason: RefreshFailure | None = None
    details: str | None = None

    @classmethod
    def success(cls, cookie: str | None, token: str | None = None) -> "RefreshResult":
        return cls(ok=True, cookie=cookie or None, token=token)

    @classmethod
    def failure(cls, reason: RefreshFailure, details: str | None = None) -> "RefreshResult":
        return cls(ok=False, reason=reason, details=details)


@dataclass(frozen=True)
class LoginOutcome:
    """A successful Friend API login: body, replayable cookie and optional bearer token."""

    body: dict[str, Any]
    cookie: str | None
    token: str | None
    set_cookie_headers: list[str]


@dataclass(frozen=True)
class ServiceAccount:
    """Shared Friend API credential used only when no per-user credential applies."""

    email: str
    password: str

    @classmethod
    def from_settings(cls, email: str | None, password: str | None) -> "ServiceAccount | None":
        if not email or not password:
            return None
        return cls(email=email, password=password)


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class SessionRefresher:
    """Obtains fresh Friend API session cookies and writes them back to the store.

    Concurrent refreshes for the same user are not coalesced; each one logs
    in again and the last cookie written wins.
    """

    def __init__(
        self,
        client: FriendApiClient,
        store: CredentialStoreABC,
        *,
        service_account: ServiceAccount | None = None,
        fallback_attempts: int = 3,
        fallback_delay: float = 1.0,
    ) -> None:
        self._client = client
        self._store = store
        self._service_account = service_account
        self._fallback_attempts = fallback_attempts
        self._fallback_delay = fallback_delay

    async def login(self, email: str, password: str) -> LoginOutcome:
        """Log in once.

        Raises:
            UpstreamAuthFailure: the Friend API answered non-2xx (details = raw body).
            UpstreamTimeout, UpstreamCallFailure: the Friend API was unreachable.
        """
        response = await self._client.login(email, password)
        if not response.is_success:
            logger.warning("Friend API login rejected: %s", response.status_code)
            raise UpstreamAuthFailure(response.text, upstream_status=response.status_code)
        set_cookies = response.headers.get_list("set-cookie")
        body = _json_body(response)
        token = body.get("token")
        return LoginOutcome(
            body=body,
            cookie=extract_cookie_pairs(set_cookies) or None,
            token=token if isinstance(token, str) and token else None,
            set_cookie_headers=set_cookies,
        )

    async def refresh(self, user_id: str) -> RefreshResult:
        """Log in with the user's stored secret and persist the returned cookie."""
        secret = await self._store.get_secret(user_id)
        if secret is None:
            logger.info("No Friend API credentials stored for user %s", user_id)
            return RefreshResult.failure(RefreshFailure.MISSING_CREDENTIAL)

        try:
            outcome = await self.login(secret.email, secret.password)
        except ProxyError as exc:
            failure = self._failure_for(exc)
            logger.warning("Session refresh failed for user %s: %s", user_id, failure.reason)
            return failure

        if outcome.set_cookie_headers:
            await self._store.upsert_cookie(user_id, outcome.set_cookie_headers)
        logger.debug("Refreshed Friend API session for user %s", user_id)
        return RefreshResult.success(outcome.cookie, outcome.token)

    async def refresh_service_account(self) -> RefreshResult:
        """Log in with the shared service account, retrying with a fixed delay.

        Fails closed with MISSING_CREDENTIAL when no service account is configured.
        """
        account = self._service_account
        if account is None:
            return RefreshResult.failure(
                RefreshFailure.MISSING_CREDENTIAL, "No service account configured"
            )
        try:
            outcome = await retry_with_backoff(
                lambda: self.login(account.email, account.password),
                attempts=self._fallback_attempts,
                delay=self._fallback_delay,
                retry_on=lambda exc: isinstance(exc, ProxyError),
                label="Service account login",
            )
        except RetryExhausted as exc:
            logger.warning("Service account login gave up after %d attempts", exc.attempts)
            return self._failure_for(exc.last_error)
        return RefreshResult.success(outcome.cookie, outcome.token)

    @staticmethod
    def _failure_for(exc: BaseException) -> RefreshResult:
        details = getattr(exc, "details", None) or str(exc)
        if isinstance(exc, UpstreamAuthFailure):
            return RefreshResult.failure(RefreshFailure.UPSTREAM_REJECTED, details)
        return RefreshResult.failure(RefreshFailure.UPSTREAM_UNREACHABLE, details)

