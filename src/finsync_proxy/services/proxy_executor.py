"""Execute Friend API calls on behalf of a local user.

Every execution opens a fresh upstream session (login -> cookie), optionally
runs best-effort prelude writes, calls the target endpoint, persists any
rotated cookie and normalizes the payload.
"""
import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

import httpx

from finsync_proxy.credentials import (CredentialStoreABC, extract_cookie_pairs,
                                       merge_cookie_pairs)
from finsync_proxy.providers.core import (MalformedUpstreamResponse,
                                          MissingAuthorization,
                                          MissingCredential, ProxyError,
                                          UpstreamAuthFailure,
                                          UpstreamCallFailure, best_effort)
from finsync_proxy.providers.friend_api import FriendApiClient
from finsync_proxy.services.normalizer import EndpointKind, normalize
from finsync_proxy.services.session_refresher import (RefreshFailure,
                                                      RefreshResult,
                                                      SessionRefresher)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProxiedRequest:
    """Descriptor of one outbound Friend API call. Built per inbound request."""

    path: str
    method: str = "GET"
    body: Any = None
    params: dict[str, Any] | None = None
    requires_auth: bool = True
    failure_message: str = "Upstream request failed"


@dataclass
class UpstreamSession:
    """Auth material for one inbound request's upstream calls.

    ``user_id`` is None for service-account or anonymous sessions; rotated
    cookies are only persisted for user sessions.
    """

    user_id: str | None = None
    cookie: str | None = None
    token: str | None = None

    def headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.cookie:
            headers["Cookie"] = self.cookie
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers


def decode_payload(response: httpx.Response) -> Any:
    """Decode a JSON body.

    Raises:
        MalformedUpstreamResponse: the body is not JSON.
    """
    try:
        return response.json()
    except ValueError as exc:
        raise MalformedUpstreamResponse(response.text[:200]) from exc


class ProxyRequestExecutor:
    """Runs proxied requests with a freshly refreshed Friend API session."""

    def __init__(
        self,
        client: FriendApiClient,
        refresher: SessionRefresher,
        store: CredentialStoreABC,
    ) -> None:
        self._client = client
        self._refresher = refresher
        self._store = store

    async def open_session(self, user_id: str | None, *, requires_auth: bool) -> UpstreamSession:
        """Log in for ``user_id`` and return the headers material to replay.

        Requests that require auth fail closed when the refresh fails. Optional
        auth requests fall back to the service account, then to no auth at all.
        """
        if user_id is not None:
            result = await self._refresher.refresh(user_id)
            if result.ok:
                cookie = result.cookie
                if cookie is None:
                    # Login succeeded without Set-Cookie: replay the last stored cookie.
                    record = await self._store.get(user_id)
                    cookie = record.session_cookie if record else None
                return UpstreamSession(user_id=user_id, cookie=cookie, token=result.token)
            if requires_auth:
                raise self._auth_error(result)
            logger.warning(
                "User %s session unavailable (%s); using service account",
                user_id, result.reason.value,
            )
        elif requires_auth:
            raise MissingAuthorization()

        fallback = await self._refresher.refresh_service_account()
        if fallback.ok:
            return UpstreamSession(cookie=fallback.cookie, token=fallback.token)
        logger.warning(
            "Service account unavailable (%s); calling without auth", fallback.reason.value
        )
        return UpstreamSession()

    async def send(self, session: UpstreamSession, request: ProxiedRequest) -> httpx.Response:
        """Send ``request`` with the session headers; persist any rotated cookie.

        Raises:
            UpstreamCallFailure: non-2xx response (status and raw body preserved).
            UpstreamTimeout: the call timed out.
        """
        response = await self._client.request(
            request.method,
            request.path,
            json=request.body,
            params=request.params,
            headers=session.headers(),
        )
        await self._absorb_rotation(session, response)
        if not response.is_success:
            logger.warning(
                "Friend API %s %s failed: %s", request.method, request.path, response.status_code
            )
            raise UpstreamCallFailure(
                response.status_code, response.text, error=request.failure_message
            )
        return response

    async def execute(
        self,
        user_id: str | None,
        request: ProxiedRequest,
        kind: EndpointKind,
        *,
        symbol: str | None = None,
        prelude: Sequence[ProxiedRequest] = (),
    ) -> Any:
        """Refresh the session, run ``prelude`` best-effort, call ``request`` and normalize.

        Prelude failures are logged and never abort the target call.
        """
        session = await self.open_session(user_id, requires_auth=request.requires_auth)
        for step in prelude:
            await best_effort(
                self.send(session, step),
                label=f"{step.method} {step.path}",
                tolerate=(ProxyError,),
            )
        response = await self.send(session, request)
        return self._normalize(kind, response, symbol)

    async def execute_many(
        self,
        user_id: str | None,
        requests: Sequence[ProxiedRequest],
        kind: EndpointKind,
        *,
        symbols: Sequence[str | None] | None = None,
    ) -> list[Any]:
        """Run several calls concurrently under one session.

        Failed calls are logged and omitted; results keep request order.
        """
        if not requests:
            return []
        symbols = list(symbols) if symbols is not None else [None] * len(requests)
        session = await self.open_session(
            user_id, requires_auth=any(r.requires_auth for r in requests)
        )

        async def run(request: ProxiedRequest, symbol: str | None) -> Any:
            response = await self.send(session, request)
            return self._normalize(kind, response, symbol)

        results = await asyncio.gather(
            *(run(r, s) for r, s in zip(requests, symbols)),
            return_exceptions=True,
        )
        out: list[Any] = []
        for request, result in zip(requests, results):
            if isinstance(result, ProxyError):
                logger.warning("Skipping %s: %s", request.path, result.error)
                continue
            if isinstance(result, BaseException):
                raise result
            out.append(result)
        logger.info("Fetched %d/%d %s results", len(out), len(requests), kind.value)
        return out

    async def _absorb_rotation(self, session: UpstreamSession, response: httpx.Response) -> None:
        # Only the rotated names change; other pairs (e.g. csrf) are kept.
        rotated = response.headers.get_list("set-cookie")
        if not extract_cookie_pairs(rotated):
            return
        cookie = merge_cookie_pairs(session.cookie, rotated)
        if cookie == session.cookie:
            return
        session.cookie = cookie
        if session.user_id is not None:
            await self._store.upsert_cookie(session.user_id, rotated)
            logger.debug("Persisted rotated Friend API cookie for user %s", session.user_id)

    @staticmethod
    def _normalize(kind: EndpointKind, response: httpx.Response, symbol: str | None) -> Any:
        try:
            payload = decode_payload(response)
        except MalformedUpstreamResponse as exc:
            logger.warning("Non-JSON body from %s; using defaults: %s", response.request.url, exc)
            payload = response.text
        return normalize(kind, payload, symbol=symbol)

    @staticmethod
    def _auth_error(result: RefreshResult) -> ProxyError:
        if result.reason is RefreshFailure.MISSING_CREDENTIAL:
            return MissingCredential(result.details or "No stored credentials for this user")
        return UpstreamAuthFailure(result.details)
