"""Shared fixtures: in-memory database and a scripted fake of the Friend API."""
from collections.abc import Callable, Iterable

import httpx
import pytest

from finsync_proxy.credentials import CredentialCipher, SqlCredentialStore
from finsync_proxy.db import create_db_engine, init_db
from finsync_proxy.providers import FriendApiClient
from finsync_proxy.services import (ProxyRequestExecutor, ServiceAccount,
                                    SessionRefresher, SqlPortfolioRepository)

FRIEND_API_URL = "https://friend-api.test"

Handler = Callable[[httpx.Request], httpx.Response]


def respond(
    status: int = 200,
    json: object = None,
    *,
    text: str | None = None,
    set_cookie: Iterable[str] = (),
) -> Handler:
    """Build a handler returning a fresh response on every call."""

    def handler(request: httpx.Request) -> httpx.Response:
        headers = [("set-cookie", value) for value in set_cookie]
        if text is not None:
            return httpx.Response(status, text=text, headers=headers)
        return httpx.Response(status, json=json if json is not None else {}, headers=headers)

    return handler


def timeout(request: httpx.Request) -> httpx.Response:
    raise httpx.ReadTimeout("timed out", request=request)


class FakeFriendApi:
    """Routes (method, path) to scripted handlers and records every request.

    Several handlers for one route are consumed in order; the last one repeats.
    Unscripted routes answer 404.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[Handler]] = {}

    def on(self, method: str, path: str, *handlers: Handler) -> None:
        self._routes[(method, path)] = list(handlers)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handlers = self._routes.get((request.method, request.url.path))
        if not handlers:
            return httpx.Response(404, json={"message": "Not found"})
        handler = handlers.pop(0) if len(handlers) > 1 else handlers[0]
        return handler(request)

    def calls(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]


@pytest.fixture
def fake_api() -> FakeFriendApi:
    return FakeFriendApi()


@pytest.fixture
def friend_client(fake_api: FakeFriendApi) -> FriendApiClient:
    return FriendApiClient(FRIEND_API_URL, timeout=1.0, transport=httpx.MockTransport(fake_api))


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def cipher() -> CredentialCipher:
    return CredentialCipher.from_secret("test-encryption-secret")


@pytest.fixture
def store(engine, cipher) -> SqlCredentialStore:
    return SqlCredentialStore(engine, cipher)


@pytest.fixture
def portfolio(engine) -> SqlPortfolioRepository:
    return SqlPortfolioRepository(engine)


@pytest.fixture
def service_account() -> ServiceAccount | None:
    return None


@pytest.fixture
def refresher(friend_client, store, service_account) -> SessionRefresher:
    return SessionRefresher(
        friend_client,
        store,
        service_account=service_account,
        fallback_attempts=3,
        fallback_delay=0,
    )


@pytest.fixture
def executor(friend_client, refresher, store) -> ProxyRequestExecutor:
    return ProxyRequestExecutor(friend_client, refresher, store)
