import json

import pytest

from conftest import respond, timeout
from finsync_proxy.providers.core import UpstreamAuthFailure
from finsync_proxy.providers.friend_api import LOGIN_PATH
from finsync_proxy.services import RefreshFailure, ServiceAccount


@pytest.mark.asyncio
async def test_login_returns_cookie_and_token(refresher, fake_api):
    fake_api.on(
        "POST", LOGIN_PATH,
        respond(200, {"token": "upstream-jwt", "foundUser": {"_id": "abc"}},
                set_cookie=["sid=s1; Path=/; HttpOnly"]),
    )

    outcome = await refresher.login("alice@example.com", "pw")

    assert outcome.cookie == "sid=s1"
    assert outcome.token == "upstream-jwt"
    assert outcome.body["foundUser"]["_id"] == "abc"
    sent = fake_api.calls(LOGIN_PATH)[0]
    assert json.loads(sent.content) == {"email": "alice@example.com", "password": "pw"}


@pytest.mark.asyncio
async def test_login_rejection_keeps_upstream_status(refresher, fake_api):
    fake_api.on("POST", LOGIN_PATH, respond(403, {"message": "Invalid password"}))

    with pytest.raises(UpstreamAuthFailure) as exc_info:
        await refresher.login("alice@example.com", "bad")

    assert exc_info.value.upstream_status == 403
    assert "Invalid password" in exc_info.value.details


@pytest.mark.asyncio
async def test_refresh_persists_fresh_cookie(refresher, fake_api, store):
    await store.save_secret("u1", "alice@example.com", "pw")
    fake_api.on("POST", LOGIN_PATH, respond(200, {}, set_cookie=["sid=fresh; HttpOnly"]))

    result = await refresher.refresh("u1")

    assert result.ok
    assert result.cookie == "sid=fresh"
    assert (await store.get("u1")).session_cookie == "sid=fresh"


@pytest.mark.asyncio
async def test_refresh_without_credentials_makes_no_call(refresher, fake_api):
    result = await refresher.refresh("ghost")

    assert not result.ok
    assert result.reason is RefreshFailure.MISSING_CREDENTIAL
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_refresh_rejected_does_not_fabricate_cookie(refresher, fake_api, store):
    await store.save_secret("u1", "alice@example.com", "pw")
    await store.upsert_cookie("u1", "sid=old")
    fake_api.on("POST", LOGIN_PATH, respond(401, {"message": "nope"}))

    result = await refresher.refresh("u1")

    assert not result.ok
    assert result.reason is RefreshFailure.UPSTREAM_REJECTED
    assert result.cookie is None
    assert (await store.get("u1")).session_cookie == "sid=old"


@pytest.mark.asyncio
async def test_refresh_timeout_is_reported_as_unreachable(refresher, fake_api, store):
    await store.save_secret("u1", "alice@example.com", "pw")
    fake_api.on("POST", LOGIN_PATH, timeout)

    result = await refresher.refresh("u1")

    assert result.reason is RefreshFailure.UPSTREAM_UNREACHABLE


@pytest.mark.asyncio
async def test_service_account_not_configured(refresher, fake_api):
    result = await refresher.refresh_service_account()

    assert result.reason is RefreshFailure.MISSING_CREDENTIAL
    assert fake_api.requests == []


@pytest.mark.parametrize("service_account", [ServiceAccount("svc@example.com", "svc-pw")])
@pytest.mark.asyncio
async def test_service_account_retries_then_succeeds(refresher, fake_api):
    fake_api.on(
        "POST", LOGIN_PATH,
        respond(500, {"message": "cold start"}),
        respond(200, {"token": "svc-token"}, set_cookie=["sid=svc"]),
    )

    result = await refresher.refresh_service_account()

    assert result.ok
    assert (result.cookie, result.token) == ("sid=svc", "svc-token")
    assert len(fake_api.calls(LOGIN_PATH)) == 2


@pytest.mark.parametrize("service_account", [ServiceAccount("svc@example.com", "svc-pw")])
@pytest.mark.asyncio
async def test_service_account_gives_up_after_three_attempts(refresher, fake_api):
    fake_api.on("POST", LOGIN_PATH, respond(500, {"message": "down"}))

    result = await refresher.refresh_service_account()

    assert not result.ok
    assert result.reason is RefreshFailure.UPSTREAM_REJECTED
    assert len(fake_api.calls(LOGIN_PATH)) == 3


def test_service_account_from_settings_requires_both_fields():
    assert ServiceAccount.from_settings("svc@example.com", None) is None
    assert ServiceAccount.from_settings("", "pw") is None
    assert ServiceAccount.from_settings("svc@example.com", "pw") == ServiceAccount(
        "svc@example.com", "pw"
    )
