from datetime import datetime, timezone

import pytest
from sqlmodel import select

from finsync_proxy.credentials import (CredentialCipher, SqlCredentialStore,
                                       extract_cookie_pairs,
                                       merge_cookie_pairs)
from finsync_proxy.db import CredentialRecord, as_utc, session_scope


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("sid=abc; Path=/; HttpOnly", "sid=abc"),
        (["sid=abc; Path=/", "theme=dark; Secure"], "sid=abc; theme=dark"),
        (["sid=old", "sid=new"], "sid=new"),
        (["Path=/; HttpOnly"], "Path=/"),
        (["HttpOnly", "; Path=/"], ""),
        ([], ""),
        (None, ""),
    ],
)
def test_extract_cookie_pairs(raw, expected):
    assert extract_cookie_pairs(raw) == expected


@pytest.mark.parametrize(
    "current, raw, expected",
    [
        ("sid=s1; csrf=c1", "sid=s2; Path=/", "csrf=c1; sid=s2"),
        ("sid=s1", ["csrf=c1; Secure"], "sid=s1; csrf=c1"),
        (None, ["sid=a; Path=/", "csrf=b"], "sid=a; csrf=b"),
        ("sid=s1; csrf=c1", [], "sid=s1; csrf=c1"),
    ],
)
def test_merge_cookie_pairs_keeps_names_not_rotated(current, raw, expected):
    assert merge_cookie_pairs(current, raw) == expected


@pytest.mark.asyncio
async def test_secret_round_trips_and_is_encrypted_at_rest(store, engine):
    await store.save_secret("u1", "alice@example.com", "hunter2", name="Alice")

    secret = await store.get_secret("u1")
    assert secret.email == "alice@example.com"
    assert secret.password == "hunter2"
    with session_scope(engine) as session:
        record = session.exec(select(CredentialRecord)).one()
    assert "hunter2" not in record.password_encrypted
    assert record.name == "Alice"


@pytest.mark.asyncio
async def test_timestamps_are_written_as_utc(store):
    before = datetime.now(timezone.utc)
    await store.save_secret("u1", "alice@example.com", "pw")
    await store.save_secret("u1", "alice@example.com", "pw2")
    await store.upsert_cookie("u1", "sid=abc")

    record = await store.get("u1")
    assert record.session_cookie == "sid=abc"
    assert as_utc(record.updated_at) >= before.replace(microsecond=0)


@pytest.mark.asyncio
async def test_save_secret_replaces_existing(store):
    await store.save_secret("u1", "alice@example.com", "old")
    await store.save_secret("u1", "alice@example.com", "new")

    assert (await store.get_secret("u1")).password == "new"


@pytest.mark.asyncio
async def test_unknown_user_has_no_secret(store):
    assert await store.get_secret("nobody") is None
    assert await store.get("nobody") is None


@pytest.mark.asyncio
async def test_secret_unreadable_with_other_key_is_treated_as_missing(engine, store):
    await store.save_secret("u1", "alice@example.com", "hunter2")
    other = SqlCredentialStore(engine, CredentialCipher.from_secret("different"))

    assert await other.get_secret("u1") is None


@pytest.mark.asyncio
async def test_upsert_cookie_stores_pairs_only(store):
    await store.save_secret("u1", "alice@example.com", "pw")

    await store.upsert_cookie("u1", ["sid=abc; Path=/; HttpOnly", "csrf=xyz; Secure"])

    assert (await store.get("u1")).session_cookie == "sid=abc; csrf=xyz"


@pytest.mark.asyncio
async def test_upsert_cookie_merges_rotated_pairs_by_name(store):
    await store.save_secret("u1", "alice@example.com", "pw")
    await store.upsert_cookie("u1", ["sid=abc", "csrf=xyz"])

    await store.upsert_cookie("u1", "sid=rotated")

    assert (await store.get("u1")).session_cookie == "csrf=xyz; sid=rotated"


@pytest.mark.asyncio
async def test_upsert_cookie_twice_with_same_headers_is_stable(store):
    await store.save_secret("u1", "alice@example.com", "pw")
    headers = ["sid=abc; Path=/; HttpOnly", "csrf=xyz; Secure; SameSite=Lax"]

    await store.upsert_cookie("u1", headers)
    first = await store.get("u1")
    await store.upsert_cookie("u1", headers)
    second = await store.get("u1")

    assert second.session_cookie == first.session_cookie == "sid=abc; csrf=xyz"
    assert second.updated_at == first.updated_at


@pytest.mark.asyncio
async def test_upsert_cookie_accepts_one_shot_iterable(store):
    await store.save_secret("u1", "alice@example.com", "pw")

    await store.upsert_cookie("u1", (h for h in ["sid=abc; Path=/"]))

    assert (await store.get("u1")).session_cookie == "sid=abc"


@pytest.mark.asyncio
async def test_upsert_cookie_without_pairs_keeps_stored_cookie(store):
    await store.save_secret("u1", "alice@example.com", "pw")
    await store.upsert_cookie("u1", "sid=abc")

    await store.upsert_cookie("u1", ["HttpOnly"])

    assert (await store.get("u1")).session_cookie == "sid=abc"


@pytest.mark.asyncio
async def test_upsert_cookie_for_unknown_user_is_noop(store):
    await store.upsert_cookie("ghost", "sid=abc")

    assert await store.get("ghost") is None


def test_cipher_requires_secret():
    with pytest.raises(ValueError):
        CredentialCipher.from_secret("")
