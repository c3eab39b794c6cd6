"""Credential store: the single owner of each user's Friend API secret and session cookie.

Database work runs in a worker thread (``asyncio.to_thread``) so request
handlers never block the event loop.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.engine import Engine

from finsync_proxy.credentials.cipher import CredentialCipher
from finsync_proxy.credentials.cookies import (extract_cookie_pairs,
                                             merge_cookie_pairs)
from finsync_proxy.db import CredentialRecord, session_scope, utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FriendApiSecret:
    """Login body accepted by the Friend API (``POST /api/input/login``)."""

    email: str
    password: str


class CredentialStoreABC(ABC):
    """Durable mapping of user id -> Friend API secret and latest session cookie.

    Concurrent writers for the same user are allowed; ``session_cookie`` is
    last-writer-wins because a stale cookie is replaced by the next refresh.
    """

    @abstractmethod
    async def get(self, user_id: str) -> CredentialRecord | None:
        """Return the stored record for ``user_id`` (password still encrypted)."""

    @abstractmethod
    async def get_secret(self, user_id: str) -> FriendApiSecret | None:
        """Return the decrypted login secret, or None if the user has none."""

    @abstractmethod
    async def save_secret(
        self,
        user_id: str,
        email: str,
        password: str,
        name: str | None = None,
    ) -> None:
        """Create or replace the login secret for ``user_id``."""

    @abstractmethod
    async def upsert_cookie(self, user_id: str, raw_set_cookie: str | Iterable[str]) -> None:
        """Merge the cookie pairs from raw ``Set-Cookie`` header(s) into the stored cookie.

        Pairs with a new name are added, pairs with a known name replace the
        stored value and all other stored pairs are kept.
        """


class SqlCredentialStore(CredentialStoreABC):
    """SQLModel-backed credential store with passwords encrypted at rest."""

    def __init__(self, engine: Engine, cipher: CredentialCipher) -> None:
        self._engine = engine
        self._cipher = cipher

    async def get(self, user_id: str) -> CredentialRecord | None:
        return await asyncio.to_thread(self._get_sync, user_id)

    async def get_secret(self, user_id: str) -> FriendApiSecret | None:
        record = await self.get(user_id)
        if record is None:
            return None
        try:
            password = self._cipher.decrypt(record.password_encrypted)
        except ValueError:
            logger.error("Stored secret for user %s is unreadable", user_id)
            return None
        return FriendApiSecret(email=record.email, password=password)

    async def save_secret(
        self,
        user_id: str,
        email: str,
        password: str,
        name: str | None = None,
    ) -> None:
        encrypted = self._cipher.encrypt(password)
        await asyncio.to_thread(self._save_secret_sync, user_id, email, encrypted, name)
        logger.info("Saved Friend API credentials for user %s", user_id)

    async def upsert_cookie(self, user_id: str, raw_set_cookie: str | Iterable[str]) -> None:
        headers = [raw_set_cookie] if isinstance(raw_set_cookie, str) else list(raw_set_cookie)
        if not extract_cookie_pairs(headers):
            logger.debug("No cookie pairs in Set-Cookie for user %s; keeping stored cookie", user_id)
            return
        await asyncio.to_thread(self._upsert_cookie_sync, user_id, headers)

    def _get_sync(self, user_id: str) -> CredentialRecord | None:
        with session_scope(self._engine) as session:
            return session.get(CredentialRecord, user_id)

    def _save_secret_sync(
        self, user_id: str, email: str, encrypted: str, name: str | None
    ) -> None:
        with session_scope(self._engine) as session:
            record = session.get(CredentialRecord, user_id)
            if record is None:
                record = CredentialRecord(
                    user_id=user_id, email=email, password_encrypted=encrypted, name=name
                )
            else:
                record.email = email
                record.password_encrypted = encrypted
                if name:
                    record.name = name
                record.updated_at = utcnow()
            session.add(record)

    def _upsert_cookie_sync(self, user_id: str, headers: list[str]) -> None:
        with session_scope(self._engine) as session:
            record = session.get(CredentialRecord, user_id)
            if record is None:
                logger.debug("Ignoring cookie for unknown user %s", user_id)
                return
            cookie = merge_cookie_pairs(record.session_cookie, headers)
            if cookie == record.session_cookie:
                return
            record.session_cookie = cookie
            record.updated_at = utcnow()
            session.add(record)
