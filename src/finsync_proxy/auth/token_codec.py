"""Signed, time-bound identity tokens binding a bearer to a local user id."""
import logging
from datetime import datetime, timedelta, timezone

import jwt

from finsync_proxy.providers.core.exceptions import InvalidToken

logger = logging.getLogger(__name__)

USER_ID_CLAIM = "userId"


class TokenCodec:
    """Issue and verify HS256 JWTs carrying a ``userId`` claim.

    The token holds no credential material; the Friend API secret stays in
    the credential store and is looked up by user id.
    """

    def __init__(
        self,
        secret: str,
        *,
        algorithm: str = "HS256",
        lifetime: timedelta = timedelta(hours=24),
    ) -> None:
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._lifetime = lifetime

    def issue(self, user_id: str) -> str:
        """Return a signed token asserting ``user_id``, valid for the configured lifetime."""
        now = datetime.now(timezone.utc)
        payload = {
            USER_ID_CLAIM: user_id,
            "iat": now,
            "exp": now + self._lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> str:
        """Return the user id asserted by ``token``.

        Raises:
            InvalidToken: if the token is expired, tampered with, malformed,
                or carries no user id.
        """
        if not token:
            raise InvalidToken("Token is empty")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidToken("Token has expired") from exc
        except jwt.InvalidSignatureError as exc:
            raise InvalidToken("Token signature verification failed") from exc
        except jwt.InvalidTokenError as exc:
            logger.debug("Rejected malformed identity token: %s", exc)
            raise InvalidToken(f"Malformed token: {exc}") from exc

        user_id = payload.get(USER_ID_CLAIM)
        if not isinstance(user_id, str) or not user_id:
            raise InvalidToken("Token does not identify a user")
        return user_id
