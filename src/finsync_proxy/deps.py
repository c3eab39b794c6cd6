"""FastAPI dependency injection: app.state.container holds singletons; Depends() resolves them.

Routes never touch the container directly; these getters are used by Depends().
"""
import logging
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from finsync_proxy.auth import TokenCodec
from finsync_proxy.providers.core import InvalidToken, MissingAuthorization
from finsync_proxy.services import FinanceService

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_finance_service(request: Request) -> FinanceService:
    """Resolve the FinanceService singleton from the app container."""
    return request.app.state.container.finance_service()


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.container.token_codec()


def _has_authorization(request: Request) -> bool:
    return bool(request.headers.get("authorization", "").strip())


def require_user_id(
    request: Request,
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    """User id from a valid bearer identity token.

    Raises:
        MissingAuthorization: no Authorization header on the request.
        InvalidToken: the header is not ``Bearer <token>``, or the token is
            malformed, tampered with or expired.
    """
    if credentials is None or not credentials.credentials:
        if _has_authorization(request):
            raise InvalidToken("Authorization scheme must be Bearer")
        raise MissingAuthorization()
    return codec.verify(credentials.credentials)


def optional_user_id(
    request: Request,
    codec: Annotated[TokenCodec, Depends(get_token_codec)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str | None:
    """User id when a valid bearer token is present; None (anonymous) otherwise."""
    if credentials is None or not credentials.credentials:
        if _has_authorization(request):
            logger.warning("Ignoring non-Bearer Authorization header on optional-auth route")
        return None
    try:
        return codec.verify(credentials.credentials)
    except InvalidToken as exc:
        logger.warning("Ignoring invalid identity token on optional-auth route: %s", exc.details)
        return None


# Type aliases for route injection
FinanceServiceDep = Annotated[FinanceService, Depends(get_finance_service)]
UserId = Annotated[str, Depends(require_user_id)]
OptionalUserId = Annotated[str | None, Depends(optional_user_id)]
