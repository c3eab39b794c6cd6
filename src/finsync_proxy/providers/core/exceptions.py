"""Error kinds raised while proxying calls to the Friend API.

Authentication-layer errors surface as 401. Call-layer errors keep the
upstream status code and raw body so callers can diagnose them.
"""

AUTH_USER_MESSAGE = "Please sign in again."
UPSTREAM_USER_MESSAGE = "Live data temporarily unavailable."
REQUEST_USER_MESSAGE = "Please check your input and try again."


class ProxyError(Exception):
    """Base class for every error the proxy core reports to callers."""

    status_code: int = 500
    error: str = "Internal server error"
    user_message: str = UPSTREAM_USER_MESSAGE

    def __init__(self, details: str | None = None, *, error: str | None = None) -> None:
        self.details = details
        if error is not None:
            self.error = error
        super().__init__(details or self.error)


class AuthenticationError(ProxyError):
    """The caller (or the proxy on the caller's behalf) could not be authenticated."""

    status_code = 401
    error = "Authentication failed"
    user_message = AUTH_USER_MESSAGE


class InvalidToken(AuthenticationError):
    """Identity token is malformed, tampered with, or expired."""

    error = "Invalid authentication token"


class MissingAuthorization(InvalidToken):
    """No bearer identity token on a request that requires one."""

    error = "Missing authorization header"


class MissingCredential(AuthenticationError):
    """No stored Friend API secret for the user."""

    error = "Failed to retrieve user credentials"


class UpstreamAuthFailure(AuthenticationError):
    """The Friend API rejected (or never answered) the login call."""

    error = "Failed to authenticate with external API"

    def __init__(self, details: str | None = None, *, upstream_status: int | None = None) -> None:
        super().__init__(details)
        self.upstream_status = upstream_status


class UpstreamCallFailure(ProxyError):
    """Non-2xx response from a proxied Friend API endpoint."""

    error = "Upstream request failed"

    def __init__(
        self,
        status_code: int,
        body: str = "",
        *,
        error: str | None = None,
    ) -> None:
        super().__init__(body, error=error)
        self.status_code = status_code
        self.body = body


class UpstreamTimeout(ProxyError):
    """A Friend API call exceeded the configured timeout."""

    status_code = 504
    error = "Request to external API timed out"


class MalformedUpstreamResponse(ProxyError):
    """Friend API answered 2xx with a body that is not JSON."""

    status_code = 502
    error = "Malformed response from external API"


class InvalidRequest(ProxyError):
    """The caller's input was rejected before any upstream call."""

    status_code = 400
    error = "Invalid request"
    user_message = REQUEST_USER_MESSAGE


class InsufficientQuantity(InvalidRequest):
    """A sell asked for more shares than the holding has."""

    error = "Insufficient quantity to sell"


class HoldingNotFound(ProxyError):
    """No holding for the symbol in the user's portfolio."""

    status_code = 404
    error = "Stock not found in portfolio"
    user_message = REQUEST_USER_MESSAGE
