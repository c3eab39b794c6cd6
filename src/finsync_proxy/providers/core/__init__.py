"""Core proxy abstractions: error kinds, error mapping and call policies."""
from finsync_proxy.providers.core.error_mapper import ProxyErrorMapper
from finsync_proxy.providers.core.exceptions import (AuthenticationError,
                                                     HoldingNotFound,
                                                     InsufficientQuantity,
                                                     InvalidRequest,
                                                     InvalidToken,
                                                     MalformedUpstreamResponse,
                                                     MissingAuthorization,
                                                     MissingCredential,
                                                     ProxyError,
                                                     UpstreamAuthFailure,
                                                     UpstreamCallFailure,
                                                     UpstreamTimeout)
from finsync_proxy.providers.core.retry import (BestEffortResult,
                                                RetryExhausted, best_effort,
                                                retry_with_backoff)

__all__ = [
    "AuthenticationError",
    "BestEffortResult",
    "HoldingNotFound",
    "InsufficientQuantity",
    "InvalidRequest",
    "InvalidToken",
    "MalformedUpstreamResponse",
    "MissingAuthorization",
    "MissingCredential",
    "ProxyError",
    "ProxyErrorMapper",
    "RetryExhausted",
    "UpstreamAuthFailure",
    "UpstreamCallFailure",
    "UpstreamTimeout",
    "best_effort",
    "retry_with_backoff",
]
