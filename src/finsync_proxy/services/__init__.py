"""Services: session refresh, proxied execution, normalization and the route-facing facade."""
from finsync_proxy.services.finance import FinanceService
from finsync_proxy.services.normalizer import EndpointKind, normalize
from finsync_proxy.services.portfolio import SqlPortfolioRepository
from finsync_proxy.services.proxy_executor import (ProxiedRequest,
                                                   ProxyRequestExecutor,
                                                   UpstreamSession)
from finsync_proxy.services.session_refresher import (RefreshFailure,
                                                      RefreshResult,
                                                      ServiceAccount,
                                                      SessionRefresher)

__all__ = [
    "EndpointKind",
    "FinanceService",
    "ProxiedRequest",
    "ProxyRequestExecutor",
    "RefreshFailure",
    "RefreshResult",
    "ServiceAccount",
    "SessionRefresher",
    "SqlPortfolioRepository",
    "UpstreamSession",
    "normalize",
]
