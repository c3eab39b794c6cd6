"""Friend API finance backend: client and payload models."""
from finsync_proxy.providers.friend_api.client import (LOGIN_PATH,
                                                       NEW_USER_PATH,
                                                       PREDICT_PATH,
                                                       PROFIT_LOSS_PATH,
                                                       UPDATE_USER_PATH,
                                                       FriendApiClient,
                                                       stock_path)
from finsync_proxy.providers.friend_api.models import (PortfolioSyncItem,
                                                       UpdateUserPayload)

__all__ = [
    "FriendApiClient",
    "LOGIN_PATH",
    "NEW_USER_PATH",
    "PREDICT_PATH",
    "PROFIT_LOSS_PATH",
    "PortfolioSyncItem",
    "UPDATE_USER_PATH",
    "UpdateUserPayload",
    "stock_path",
]
