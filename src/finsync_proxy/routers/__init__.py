"""API routers.

Includes routes for:
- /user - Friend API login and registration
- /quote, /quotes - Stock quotes (optional auth)
- /profit-loss - Portfolio profit/loss (auth required)
- /predict - Allocation prediction passthrough (optional auth)
- /portfolio - Locally stored holdings and investor profile (auth required)
"""
from finsync_proxy.routers.portfolio import router as portfolio_router
from finsync_proxy.routers.predict import router as predict_router
from finsync_proxy.routers.profit_loss import router as profit_loss_router
from finsync_proxy.routers.stocks import router as stocks_router
from finsync_proxy.routers.user import router as user_router

__all__ = [
    "portfolio_router",
    "predict_router",
    "profit_loss_router",
    "stocks_router",
    "user_router",
]
