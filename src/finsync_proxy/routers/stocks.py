"""Stock quote routes (Friend API ``/api/output/stocks/{symbol}``)."""
import logging

from fastapi import APIRouter, Query

from finsync_proxy.deps import FinanceServiceDep, OptionalUserId
from finsync_proxy.providers.core import InvalidRequest
from finsync_proxy.schemas import StockQuote

logger = logging.getLogger(__name__)
router = APIRouter(tags=["stocks"])


def _split_symbols(raw: str) -> list[str]:
    seen: dict[str, None] = {}
    for part in raw.split(","):
        symbol = part.strip().upper()
        if symbol:
            seen.setdefault(symbol, None)
    return list(seen)


@router.get("/quote", response_model=StockQuote, response_model_by_alias=True)
async def get_quote(
    service: FinanceServiceDep,
    user_id: OptionalUserId,
    symbol: str = Query(default="", description="Stock ticker, e.g. AAPL"),
) -> StockQuote:
    """Get the current quote for a stock symbol.

    Authentication is optional: with a valid token the user's own Friend API
    session is used, otherwise the shared service account (or no auth).
    """
    symbol = symbol.strip()
    if not symbol:
        raise InvalidRequest("Query param 'symbol' is required", error="Symbol is required")
    return await service.get_quote(user_id, symbol.upper())


@router.get("/quotes", response_model=list[StockQuote], response_model_by_alias=True)
async def get_quotes(
    service: FinanceServiceDep,
    user_id: OptionalUserId,
    symbols: str = Query(default="", description="Comma-separated tickers, e.g. AAPL,MSFT"),
) -> list[StockQuote]:
    """Get quotes for several symbols; symbols the Friend API fails on are omitted."""
    symbol_list = _split_symbols(symbols)
    if not symbol_list:
        raise InvalidRequest("Query param 'symbols' is required", error="Symbol is required")
    return await service.get_quotes(user_id, symbol_list)
