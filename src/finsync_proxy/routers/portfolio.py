"""Locally stored portfolio holdings and investor profile.

These feed the ``updateUser`` sync that runs before each profit/loss read.
"""
from typing import Any

from fastapi import APIRouter

from finsync_proxy.deps import FinanceServiceDep, UserId
from finsync_proxy.schemas import HoldingIn, HoldingOut, ProfileIn, TradeIn

router = APIRouter(prefix="/portfolio", tags=["portfolio"])


@router.get("/holdings", response_model=list[HoldingOut])
async def list_holdings(service: FinanceServiceDep, user_id: UserId) -> list[HoldingOut]:
    return [
        HoldingOut.model_validate(h, from_attributes=True)
        for h in await service.list_holdings(user_id)
    ]


@router.put("/holdings/{symbol}", response_model=HoldingOut)
async def put_holding(
    symbol: str, body: HoldingIn, service: FinanceServiceDep, user_id: UserId
) -> HoldingOut:
    """Create or replace the holding for ``symbol``."""
    holding = await service.save_holding(
        user_id,
        symbol,
        quantity=body.quantity,
        average_price=body.average_price,
        name=body.name,
        purchase_date=body.purchase_date,
    )
    return HoldingOut.model_validate(holding, from_attributes=True)


@router.post("/buy")
async def buy(body: TradeIn, service: FinanceServiceDep, user_id: UserId) -> dict[str, Any]:
    """Buy shares; an existing holding gets a quantity-weighted average price."""
    holding = await service.buy_holding(
        user_id, body.symbol, quantity=body.quantity, price=body.price, name=body.name
    )
    return {"success": True, "holding": HoldingOut.model_validate(holding, from_attributes=True)}


@router.post("/sell")
async def sell(body: TradeIn, service: FinanceServiceDep, user_id: UserId) -> dict[str, Any]:
    """Sell shares. ``holding`` is null once the position is fully sold."""
    holding = await service.sell_holding(user_id, body.symbol, quantity=body.quantity)
    return {
        "success": True,
        "holding": HoldingOut.model_validate(holding, from_attributes=True) if holding else None,
    }


@router.put("/profile")
async def put_profile(
    body: ProfileIn, service: FinanceServiceDep, user_id: UserId
) -> dict[str, Any]:
    """Update investor profile answers; omitted fields keep their stored value."""
    return await service.save_profile(user_id, body.model_dump(exclude_none=True))
