"""Portfolio profit/loss route."""
from fastapi import APIRouter

from finsync_proxy.deps import FinanceServiceDep, UserId
from finsync_proxy.schemas import ProfitLoss

router = APIRouter(tags=["portfolio"])


@router.get("/profit-loss", response_model=ProfitLoss, response_model_by_alias=True)
async def get_profit_loss(service: FinanceServiceDep, user_id: UserId) -> ProfitLoss:
    """Sync the stored portfolio to the Friend API, then return normalized profit/loss.

    A failed sync is logged and does not block the read.
    """
    return await service.get_profit_loss(user_id)
