"""Allocation prediction passthrough (Friend API ``/api/output/predict``)."""
from typing import Any

from fastapi import APIRouter, Request

from finsync_proxy.deps import FinanceServiceDep, OptionalUserId

router = APIRouter(tags=["predict"])


@router.get("/predict")
async def predict(request: Request, service: FinanceServiceDep, user_id: OptionalUserId) -> Any:
    """Forward the query string (investor profile answers) and return the upstream JSON."""
    return await service.predict(user_id, dict(request.query_params))
