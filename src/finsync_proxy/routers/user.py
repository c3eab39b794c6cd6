"""Friend API account routes: login (mints an identity token) and registration."""
from typing import Any

from fastapi import APIRouter, Body

from finsync_proxy.deps import FinanceServiceDep
from finsync_proxy.schemas import LoginRequest

router = APIRouter(prefix="/user", tags=["user"])


@router.post("/login")
async def login(body: LoginRequest, service: FinanceServiceDep) -> dict[str, Any]:
    """Log in to the Friend API and return its body plus a proxy identity ``token``.

    The credential is stored (password encrypted) so later requests can
    re-authenticate upstream on the user's behalf.
    """
    return await service.login(body.email, body.password)


@router.post("/new")
async def create_user(
    service: FinanceServiceDep,
    body: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """Register a Friend API user. An existing account is reported as success."""
    return await service.register(body)
