"""Main module for the FinSync session proxy."""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from finsync_proxy.container import Container
from finsync_proxy.db import init_db
from finsync_proxy.providers import ProxyError, ProxyErrorMapper
from finsync_proxy.routers import (portfolio_router, predict_router,
                                   profit_loss_router, stocks_router,
                                   user_router)

logger = logging.getLogger(__name__)

error_mapper = ProxyErrorMapper()


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    """Create tables at startup; close the Friend API client on shutdown."""
    container: Container = fastapi_app.state.container
    if container.settings().uses_insecure_secret:
        logger.warning("JWT_SECRET is the built-in default; set it before deploying")
    init_db(container.engine())

    yield

    try:
        await container.friend_api().close()
    except Exception as exc:  # pylint: disable=broad-except
        logger.warning("Error closing Friend API client: %s", exc)


async def handle_proxy_error(request: Request, exc: ProxyError) -> JSONResponse:
    status, body = error_mapper.to_http(exc)
    logger.info("%s %s -> %s %s", request.method, request.url.path, status, body["error"])
    return JSONResponse(status_code=status, content=body)


def create_app(container: Container | None = None) -> FastAPI:
    """Build the FastAPI app around ``container`` (a fresh one by default)."""
    fastapi_app = FastAPI(
        title="FinSync Session Proxy",
        description="Credential-backed session proxy for the Friend API finance backend",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.container = container or Container()
    fastapi_app.add_exception_handler(ProxyError, handle_proxy_error)

    fastapi_app.include_router(user_router)
    fastapi_app.include_router(stocks_router)
    fastapi_app.include_router(profit_loss_router)
    fastapi_app.include_router(predict_router)
    fastapi_app.include_router(portfolio_router)

    @fastapi_app.get("/")
    def health():
        """Return health check status."""
        return {"status": "ok"}

    return fastapi_app


app = create_app()


def run():
    """Run the server (uvicorn). Use for the ``start`` script."""
    logging.basicConfig(level=logging.INFO)
    uvicorn.run("finsync_proxy.main:app", host="127.0.0.1", port=8001)
