"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.lp_admin.api.router import router as admin_router
from src.lp_agent.api.router import router as agent_router
from src.lp_common.database import engine
from src.lp_common.errors import AppError, InternalError
from src.lp_common.redis_client import close_redis, get_redis
from src.lp_common.response import error_response
from src.lp_gateway.middleware.request_log import RequestLogMiddleware
from src.lp_graduation.api.router import router as graduation_router
from src.lp_position.api.router import router as position_router
from src.lp_quote.api.router import router as quote_router
from src.lp_recovery.api.router import router as recovery_router
from src.lp_trading.api.router import router as trading_router
from src.lp_trading.application.service import get_trade_engine

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_INVALID_REQUEST_CODE = 4000


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis connections. Shutdown: drain hooks, dispose."""
    # Startup
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()
    logger.info("%s started", settings.APP_NAME)
    yield
    # Shutdown
    await get_trade_engine().drain()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, exc.kind)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{field}: {first.get('msg', 'invalid')}" if field else "Invalid request"
    resp = error_response(_INVALID_REQUEST_CODE, message, "InvalidRequest")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(status_code=422, content=resp.model_dump())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    err = InternalError()
    resp = error_response(err.code, err.message, err.kind)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(status_code=err.http_status, content=resp.model_dump())


app.include_router(agent_router, prefix="/api/v1")
app.include_router(position_router, prefix="/api/v1")
app.include_router(quote_router, prefix="/api/v1")
app.include_router(trading_router, prefix="/api/v1")
app.include_router(graduation_router, prefix="/api/v1")
app.include_router(recovery_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
