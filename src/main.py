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
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.iv_account.api.router import router as account_router
from src.iv_admin.api.router import router as admin_router
from src.iv_common.database import engine
from src.iv_common.errors import AppError, AuthorizationError
from src.iv_common.response import error_response
from src.iv_gateway.middleware.request_log import RequestLogMiddleware
from src.iv_investment.api.router import router as investment_router
from src.iv_journal.api.router import router as journal_router
from src.iv_maintenance.api.router import router as maintenance_router
from src.iv_withdrawal.api.router import destinations_router
from src.iv_withdrawal.api.router import router as withdrawal_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify the DB connection. Shutdown: dispose the pool."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    data = None
    if isinstance(exc, AuthorizationError) and exc.sign_out:
        data = {"sign_out": True}
    resp = error_response(exc.code, exc.message, data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(account_router, prefix="/api/v1")
app.include_router(journal_router, prefix="/api/v1")
app.include_router(investment_router, prefix="/api/v1")
app.include_router(destinations_router, prefix="/api/v1")
app.include_router(withdrawal_router, prefix="/api/v1")
app.include_router(maintenance_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
