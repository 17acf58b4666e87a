from contextlib import asynccontextmanager
import logging

import httpx
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from commission_guard.config import get_settings
from commission_guard.errors import CommissionGuardError
from commission_guard.logging_config import setup_logging
from commission_guard.routers import admin, breaches, dashboard, public_records, showings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    settings = get_settings()
    # one pooled client shared by the record providers and the notifier
    app.state.http_client = httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
    logger.info("Commission Guard backend starting")
    try:
        yield
    finally:
        await app.state.http_client.aclose()


app = FastAPI(
    title="Commission Guard",
    version="1.0.0",
    lifespan=lifespan,
)


# --- Error mapping ---
@app.exception_handler(CommissionGuardError)
async def commission_guard_error_handler(request: Request, exc: CommissionGuardError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "kind": "validation_error",
            "message": "Request validation failed",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


# --- Register Routers ---
app.include_router(public_records.router)   # /api/monitor-public-records
app.include_router(breaches.router)         # /api/potential-breaches, /api/breach-stats
app.include_router(admin.router)            # /api/admin/*
app.include_router(dashboard.router)        # /api/dashboard/*
app.include_router(showings.router)         # /api/showings


# --- Root health check ---
@app.get("/")
async def root():
    return {"message": "Commission Guard Backend API is running"}
