# src/spatial_captcha/main.py
"""Main entry point for the Spatial CAPTCHA API."""

from __future__ import annotations

import logging

import redis
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from spatial_captcha.api.v1 import challenge_router, siteverify_router, system_router
from spatial_captcha.core.errors import CaptchaError, InternalStoreError
from spatial_captcha.core.log import configure_logging
from spatial_captcha.core.settings import settings
from spatial_captcha.services.stores import StoreSweeper, build_sweeper

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="One-shot 3D orientation CAPTCHA with server-side siteverify",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Include API routers
app.include_router(challenge_router, prefix=API_PREFIX)
app.include_router(siteverify_router, prefix=API_PREFIX)
app.include_router(system_router, prefix=API_PREFIX)


def _status_field(request: Request) -> str:
    """Return the boolean status key callers of this route branch on."""
    return "verified" if request.url.path == f"{API_PREFIX}/verify" else "success"


def _error_response(request: Request, error: CaptchaError) -> JSONResponse:
    return JSONResponse(
        status_code=error.status_code,
        content={
            _status_field(request): False,
            "reason": error.reason,
            "message": error.message,
        },
    )


@app.exception_handler(CaptchaError)
async def captcha_error_handler(request: Request, exc: CaptchaError) -> JSONResponse:
    return _error_response(request, exc)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database failure on %s", request.url.path, exc_info=exc)
    return _error_response(request, InternalStoreError())


@app.exception_handler(redis.RedisError)
async def redis_error_handler(request: Request, exc: redis.RedisError) -> JSONResponse:
    logger.error("Expiring store failure on %s", request.url.path, exc_info=exc)
    return _error_response(request, InternalStoreError())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            _status_field(request): False,
            "reason": "InvalidRequest",
            "message": "Request body is malformed.",
        },
    )


@app.on_event("startup")
async def on_startup() -> None:
    sweeper = build_sweeper()
    await sweeper.start()
    app.state.store_sweeper = sweeper
    logger.info(
        "%s %s started (session TTL %ss, pass token TTL %ss, store %s)",
        settings.app_name,
        settings.app_version,
        settings.session_ttl_seconds,
        settings.pass_token_ttl_seconds,
        settings.store_backend,
    )


@app.on_event("shutdown")
async def on_shutdown() -> None:
    sweeper: StoreSweeper | None = getattr(app.state, "store_sweeper", None)
    if sweeper:
        await sweeper.stop()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("spatial_captcha.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
