"""
FastAPI application entry point.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from commute_api.config import get_settings
from commute_api.core.exceptions import CommuteApiException
from commute_api.core.logging import configure_logging
from commute_api.db.stores import close_stores, init_stores
from commute_api.routers import health, stations

settings = get_settings()
configure_logging(settings)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open store clients at startup and release them at shutdown."""
    logger.info("Starting Commute Stations API", version=settings.app_version)
    await init_stores(app.state, settings)
    logger.info("Application startup complete")

    yield

    logger.info("Shutting down Commute Stations API")
    await close_stores(app.state)


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)

# Request ID middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = f"req_{int(time.time() * 1000)}"
    request.state.request_id = request_id
    structlog.contextvars.bind_contextvars(request_id=request_id)
    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.unbind_contextvars("request_id")
    response.headers["X-Request-ID"] = request_id
    return response

# Exception handlers
@app.exception_handler(CommuteApiException)
async def commute_api_exception_handler(request: Request, exc: CommuteApiException):
    logger.warning("Request failed", path=request.url.path, error_code=exc.error_code, detail=exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_code": exc.error_code},
    )

@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "error_code": "INTERNAL_ERROR"},
    )

# Mount routers
app.include_router(health.router, tags=["health"])
app.include_router(stations.router, prefix="/stations", tags=["stations"])

# Prometheus metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Root endpoint
@app.get("/")
async def root():
    return {
        "message": "Commute Stations API",
        "version": settings.app_version,
        "docs": "/docs",
        "status": "operational",
    }

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "commute_api.main:app",
        host="0.0.0.0",
        port=8080,
        reload=settings.debug,
        access_log=True,
        log_level="info",
    )
