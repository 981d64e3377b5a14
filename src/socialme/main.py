"""Main entry point for the SocialMe application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from socialme.api.v1 import (
    activities_router,
    communities_router,
    media_router,
    notifications_router,
    users_router,
)
from socialme.core.errors import PartialCascadeFailure, SocialMeError
from socialme.core.settings import settings
from socialme.services.scheduler import NotificationSchedulerWorker

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Community and activity social network API",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(users_router, prefix="/api/v1")
app.include_router(communities_router, prefix="/api/v1")
app.include_router(activities_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")
app.include_router(media_router, prefix="/api/v1")


@app.exception_handler(SocialMeError)
async def handle_domain_error(request: Request, exc: SocialMeError) -> JSONResponse:
    """Translate domain errors into JSON responses."""
    body: dict[str, object] = {"detail": exc.detail}
    if isinstance(exc, PartialCascadeFailure):
        body["pending_collections"] = exc.pending_collections
        logger.error("%s %s: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content=body)


@app.on_event("startup")
async def on_startup() -> None:
    if settings.scheduler_enabled:
        worker = NotificationSchedulerWorker()
        await worker.start()
        app.state.scheduler_worker = worker
    else:
        app.state.scheduler_worker = None


@app.on_event("shutdown")
async def on_shutdown() -> None:
    worker: NotificationSchedulerWorker | None = getattr(app.state, "scheduler_worker", None)
    if worker:
        await worker.stop()


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
    uvicorn.run("socialme.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
