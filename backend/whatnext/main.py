"""
whatnext - priority-weighted activity picker API.
Keeps working against a local SQLite mirror while the remote database is unreachable.
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import activities, sync
from .core.config import settings
from .core.log import configure_logging
from .services.connection import ConnectionRouter, build_router


def create_app(router: Optional[ConnectionRouter] = None) -> FastAPI:
    """Build the API around ``router`` (defaults to one wired from settings)."""
    configure_logging(settings.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.router.close()

    app = FastAPI(
        title="whatnext API",
        description="Activity suggestions weighted by priority, with offline queueing and sync.",
        version=settings.VERSION,
        lifespan=lifespan,
    )
    app.state.router = router or build_router(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(activities.router, prefix="/api")
    app.include_router(sync.router, prefix="/api")

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "service": settings.APP_NAME, "version": settings.VERSION}

    return app
