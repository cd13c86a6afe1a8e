from fastapi import Request

from ..core.config import settings
from ..services.activity_service import ActivityService
from ..services.connection import ConnectionRouter


def get_router(request: Request) -> ConnectionRouter:
    return request.app.state.router


def get_activity_service(request: Request) -> ActivityService:
    return ActivityService(
        get_router(request),
        pull_after_failed_push=settings.SYNC_PULL_AFTER_FAILED_PUSH,
    )
