"""Sync API: connectivity status and manual reconciliation."""
import logging
from fastapi import APIRouter, Depends, HTTPException
from typing import List
from pydantic import BaseModel

from ..core.errors import RemoteUnavailableError, StorageError, SyncInProgressError
from ..services.activity_service import ActivityService
from .deps import get_activity_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync", tags=["sync"])


class SyncStatusResponse(BaseModel):
    online: bool
    status: str
    pending_count: int


class SyncIssueResponse(BaseModel):
    operation: str
    activity: str
    error: str
    severity: str


class SyncResultResponse(BaseModel):
    success_count: int
    skipped_count: int
    failed_count: int
    issues: List[SyncIssueResponse]
    pulled: bool


@router.get("/status", response_model=SyncStatusResponse)
def sync_status(service: ActivityService = Depends(get_activity_service)):
    """Connectivity state plus the number of queued local operations."""
    try:
        return service.connectivity_status()
    except StorageError as exc:
        raise HTTPException(status_code=500, detail=str(exc))


@router.post("/", response_model=SyncResultResponse)
def trigger_sync(service: ActivityService = Depends(get_activity_service)):
    """Push the local queue to the remote store, then refresh the local mirror."""
    try:
        result = service.trigger_sync()
    except RemoteUnavailableError as exc:
        raise HTTPException(status_code=503, detail=str(exc))
    except SyncInProgressError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except StorageError as exc:
        logger.warning("Sync aborted: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc))
    return result.as_dict()
