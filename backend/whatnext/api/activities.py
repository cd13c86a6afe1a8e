"""Activities API: list, suggest, add, delete, adjust priority."""
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List, Optional
from pydantic import BaseModel, ConfigDict

from ..core.config import settings
from ..core.errors import ActivityNotFoundError, DuplicateNameError, InvalidActivityError, StorageError
from ..services.activity_service import ActivityService
from .deps import get_activity_service

router = APIRouter(prefix="/activities", tags=["activities"])


# ── Request / Response schemas ──────────────────────────────────────────────

class ActivityCreate(BaseModel):
    name: str
    priority: Optional[float] = None


class PriorityAdjust(BaseModel):
    delta: float


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    activity: str
    priority: float


class SuggestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    activity: str
    priority: float
    min_roll: float


def _storage_failure(exc: StorageError) -> HTTPException:
    return HTTPException(status_code=500, detail=str(exc))


# ── Endpoints ────────────────────────────────────────────────────────────────

@router.get("/", response_model=List[ActivityResponse])
def list_activities(service: ActivityService = Depends(get_activity_service)):
    try:
        return [a.as_dict() for a in service.list_all()]
    except StorageError as exc:
        raise _storage_failure(exc)


@router.get("/suggest", response_model=SuggestionResponse)
def suggest_activity(service: ActivityService = Depends(get_activity_service)):
    """Priority-weighted random suggestion."""
    try:
        suggestion = service.suggest()
    except StorageError as exc:
        raise _storage_failure(exc)
    if suggestion is None:
        raise HTTPException(status_code=404, detail="No activities available")
    return suggestion


@router.post("/", response_model=ActivityResponse, status_code=status.HTTP_201_CREATED)
def create_activity(
    activity_in: ActivityCreate,
    service: ActivityService = Depends(get_activity_service),
):
    priority = activity_in.priority if activity_in.priority is not None else settings.DEFAULT_PRIORITY
    try:
        created = service.add(activity_in.name, priority)
    except InvalidActivityError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except DuplicateNameError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except StorageError as exc:
        raise _storage_failure(exc)
    return created.as_dict()


@router.patch("/{name:path}/priority", response_model=ActivityResponse)
def adjust_priority(
    name: str,
    adjust_in: PriorityAdjust,
    service: ActivityService = Depends(get_activity_service),
):
    """Shift an activity's priority by ``delta`` (floored at 0.1, one decimal)."""
    try:
        new_priority = service.adjust_priority(name, adjust_in.delta)
    except InvalidActivityError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except ActivityNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except StorageError as exc:
        raise _storage_failure(exc)
    return {"activity": name, "priority": new_priority}


@router.delete("/{name:path}")
def delete_activity(name: str, service: ActivityService = Depends(get_activity_service)):
    try:
        deleted = service.delete(name)
    except StorageError as exc:
        raise _storage_failure(exc)
    if not deleted:
        raise HTTPException(status_code=404, detail="Activity not found")
    return {"deleted": name}
