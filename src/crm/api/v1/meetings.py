"""REST API endpoints for meetings.

Routes (mounted under /api/meeting):
- GET    /               list enriched meetings (auth)
- GET    /view/{id}      one enriched meeting (public)
- POST   /add            create a meeting (auth)
- DELETE /delete/{id}    delete one meeting (auth)
- POST   /deleteMany     delete meetings matching a filter (auth)

List and bulk-delete filters come from the createdBy and (repeatable) id
query parameters. Failures are MeetingError subclasses raised by
MeetingService and rendered with their own status code and payload.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from src.crm.api.deps import get_current_user
from src.crm.meetings.exceptions import MeetingError
from src.crm.meetings.schemas import (
    EnrichedMeeting,
    MeetingCreatedResponse,
    MeetingDeletedResponse,
    MeetingInput,
    MeetingsDeletedResponse,
)
from src.crm.meetings.service import MeetingService, build_filter
from src.crm.models.people import User

router = APIRouter(prefix="/api/meeting", tags=["meeting"])


# ── Dependency Injection Helpers ─────────────────────────────────────────────


def _get_meeting_service(request: Request) -> MeetingService:
    """Retrieve MeetingService from app.state, 503 if not available."""
    service = getattr(request.app.state, "meeting_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Meeting service not initialized",
        )
    return service


def _error_response(error: MeetingError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.payload())


# ── Endpoints ────────────────────────────────────────────────────────────────


@router.get("/", response_model=list[EnrichedMeeting])
async def index(
    request: Request,
    created_by: str | None = Query(default=None, alias="createdBy"),
    ids: list[str] | None = Query(default=None, alias="id"),
    user: User = Depends(get_current_user),
):
    """List enriched meetings, optionally filtered by creator or ids."""
    service = _get_meeting_service(request)
    try:
        return await service.list(build_filter(created_by, ids))
    except MeetingError as e:
        return _error_response(e)


@router.get("/view/{meeting_id}", response_model=EnrichedMeeting)
async def view(meeting_id: str, request: Request):
    """Get one enriched meeting by id."""
    service = _get_meeting_service(request)
    try:
        return await service.view(meeting_id)
    except MeetingError as e:
        return _error_response(e)


@router.post("/add", response_model=MeetingCreatedResponse)
async def add(
    body: MeetingInput,
    request: Request,
    user: User = Depends(get_current_user),
):
    """Create a meeting."""
    service = _get_meeting_service(request)
    try:
        meeting = await service.create(body)
    except MeetingError as e:
        return _error_response(e)
    return MeetingCreatedResponse(result=meeting)


@router.delete("/delete/{meeting_id}", response_model=MeetingDeletedResponse)
async def delete_one(
    meeting_id: str,
    request: Request,
    user: User = Depends(get_current_user),
):
    """Permanently delete one meeting."""
    service = _get_meeting_service(request)
    try:
        meeting = await service.delete_one(meeting_id)
    except MeetingError as e:
        return _error_response(e)
    return MeetingDeletedResponse(message="Meeting deleted successfully", result=meeting)


@router.post("/deleteMany", response_model=MeetingsDeletedResponse)
async def delete_many(
    request: Request,
    created_by: str | None = Query(default=None, alias="createdBy"),
    ids: list[str] | None = Query(default=None, alias="id"),
    user: User = Depends(get_current_user),
):
    """Delete all meetings matching the createdBy / id filter (all when empty)."""
    service = _get_meeting_service(request)
    try:
        count = await service.delete_many(build_filter(created_by, ids))
    except MeetingError as e:
        return _error_response(e)
    return MeetingsDeletedResponse(
        message=f"{count} meeting(s) deleted successfully",
        count=count,
    )
