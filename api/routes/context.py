"""
User Context API Routes

Reads the user's current context and manages the focus flag and calendar
entries it is derived from.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Path, status

from api.models.notifications import (
    CalendarEventRequest,
    CalendarEventResponse,
    CalendarEventUpdate,
    ContextResponse,
    FocusUpdate
)
from api.services.triage_service import TriageService, get_triage_service
from src.notification_triage import CalendarEvent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/context", tags=["User Context"])


def _event_response(event: CalendarEvent) -> CalendarEventResponse:
    return CalendarEventResponse(
        event_id=event.event_id,
        title=event.title,
        start=event.start,
        end=event.end,
        notes=event.notes,
        location=event.location,
        calendar_title=event.calendar_title,
        is_all_day=event.is_all_day
    )


@router.get("/", response_model=ContextResponse, summary="Current user context")
async def get_context(triage_service: TriageService = Depends(get_triage_service)):
    provider = triage_service.context_provider
    snapshot = provider.current_context()
    return ContextResponse(
        work_status=snapshot.work_status,
        is_focused=snapshot.is_focused,
        captured_at=snapshot.captured_at,
        upcoming_event_titles=list(snapshot.upcoming_event_titles),
        current_event=snapshot.current_event,
        next_free_time=provider.next_free_time()
    )


@router.put("/focus", response_model=ContextResponse, summary="Set focus mode")
async def set_focus(
    request: FocusUpdate,
    triage_service: TriageService = Depends(get_triage_service)
):
    triage_service.set_focus(request.is_focused)
    return await get_context(triage_service)


@router.get("/events", response_model=List[CalendarEventResponse], summary="List calendar entries")
async def list_events(triage_service: TriageService = Depends(get_triage_service)):
    return [_event_response(e) for e in triage_service.context_provider.list_events()]


@router.post(
    "/events",
    response_model=CalendarEventResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a calendar entry"
)
async def create_event(
    request: CalendarEventRequest,
    triage_service: TriageService = Depends(get_triage_service)
):
    event = triage_service.create_event(**request.model_dump())
    return _event_response(event)


@router.put("/events/{event_id}", response_model=CalendarEventResponse, summary="Update a calendar entry")
async def update_event(
    request: CalendarEventUpdate,
    event_id: str = Path(..., description="Event ID"),
    triage_service: TriageService = Depends(get_triage_service)
):
    try:
        event = triage_service.update_event(event_id, **request.model_dump())
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    return _event_response(event)


@router.delete(
    "/events/{event_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a calendar entry"
)
async def delete_event(
    event_id: str = Path(..., description="Event ID"),
    triage_service: TriageService = Depends(get_triage_service)
):
    triage_service.delete_event(event_id)
