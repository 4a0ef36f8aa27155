"""
Notification Triage API Routes

Endpoints for submitting messages and reading the resulting delivery plans,
the pending-notification queue, and per-message status.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Path, status

from api.models.notifications import (
    BatchResponse,
    BatchSubmission,
    DeliveryPlanResponse,
    MessageStatusResponse,
    MessageSubmission,
    PlanListResponse
)
from api.services.triage_service import TriageService, get_triage_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notification Triage"])


@router.post(
    "/messages",
    response_model=DeliveryPlanResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Triage an incoming message"
)
async def submit_message(
    request: MessageSubmission,
    triage_service: TriageService = Depends(get_triage_service)
):
    """
    Classify a message and decide when it should be delivered.

    A delivery transport failure is reported as 502; the message is still
    recorded as processed.
    """
    message = triage_service.build_message(
        sender=request.sender,
        content=request.content,
        message_id=request.message_id,
        received_at=request.received_at
    )
    plan = await triage_service.submit(message)
    return DeliveryPlanResponse.from_plan(plan)


@router.post(
    "/messages/batch",
    response_model=BatchResponse,
    summary="Triage several messages at once"
)
async def submit_batch(
    request: BatchSubmission,
    triage_service: TriageService = Depends(get_triage_service)
):
    """Messages are triaged concurrently; plans are not returned in submission order."""
    messages = [
        triage_service.build_message(
            sender=item.sender,
            content=item.content,
            message_id=item.message_id,
            received_at=item.received_at
        )
        for item in request.messages
    ]
    plans, errors = await triage_service.submit_batch(messages)
    return BatchResponse(
        plans=[DeliveryPlanResponse.from_plan(p) for p in plans],
        errors=errors
    )


@router.get(
    "/pending",
    response_model=PlanListResponse,
    summary="Deferred notifications ordered by delivery time"
)
async def get_pending(triage_service: TriageService = Depends(get_triage_service)):
    plans = await triage_service.pending()
    return PlanListResponse(
        plans=[DeliveryPlanResponse.from_plan(p) for p in plans],
        total=len(plans)
    )


@router.get(
    "/plans",
    response_model=PlanListResponse,
    summary="Every issued plan in decision order, cancellations marked"
)
async def get_plans(triage_service: TriageService = Depends(get_triage_service)):
    plans = triage_service.history()
    return PlanListResponse(
        plans=[
            DeliveryPlanResponse.from_plan(p, cancelled=triage_service.is_cancelled(p.message_id))
            for p in plans
        ],
        total=len(plans)
    )


@router.get(
    "/messages/{message_id}",
    response_model=MessageStatusResponse,
    summary="Get triage status of a message"
)
async def get_message_status(
    message_id: str = Path(..., description="Message ID"),
    triage_service: TriageService = Depends(get_triage_service)
):
    record = triage_service.get_record(message_id)
    classification = record.classification
    return MessageStatusResponse(
        message_id=record.message.message_id,
        sender=record.message.sender,
        state=record.state,
        priority=classification.priority if classification else None,
        confidence=classification.confidence if classification else None,
        reasoning=classification.reasoning if classification else None,
        classification_fallback=classification.fallback if classification else False,
        plan=DeliveryPlanResponse.from_plan(record.plan) if record.plan else None,
        error=record.error,
        cancelled=record.cancelled
    )


@router.delete(
    "/pending/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel a deferred notification"
)
async def cancel_pending(
    message_id: str = Path(..., description="Message ID"),
    triage_service: TriageService = Depends(get_triage_service)
):
    if not await triage_service.cancel(message_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No pending notification for message {message_id}"
        )
