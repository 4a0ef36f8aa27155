"""
Notification Triage API Models

Request and response models for message submission, delivery plans, and
the user's calendar/focus context.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator

from src.notification_triage.models import (
    DelayStrategy,
    DeliveryPlan,
    MessagePriority,
    MessageState,
    WorkStatus
)


class MessageSubmission(BaseModel):
    """Incoming message to triage."""
    sender: str = Field(..., min_length=1, description="Message sender")
    content: str = Field(..., min_length=1, description="Message body")
    message_id: Optional[str] = Field(
        default=None,
        description="Client-supplied identifier; generated when omitted"
    )
    received_at: Optional[datetime] = Field(
        default=None,
        description="Arrival time; defaults to now"
    )


class BatchSubmission(BaseModel):
    """Several messages submitted together."""
    messages: List[MessageSubmission] = Field(..., min_length=1, max_length=100)


class DeliveryPlanResponse(BaseModel):
    """Delivery decision for one message."""
    message_id: str
    priority: MessagePriority
    strategy: DelayStrategy
    target_time: datetime
    reason: str
    decided_at: datetime
    delivered_immediately: bool = False
    cancelled: bool = False

    @classmethod
    def from_plan(cls, plan: DeliveryPlan, cancelled: bool = False) -> "DeliveryPlanResponse":
        return cls(
            message_id=plan.message_id,
            priority=plan.priority,
            strategy=plan.strategy,
            target_time=plan.target_time,
            reason=plan.reason,
            decided_at=plan.decided_at,
            delivered_immediately=plan.delivered_immediately,
            cancelled=cancelled
        )


class BatchResponse(BaseModel):
    """Outcome of a batch submission."""
    plans: List[DeliveryPlanResponse]
    errors: List[str]


class PlanListResponse(BaseModel):
    plans: List[DeliveryPlanResponse]
    total: int


class MessageStatusResponse(BaseModel):
    """Lifecycle state of a triaged message."""
    message_id: str
    sender: str
    state: MessageState
    priority: Optional[MessagePriority] = None
    confidence: Optional[float] = None
    reasoning: Optional[str] = None
    classification_fallback: bool = False
    plan: Optional[DeliveryPlanResponse] = None
    error: Optional[str] = None
    cancelled: bool = False


class ContextResponse(BaseModel):
    """Snapshot of the user's current context."""
    work_status: WorkStatus
    is_focused: bool
    captured_at: datetime
    upcoming_event_titles: List[str]
    current_event: Optional[str] = None
    next_free_time: Optional[datetime] = None


class FocusUpdate(BaseModel):
    is_focused: bool


class CalendarEventRequest(BaseModel):
    """Calendar entry to create."""
    title: str = Field(..., min_length=1)
    start: datetime
    end: datetime
    notes: Optional[str] = None
    location: Optional[str] = None
    is_all_day: bool = False

    @model_validator(mode="after")
    def validate_range(self) -> "CalendarEventRequest":
        if self.end < self.start:
            raise ValueError("Event end must not precede its start")
        return self


class CalendarEventUpdate(BaseModel):
    """Fields to change on an existing calendar entry."""
    title: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    notes: Optional[str] = None
    location: Optional[str] = None


class CalendarEventResponse(BaseModel):
    event_id: str
    title: str
    start: datetime
    end: datetime
    notes: Optional[str] = None
    location: Optional[str] = None
    calendar_title: str
    is_all_day: bool
