"""
Shared data models for notification triage.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple


class MessagePriority(Enum):
    """Classifier-assigned urgency of an incoming message."""
    URGENT = "urgent"
    IMPORTANT = "important"
    NORMAL = "normal"
    LOW = "low"
    UNKNOWN = "unknown"

    @property
    def severity(self) -> int:
        """Display rank, higher is more severe. Not used for strategy selection."""
        return _SEVERITY[self]

    @classmethod
    def from_label(cls, label: Optional[str]) -> "MessagePriority":
        """Map a classifier label to a priority, treating unrecognised labels as normal."""
        if not label:
            return cls.NORMAL
        try:
            return cls(label.strip().lower())
        except ValueError:
            return cls.NORMAL


_SEVERITY = {
    MessagePriority.URGENT: 4,
    MessagePriority.IMPORTANT: 3,
    MessagePriority.NORMAL: 2,
    MessagePriority.LOW: 1,
    MessagePriority.UNKNOWN: 0,
}


class WorkStatus(Enum):
    """Calendar-derived occupancy of the user."""
    WORKING = "working"
    IN_MEETING = "inMeeting"
    RESTING = "resting"
    FREE = "free"
    UNKNOWN = "unknown"


class DelayStrategy(Enum):
    """Terminal outcome of strategy selection."""
    IMMEDIATE = "immediate"
    DELAY_UNTIL_FREE = "delay_until_free"
    DELAY_UNTIL_MEETING_END = "delay_until_meeting_end"
    BATCH_END_OF_DAY = "batch_end_of_day"
    SUPPRESS = "suppress"

    @property
    def is_deferred(self) -> bool:
        return self in (
            DelayStrategy.DELAY_UNTIL_FREE,
            DelayStrategy.DELAY_UNTIL_MEETING_END,
            DelayStrategy.BATCH_END_OF_DAY,
        )


class MessageState(Enum):
    """Lifecycle of a message. Transitions only move forward."""
    RECEIVED = "received"
    CLASSIFIED = "classified"
    SCHEDULED = "scheduled"
    DELIVERED = "delivered"
    SUPPRESSED = "suppressed"
    DELIVERY_FAILED = "delivery_failed"


@dataclass(frozen=True)
class Message:
    """An incoming message awaiting triage."""
    sender: str
    content: str
    received_at: datetime
    message_id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass(frozen=True)
class ContextSnapshot:
    """
    User context captured once per incoming message.

    Attributes:
        work_status: Occupancy derived from the calendar
        is_focused: Whether a do-not-disturb-like focus mode is active
        captured_at: When the snapshot was taken (timezone-aware)
        upcoming_event_titles: Titles of events starting within the next hour
        current_event: Title of the event covering the capture time, if any
    """
    work_status: WorkStatus
    is_focused: bool
    captured_at: datetime
    upcoming_event_titles: Tuple[str, ...] = ()
    current_event: Optional[str] = None


@dataclass(frozen=True)
class ClassificationResult:
    """Priority assigned to a message by the classifier."""
    priority: MessagePriority
    confidence: float = 0.0
    reasoning: str = ""
    fallback: bool = False


@dataclass(frozen=True)
class DeliveryPlan:
    """
    Finalized decision for presenting (or suppressing) one message.

    Attributes:
        message_id: Reference to the triaged message
        priority: Priority the decision was made with
        strategy: Selected delay strategy
        target_time: When the notification is due; the decision time for
            immediate delivery
        reason: Human-readable explanation of the decision
        decided_at: When the plan was created
        delivered_immediately: True when a deferred strategy resolved to a
            time that had already passed and was delivered right away
    """
    message_id: str
    priority: MessagePriority
    strategy: DelayStrategy
    target_time: datetime
    reason: str
    decided_at: datetime
    delivered_immediately: bool = False
