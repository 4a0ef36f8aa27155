"""
Triage Processor

Owns the triage state for one user: receives messages, snapshots the user's
context, awaits priority classification, and hands the result to the
scheduler. Tracks every message through its lifecycle.

Design Considerations:
- Classification failures fall back to normal priority and never stop
  processing
- Delivery failures are surfaced to the caller; the message stays processed
- Messages submitted together are classified concurrently with no ordering
  guarantee between them
"""

import asyncio
import logging
import time
from datetime import datetime
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from src.notification_triage.classifier import BasePriorityClassifier
from src.notification_triage.context import CalendarContextProvider
from src.notification_triage.exceptions import (
    DeliveryTransportError,
    DuplicateMessageError,
    MessageNotFoundError
)
from src.notification_triage.models import (
    ClassificationResult,
    ContextSnapshot,
    DelayStrategy,
    DeliveryPlan,
    Message,
    MessagePriority,
    MessageState
)
from src.notification_triage.scheduler import NotificationScheduler

logger = logging.getLogger(__name__)

# Allowed forward transitions
TRANSITIONS = {
    MessageState.RECEIVED: {MessageState.CLASSIFIED},
    MessageState.CLASSIFIED: {MessageState.SCHEDULED, MessageState.SUPPRESSED},
    MessageState.SCHEDULED: {MessageState.DELIVERED, MessageState.DELIVERY_FAILED},
    MessageState.DELIVERED: set(),
    MessageState.SUPPRESSED: set(),
    MessageState.DELIVERY_FAILED: set(),
}


@dataclass
class MessageRecord:
    """Triage progress of a single message."""
    message: Message
    state: MessageState = MessageState.RECEIVED
    context: Optional[ContextSnapshot] = None
    classification: Optional[ClassificationResult] = None
    plan: Optional[DeliveryPlan] = None
    error: Optional[str] = None
    cancelled: bool = False

    def advance(self, state: MessageState) -> None:
        if state not in TRANSITIONS[self.state]:
            raise ValueError(f"Invalid transition {self.state.value} -> {state.value}")
        self.state = state


class TriageProcessor:
    """
    Coordinates classification and scheduling for incoming messages.

    Args:
        classifier: Priority classifier collaborator
        context_provider: Source of context snapshots
        scheduler: Scheduler issuing delivery plans
    """

    def __init__(
        self,
        classifier: BasePriorityClassifier,
        context_provider: CalendarContextProvider,
        scheduler: NotificationScheduler
    ):
        self.classifier = classifier
        self.context_provider = context_provider
        self.scheduler = scheduler
        self._records: Dict[str, MessageRecord] = {}
        logger.info("TriageProcessor initialized successfully")

    async def _classify(self, message: Message, context: ContextSnapshot) -> ClassificationResult:
        try:
            return await self.classifier.classify(message, context)
        except Exception as e:
            logger.error(f"Classification failed for {message.message_id}: {e}, defaulting to normal priority")
            return ClassificationResult(
                priority=MessagePriority.NORMAL,
                confidence=0.0,
                reasoning=f"Classification failed: {e}",
                fallback=True
            )

    async def process_message(self, message: Message) -> DeliveryPlan:
        """
        Triage one message end to end.

        Args:
            message: Incoming message

        Returns:
            The delivery plan issued for the message. A message that was
            already processed returns its existing plan.

        Raises:
            DeliveryTransportError: If the delivery sink fails
            DuplicateMessageError: If the same message is still in flight
        """
        existing = self._records.get(message.message_id)
        if existing is not None:
            logger.info(f"Message {message.message_id} already received, skipping")
            if existing.plan is None:
                raise DuplicateMessageError(f"Message {message.message_id} is still being processed")
            return existing.plan

        record = MessageRecord(message=message)
        self._records[message.message_id] = record
        start_time = time.time()

        record.context = self.context_provider.current_context()
        record.classification = await self._classify(message, record.context)
        record.advance(MessageState.CLASSIFIED)

        priority = record.classification.priority
        try:
            plan = await self.scheduler.schedule(message, priority, record.context)
        except DeliveryTransportError as e:
            record.plan = self.scheduler.get_plan(message.message_id)
            record.advance(MessageState.SCHEDULED)
            record.advance(MessageState.DELIVERY_FAILED)
            record.error = str(e)
            raise

        record.plan = plan
        if plan.strategy is DelayStrategy.SUPPRESS:
            record.advance(MessageState.SUPPRESSED)
        else:
            record.advance(MessageState.SCHEDULED)
            if plan.strategy is DelayStrategy.IMMEDIATE or plan.delivered_immediately:
                record.advance(MessageState.DELIVERED)

        duration = time.time() - start_time
        logger.info(
            f"Processed {message.message_id} in {duration:.2f}s: "
            f"{priority.value} -> {plan.strategy.value} ({record.state.value})"
        )
        return plan

    async def process_batch(self, messages: Iterable[Message]) -> Tuple[List[DeliveryPlan], List[str]]:
        """
        Triage several messages concurrently.

        Returns:
            Tuple of (issued plans, error messages)
        """
        results = await asyncio.gather(
            *(self.process_message(m) for m in messages),
            return_exceptions=True
        )
        plans: List[DeliveryPlan] = []
        errors: List[str] = []
        for result in results:
            if isinstance(result, DeliveryPlan):
                plans.append(result)
            else:
                errors.append(str(result))

        logger.info(f"Completed batch processing: {len(plans)} planned, {len(errors)} errors")
        return plans, errors

    async def release_due(self, now: Optional[datetime] = None) -> Tuple[DeliveryPlan, ...]:
        """
        Clear deferred plans whose target time has been reached and mark
        their messages delivered.
        """
        now = now or self.context_provider.clock()
        released = await self.scheduler.release_due(now)
        for plan in released:
            self._records[plan.message_id].advance(MessageState.DELIVERED)
        return released

    async def cancel(self, message_id: str) -> bool:
        """Withdraw a deferred notification that has not fired yet."""
        record = self.get_record(message_id)
        withdrawn = await self.scheduler.cancel(message_id)
        if withdrawn:
            record.cancelled = True
        return withdrawn

    def get_record(self, message_id: str) -> MessageRecord:
        record = self._records.get(message_id)
        if record is None:
            raise MessageNotFoundError(f"No message with ID {message_id}")
        return record

    def records(self) -> List[MessageRecord]:
        """Records ordered by when messages were received."""
        return sorted(self._records.values(), key=lambda r: r.message.received_at)

    def pending(self) -> Tuple[DeliveryPlan, ...]:
        return self.scheduler.pending()
