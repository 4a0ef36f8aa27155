"""
Triage Service Implementation

Owns the application's triage processor and context provider and exposes
the operations used by the API routes.

Design Considerations:
- One caller-controlled processor per application instance
- Groq classification when credentials are configured, keyword matching
  otherwise
- Route handlers never touch triage state directly
"""

import logging
from datetime import datetime
from functools import lru_cache
from typing import Callable, List, Optional, Tuple

from src.config.settings import TriageSettings, get_triage_settings
from src.integrations.groq.client import EnhancedGroqClient
from src.notification_triage import (
    BasePriorityClassifier,
    CalendarContextProvider,
    CalendarEvent,
    DelayCalculator,
    DeliveryPlan,
    DeliverySink,
    GroqPriorityClassifier,
    KeywordPriorityClassifier,
    Message,
    NotificationScheduler,
    RecordingDeliverySink,
    TriageProcessor
)
from src.notification_triage.processor import MessageRecord
from src.utils.date_utils import ensure_aware, local_now

logger = logging.getLogger(__name__)


def build_classifier(settings: TriageSettings) -> BasePriorityClassifier:
    """Pick the Groq classifier when an API key is configured."""
    if settings.GROQ_API_KEY is None:
        logger.warning("GROQ_API_KEY not configured, using keyword priority classifier")
        return KeywordPriorityClassifier()

    client = EnhancedGroqClient(api_key=settings.GROQ_API_KEY.get_secret_value())
    return GroqPriorityClassifier(client=client, model_name=settings.CLASSIFIER_MODEL)


class TriageService:
    """
    Application-level facade over the triage engine.

    Args:
        settings: Triage settings (timezone, working hours, classifier)
        classifier: Overrides the classifier chosen from settings
        delivery_sink: Overrides the default recording sink
        clock: Overrides the current-time source
    """

    def __init__(
        self,
        settings: Optional[TriageSettings] = None,
        classifier: Optional[BasePriorityClassifier] = None,
        delivery_sink: Optional[DeliverySink] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.settings = settings or get_triage_settings()
        tz = self.settings.tzinfo
        self.clock = clock or (lambda: local_now(tz))

        self.context_provider = CalendarContextProvider(clock=self.clock)
        self.delivery_sink = delivery_sink or RecordingDeliverySink()
        calculator = DelayCalculator(
            batch_hour=self.settings.WORK_HOURS_END,
            resume_hour=self.settings.WORK_HOURS_START
        )
        scheduler = NotificationScheduler(
            delivery_sink=self.delivery_sink,
            next_free_time=self.context_provider.next_free_time,
            calculator=calculator,
            clock=self.clock
        )
        self.processor = TriageProcessor(
            classifier=classifier or build_classifier(self.settings),
            context_provider=self.context_provider,
            scheduler=scheduler
        )
        logger.info(f"Triage service ready (timezone {self.settings.TIMEZONE})")

    def build_message(
        self,
        sender: str,
        content: str,
        message_id: Optional[str] = None,
        received_at: Optional[datetime] = None
    ) -> Message:
        received = ensure_aware(received_at, self.settings.tzinfo) if received_at else self.clock()
        if message_id:
            return Message(sender=sender, content=content, received_at=received, message_id=message_id)
        return Message(sender=sender, content=content, received_at=received)

    async def submit(self, message: Message) -> DeliveryPlan:
        return await self.processor.process_message(message)

    async def submit_batch(self, messages: List[Message]) -> Tuple[List[DeliveryPlan], List[str]]:
        return await self.processor.process_batch(messages)

    async def pending(self) -> Tuple[DeliveryPlan, ...]:
        """Pending plans after clearing any whose time has come."""
        await self.processor.release_due()
        return self.processor.pending()

    def history(self) -> Tuple[DeliveryPlan, ...]:
        return self.processor.scheduler.history()

    def get_record(self, message_id: str) -> MessageRecord:
        return self.processor.get_record(message_id)

    async def cancel(self, message_id: str) -> bool:
        return await self.processor.cancel(message_id)

    def is_cancelled(self, message_id: str) -> bool:
        return self.processor.scheduler.is_cancelled(message_id)

    def set_focus(self, is_focused: bool) -> None:
        self.context_provider.set_focus(is_focused)

    def create_event(self, **fields) -> CalendarEvent:
        tz = self.settings.tzinfo
        fields["start"] = ensure_aware(fields["start"], tz)
        fields["end"] = ensure_aware(fields["end"], tz)
        return self.context_provider.create_event(CalendarEvent(**fields))

    def update_event(self, event_id: str, **changes) -> CalendarEvent:
        tz = self.settings.tzinfo
        for key in ("start", "end"):
            if changes.get(key) is not None:
                changes[key] = ensure_aware(changes[key], tz)
        return self.context_provider.update_event(event_id, **changes)

    def delete_event(self, event_id: str) -> None:
        self.context_provider.delete_event(event_id)


@lru_cache
def get_triage_service() -> TriageService:
    """Provide the application's triage service for dependency injection."""
    return TriageService()
