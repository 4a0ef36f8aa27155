"""
Command-line triage of a single message.

Builds a triage processor around a fixed context (focus flag, work status,
optional next free time) and prints the resulting delivery plan.
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from typing import Optional

from dotenv import load_dotenv

from src.config.settings import get_triage_settings
from src.notification_triage import (
    BasePriorityClassifier,
    ClassificationResult,
    ContextSnapshot,
    DelayCalculator,
    Message,
    MessagePriority,
    NotificationScheduler,
    RecordingDeliverySink,
    TriageProcessor,
    WorkStatus
)
from api.services.triage_service import build_classifier
from src.utils.date_utils import ensure_aware, local_now

load_dotenv()

logger = logging.getLogger("triage_cli")


class FixedContextProvider:
    """Context provider that always reports the same state."""

    def __init__(self, work_status: WorkStatus, is_focused: bool, now: datetime,
                 next_free: Optional[datetime] = None):
        self.work_status = work_status
        self.is_focused = is_focused
        self.now = now
        self.next_free = next_free

    def clock(self) -> datetime:
        return self.now

    def current_context(self) -> ContextSnapshot:
        return ContextSnapshot(
            work_status=self.work_status,
            is_focused=self.is_focused,
            captured_at=self.now
        )

    def next_free_time(self) -> Optional[datetime]:
        return self.next_free


class FixedPriorityClassifier(BasePriorityClassifier):
    """Skips classification and reports a priority given on the command line."""

    def __init__(self, priority: MessagePriority):
        self.priority = priority

    async def classify(self, message, context) -> ClassificationResult:
        return ClassificationResult(priority=self.priority, confidence=1.0, reasoning="Set on command line")


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(description="Decide when a message should be delivered")
    parser.add_argument("content", help="Message body")
    parser.add_argument("--sender", default="unknown", help="Message sender")
    parser.add_argument(
        "--priority",
        choices=[p.value for p in MessagePriority],
        help="Skip classification and use this priority"
    )
    parser.add_argument(
        "--status",
        choices=[s.value for s in WorkStatus],
        default=WorkStatus.FREE.value,
        help="Current work status (default: free)"
    )
    parser.add_argument("--focused", action="store_true", help="Focus mode is on")
    parser.add_argument("--next-free", type=datetime.fromisoformat, help="Next free time (ISO format)")
    parser.add_argument("--now", type=datetime.fromisoformat, help="Decision time (ISO format)")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def run(args) -> int:
    settings = get_triage_settings()
    tz = settings.tzinfo
    now = ensure_aware(args.now, tz) if args.now else local_now(tz)
    next_free = ensure_aware(args.next_free, tz) if args.next_free else None

    provider = FixedContextProvider(WorkStatus(args.status), args.focused, now, next_free)
    sink = RecordingDeliverySink()
    scheduler = NotificationScheduler(
        delivery_sink=sink,
        next_free_time=provider.next_free_time,
        clock=provider.clock,
        calculator=DelayCalculator(
            batch_hour=settings.WORK_HOURS_END,
            resume_hour=settings.WORK_HOURS_START
        )
    )
    classifier = (
        FixedPriorityClassifier(MessagePriority(args.priority))
        if args.priority else build_classifier(settings)
    )
    processor = TriageProcessor(classifier=classifier, context_provider=provider, scheduler=scheduler)

    message = Message(sender=args.sender, content=args.content, received_at=now)
    plan = await processor.process_message(message)

    print(f"Priority:  {plan.priority.value}")
    print(f"Strategy:  {plan.strategy.value}")
    print(f"Deliver at: {plan.target_time.isoformat()}")
    print(f"Reason:    {plan.reason}")
    return 0


def main(argv=None) -> int:
    args = parse_arguments(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
