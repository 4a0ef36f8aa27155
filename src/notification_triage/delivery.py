"""
Notification delivery collaborators.

The scheduler hands each non-suppressed plan to a delivery sink exactly
once, either for immediate presentation or for presentation at a target
time. Sinks may implement their methods as plain or coroutine functions and
signal failure by raising.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeliveryRecord:
    """A notification accepted by the sink."""
    message_id: str
    title: str
    body: str
    is_critical: bool = False
    target_time: Optional[datetime] = None
    reason: Optional[str] = None

    @property
    def deferred(self) -> bool:
        return self.target_time is not None


class DeliverySink:
    """Contract for the notification transport."""

    async def deliver_now(self, message_id: str, title: str, body: str, is_critical: bool) -> None:
        """Present a notification immediately."""
        raise NotImplementedError("Must implement deliver_now")

    async def deliver_at(
        self,
        message_id: str,
        title: str,
        body: str,
        target_time: datetime,
        reason: str
    ) -> None:
        """Register a notification to fire once at or after target_time."""
        raise NotImplementedError("Must implement deliver_at")

    async def cancel(self, message_id: str) -> None:
        """Withdraw a notification registered with deliver_at."""
        raise NotImplementedError("Must implement cancel")


class RecordingDeliverySink(DeliverySink):
    """Logs and records every accepted notification in memory."""

    def __init__(self):
        self.records: List[DeliveryRecord] = []
        self.cancelled: List[str] = []

    async def deliver_now(self, message_id: str, title: str, body: str, is_critical: bool) -> None:
        logger.info(f"Presenting {'critical ' if is_critical else ''}notification for {message_id}: {title}")
        self.records.append(DeliveryRecord(message_id, title, body, is_critical=is_critical))

    async def deliver_at(
        self,
        message_id: str,
        title: str,
        body: str,
        target_time: datetime,
        reason: str
    ) -> None:
        logger.info(f"Notification for {message_id} registered for {target_time.isoformat()} ({reason})")
        self.records.append(
            DeliveryRecord(message_id, title, body, target_time=target_time, reason=reason)
        )

    async def cancel(self, message_id: str) -> None:
        logger.info(f"Withdrew deferred notification for {message_id}")
        self.cancelled.append(message_id)

    def immediate(self) -> List[DeliveryRecord]:
        return [r for r in self.records if not r.deferred]

    def deferred(self) -> List[DeliveryRecord]:
        return [r for r in self.records if r.deferred]
