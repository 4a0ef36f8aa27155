"""
Notification Scheduler

Turns a classified message and a context snapshot into a delivery plan,
records it, and hands it to the delivery sink.

Design Considerations:
- One plan per message, immutable once issued
- Exactly one sink call per non-suppressed message, no retries
- Deferred targets that have already passed are delivered immediately
- Pending plans are read as snapshots ordered by target time
- All state mutations happen under a single lock
"""

import asyncio
import inspect
import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from src.notification_triage.delay import DelayCalculator, NextFreeTimeLookup
from src.notification_triage.delivery import DeliverySink
from src.notification_triage.exceptions import DeliveryTransportError
from src.notification_triage.models import (
    ContextSnapshot,
    DelayStrategy,
    DeliveryPlan,
    Message,
    MessagePriority
)
from src.notification_triage.strategy import select_strategy

logger = logging.getLogger(__name__)

REASONS = {
    DelayStrategy.IMMEDIATE: "Delivered immediately",
    DelayStrategy.DELAY_UNTIL_FREE: "Waiting for free time",
    DelayStrategy.DELAY_UNTIL_MEETING_END: "Notify after the meeting ends",
    DelayStrategy.BATCH_END_OF_DAY: "End-of-day summary",
    DelayStrategy.SUPPRESS: "Suppressed: unclassified message",
}
PASSED_SUFFIX = " (target already passed, delivered now)"


class NotificationScheduler:
    """
    Orchestrates strategy selection, delay calculation, and delivery.

    Args:
        delivery_sink: Transport that presents notifications
        next_free_time: Lookup for the user's next free time
        calculator: Delay calculator (defaults to configured constants)
        clock: Returns the decision time; defaults to the snapshot's
            capture time
    """

    def __init__(
        self,
        delivery_sink: DeliverySink,
        next_free_time: NextFreeTimeLookup,
        calculator: Optional[DelayCalculator] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.delivery_sink = delivery_sink
        self.next_free_time = next_free_time
        self.calculator = calculator or DelayCalculator()
        self.clock = clock
        self._lock = asyncio.Lock()
        self._plans: Dict[str, DeliveryPlan] = {}
        self._history: List[DeliveryPlan] = []
        self._pending: Dict[str, DeliveryPlan] = {}
        self._cancelled: set = set()

    def build_plan(
        self,
        message: Message,
        priority: MessagePriority,
        context: ContextSnapshot
    ) -> DeliveryPlan:
        """
        Decide strategy and target time without side effects.

        Args:
            message: Message being triaged
            priority: Classified priority
            context: Context snapshot for this message

        Returns:
            The delivery plan for the message
        """
        now = self.clock() if self.clock else context.captured_at
        strategy = select_strategy(priority, context.is_focused, context.work_status)
        logger.debug(
            f"Strategy for {message.message_id}: priority={priority.value} "
            f"focused={context.is_focused} status={context.work_status.value} -> {strategy.value}"
        )

        if not strategy.is_deferred:
            return DeliveryPlan(
                message_id=message.message_id,
                priority=priority,
                strategy=strategy,
                target_time=now,
                reason=REASONS[strategy],
                decided_at=now
            )

        target = self.calculator.compute_delay(strategy, context.work_status, self.next_free_time, now)
        if target <= now:
            return DeliveryPlan(
                message_id=message.message_id,
                priority=priority,
                strategy=strategy,
                target_time=now,
                reason=REASONS[strategy] + PASSED_SUFFIX,
                decided_at=now,
                delivered_immediately=True
            )

        return DeliveryPlan(
            message_id=message.message_id,
            priority=priority,
            strategy=strategy,
            target_time=target,
            reason=REASONS[strategy],
            decided_at=now
        )

    async def schedule(
        self,
        message: Message,
        priority: MessagePriority,
        context: ContextSnapshot
    ) -> DeliveryPlan:
        """
        Create, record, and dispatch the delivery plan for a message.

        Args:
            message: Message being triaged
            priority: Classified priority
            context: Context snapshot for this message

        Returns:
            The issued delivery plan

        Raises:
            ValueError: If a plan was already issued for the message
            DeliveryTransportError: If the delivery sink fails; the plan
                stays recorded
        """
        plan = self.build_plan(message, priority, context)

        async with self._lock:
            if message.message_id in self._plans:
                raise ValueError(f"A plan was already issued for message {message.message_id}")
            self._plans[message.message_id] = plan
            self._history.append(plan)
            if plan.strategy.is_deferred and not plan.delivered_immediately:
                self._pending[message.message_id] = plan

        logger.info(
            f"Scheduled {message.message_id}: {plan.strategy.value} at "
            f"{plan.target_time.isoformat()} ({plan.reason})"
        )

        if plan.strategy is DelayStrategy.SUPPRESS:
            return plan

        try:
            if plan.strategy is DelayStrategy.IMMEDIATE or plan.delivered_immediately:
                await self._call_sink(
                    self.delivery_sink.deliver_now,
                    message.message_id,
                    f"Immediate message - {message.sender}",
                    message.content,
                    priority is MessagePriority.URGENT
                )
            else:
                await self._call_sink(
                    self.delivery_sink.deliver_at,
                    message.message_id,
                    f"Delayed message - {message.sender}",
                    message.content,
                    plan.target_time,
                    plan.reason
                )
        except Exception as e:
            async with self._lock:
                self._pending.pop(message.message_id, None)
            logger.error(f"Delivery sink failed for {message.message_id}: {e}")
            raise DeliveryTransportError(message.message_id, str(e)) from e

        return plan

    @staticmethod
    async def _call_sink(method, *args):
        result = method(*args)
        if inspect.isawaitable(result):
            await result

    def pending(self) -> Tuple[DeliveryPlan, ...]:
        """Deferred plans awaiting their target time, ordered by target time."""
        return tuple(sorted(self._pending.values(), key=lambda p: p.target_time))

    def history(self) -> Tuple[DeliveryPlan, ...]:
        """Every issued plan in decision order, suppressed ones included."""
        return tuple(self._history)

    def get_plan(self, message_id: str) -> Optional[DeliveryPlan]:
        return self._plans.get(message_id)

    def is_cancelled(self, message_id: str) -> bool:
        return message_id in self._cancelled

    async def release_due(self, now: datetime) -> Tuple[DeliveryPlan, ...]:
        """
        Drop pending plans whose target time has been reached.

        The transport fires these on its own; this only clears them from
        the pending view.

        Returns:
            Released plans ordered by target time
        """
        async with self._lock:
            due = sorted(
                (p for p in self._pending.values() if p.target_time <= now),
                key=lambda p: p.target_time
            )
            for plan in due:
                del self._pending[plan.message_id]
        if due:
            logger.info(f"Released {len(due)} due notification(s)")
        return tuple(due)

    async def cancel(self, message_id: str) -> bool:
        """
        Withdraw a pending plan from the transport and the pending view.

        The issued plan is kept in the history. Nothing calls this when the
        user's context changes.

        Returns:
            True if a pending plan was withdrawn

        Raises:
            DeliveryTransportError: If the sink cannot withdraw it; the plan
                stays pending
        """
        if message_id not in self._pending:
            return False
        try:
            await self._call_sink(self.delivery_sink.cancel, message_id)
        except Exception as e:
            logger.error(f"Delivery sink could not cancel {message_id}: {e}")
            raise DeliveryTransportError(message_id, str(e)) from e

        async with self._lock:
            removed = self._pending.pop(message_id, None)
            if removed is not None:
                self._cancelled.add(message_id)
        logger.info(f"Cancelled pending notification for {message_id}")
        return removed is not None
