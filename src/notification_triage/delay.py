"""
Delay interval calculation for deferred notification strategies.

Turns a deferred strategy into a concrete wall-clock delivery time in the
user's timezone. The "next free time" lookup is supplied by the calendar
collaborator, which is responsible for skipping events that start too soon
to count as free time; results are used here as given.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional

from src.config.triage_config import TRIAGE_CONFIG
from src.notification_triage.models import DelayStrategy, WorkStatus
from src.utils.date_utils import at_hour, next_day_at_hour

logger = logging.getLogger(__name__)

NextFreeTimeLookup = Callable[[], Optional[datetime]]


class DelayCalculator:
    """
    Computes delivery targets for deferred strategies.

    Constants default to the values in TRIAGE_CONFIG["delay"]; the batch
    and resume hours are normally taken from the configured working hours.
    """

    def __init__(
        self,
        working_delay: Optional[timedelta] = None,
        in_meeting_fallback: Optional[timedelta] = None,
        resting_delay: Optional[timedelta] = None,
        batch_hour: Optional[int] = None,
        resume_hour: Optional[int] = None
    ):
        config = TRIAGE_CONFIG["delay"]
        self.working_delay = (
            timedelta(minutes=config["working_minutes"]) if working_delay is None else working_delay
        )
        self.in_meeting_fallback = (
            timedelta(minutes=config["in_meeting_fallback_minutes"])
            if in_meeting_fallback is None else in_meeting_fallback
        )
        self.resting_delay = (
            timedelta(minutes=config["resting_minutes"]) if resting_delay is None else resting_delay
        )
        self.batch_hour = config["batch_hour"] if batch_hour is None else batch_hour
        self.resume_hour = config["resume_hour"] if resume_hour is None else resume_hour

        self._fixed_delays: Dict[WorkStatus, timedelta] = {
            WorkStatus.WORKING: self.working_delay,
            WorkStatus.RESTING: self.resting_delay,
            WorkStatus.FREE: timedelta(0),
            WorkStatus.UNKNOWN: timedelta(0),
        }

    def compute_delay(
        self,
        strategy: DelayStrategy,
        work_status: WorkStatus,
        next_free_time: NextFreeTimeLookup,
        now: datetime
    ) -> datetime:
        """
        Compute the delivery time for a deferred strategy.

        Args:
            strategy: A deferred strategy (delay until free, delay until
                meeting end, or end-of-day batch)
            work_status: Work status from the context snapshot
            next_free_time: Lookup returning the next free time, if known
            now: Decision time (timezone-aware)

        Returns:
            Target delivery time. For the end-of-day batch this may be in
            the past when `now` is after the batch hour.

        Raises:
            ValueError: If called with a non-deferred strategy
        """
        if strategy is DelayStrategy.DELAY_UNTIL_FREE:
            return self._until_free(work_status, next_free_time, now)
        if strategy is DelayStrategy.DELAY_UNTIL_MEETING_END:
            return self._until_meeting_end(next_free_time, now)
        if strategy is DelayStrategy.BATCH_END_OF_DAY:
            return at_hour(now, self.batch_hour)
        raise ValueError(f"No delay applies to strategy {strategy.value}")

    def _until_free(
        self,
        work_status: WorkStatus,
        next_free_time: NextFreeTimeLookup,
        now: datetime
    ) -> datetime:
        if work_status is WorkStatus.IN_MEETING:
            free_at = next_free_time()
            if free_at is not None:
                return free_at
            logger.debug("No free time known while in a meeting, using fallback delay")
            return now + self.in_meeting_fallback
        return now + self._fixed_delays[work_status]

    def _until_meeting_end(self, next_free_time: NextFreeTimeLookup, now: datetime) -> datetime:
        # The next event's start stands in for the end of the current meeting
        free_at = next_free_time()
        if free_at is not None:
            return free_at
        logger.debug(f"No free time known, resuming at {self.resume_hour}:00 tomorrow")
        return next_day_at_hour(now, self.resume_hour)
