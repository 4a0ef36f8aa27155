"""
Calendar-backed user context.

Keeps the user's calendar entries and focus flag in memory and derives the
values the triage engine consumes: the current work status, a context
snapshot per incoming message, and the next free time.

Work status rules:
- an event covering now that looks work related -> working
- any other event covering now -> inMeeting
- no current event, one starting within the upcoming window -> resting
- nothing current or upcoming -> free
- no calendar access -> unknown
"""

import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence

from src.config.triage_config import TRIAGE_CONFIG
from src.notification_triage.exceptions import CalendarAccessError, EventNotFoundError
from src.notification_triage.models import ContextSnapshot, WorkStatus
from src.utils.date_utils import local_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalendarEvent:
    """A calendar entry."""
    title: str
    start: datetime
    end: datetime
    notes: Optional[str] = None
    location: Optional[str] = None
    calendar_title: str = "Calendar"
    is_all_day: bool = False
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def covers(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


class CalendarContextProvider:
    """
    In-memory calendar and focus state.

    Args:
        clock: Returns the current timezone-aware time
        authorized: Whether calendar access has been granted
        work_keywords: Words marking an event as work related
    """

    def __init__(
        self,
        clock: Optional[Callable[[], datetime]] = None,
        authorized: bool = True,
        work_keywords: Optional[Sequence[str]] = None
    ):
        config = TRIAGE_CONFIG["context"]
        self.clock = clock or local_now
        self.authorized = authorized
        self.is_focused = False
        self.work_keywords = [k.lower() for k in (work_keywords or config["work_keywords"])]
        self.upcoming_window = timedelta(minutes=config["upcoming_window_minutes"])
        self.min_lead = timedelta(minutes=config["min_lead_minutes"])
        self._events: Dict[str, CalendarEvent] = {}

    def set_focus(self, is_focused: bool) -> None:
        logger.info(f"Focus mode {'enabled' if is_focused else 'disabled'}")
        self.is_focused = is_focused

    def _require_access(self) -> None:
        if not self.authorized:
            raise CalendarAccessError("Calendar access has not been granted")

    def list_events(self) -> List[CalendarEvent]:
        """All events ordered by start time."""
        return sorted(self._events.values(), key=lambda e: e.start)

    def get_event(self, event_id: str) -> CalendarEvent:
        self._require_access()
        event = self._events.get(event_id)
        if event is None:
            raise EventNotFoundError(f"Event {event_id} not found")
        return event

    def create_event(self, event: CalendarEvent) -> CalendarEvent:
        self._require_access()
        if event.end < event.start:
            raise ValueError("Event end must not precede its start")
        self._events[event.event_id] = event
        logger.info(f"Created event {event.event_id}: {event.title}")
        return event

    def update_event(self, event_id: str, **changes) -> CalendarEvent:
        """Replace the given fields of an existing event; None values are ignored."""
        current = self.get_event(event_id)
        updated = replace(current, **{k: v for k, v in changes.items() if v is not None})
        if updated.end < updated.start:
            raise ValueError("Event end must not precede its start")
        self._events[event_id] = updated
        logger.info(f"Updated event {event_id}")
        return updated

    def delete_event(self, event_id: str) -> None:
        self.get_event(event_id)
        del self._events[event_id]
        logger.info(f"Deleted event {event_id}")

    def is_work_related(self, event: CalendarEvent) -> bool:
        text = f"{event.title} {event.notes or ''}".lower()
        return any(keyword in text for keyword in self.work_keywords)

    def _current_events(self, now: datetime) -> List[CalendarEvent]:
        return [e for e in self.list_events() if e.covers(now)]

    def _upcoming_events(self, now: datetime) -> List[CalendarEvent]:
        horizon = now + self.upcoming_window
        return [e for e in self.list_events() if now <= e.start <= horizon]

    def work_status(self, now: Optional[datetime] = None) -> WorkStatus:
        """Derive the work status at `now` from calendar occupancy."""
        if not self.authorized:
            return WorkStatus.UNKNOWN
        now = now or self.clock()

        current = self._current_events(now)
        if current:
            if any(self.is_work_related(e) for e in current):
                return WorkStatus.WORKING
            return WorkStatus.IN_MEETING

        return WorkStatus.RESTING if self._upcoming_events(now) else WorkStatus.FREE

    def current_context(self) -> ContextSnapshot:
        """Capture the user's context; reads only in-memory state."""
        now = self.clock()
        if not self.authorized:
            return ContextSnapshot(
                work_status=WorkStatus.UNKNOWN,
                is_focused=self.is_focused,
                captured_at=now
            )

        current = self._current_events(now)
        return ContextSnapshot(
            work_status=self.work_status(now),
            is_focused=self.is_focused,
            captured_at=now,
            upcoming_event_titles=tuple(e.title for e in self._upcoming_events(now)),
            current_event=current[0].title if current else None
        )

    def next_free_time(self) -> Optional[datetime]:
        """
        Start of the earliest future event beginning more than the minimum
        lead time from now, or None when there is no such event.
        """
        if not self.authorized:
            return None
        now = self.clock()
        for event in self.list_events():
            if event.start - now > self.min_lead:
                return event.start
        return None
