"""
Delay strategy selection.

Maps a message priority and the user's focus and work status to exactly one
delivery strategy. Urgency always wins; focus mode is the strongest
suppressive signal after it; meeting occupancy only matters when the user is
not focused. Unclassified traffic is never surfaced while the user is busy.
"""

from typing import Dict

from src.notification_triage.models import DelayStrategy, MessagePriority, WorkStatus

# Rules applied while focus mode is on (urgent handled before lookup)
FOCUSED_RULES: Dict[MessagePriority, DelayStrategy] = {
    MessagePriority.IMPORTANT: DelayStrategy.DELAY_UNTIL_FREE,
    MessagePriority.NORMAL: DelayStrategy.DELAY_UNTIL_FREE,
    MessagePriority.LOW: DelayStrategy.BATCH_END_OF_DAY,
    MessagePriority.UNKNOWN: DelayStrategy.SUPPRESS,
}

# Rules applied in a meeting without focus mode
IN_MEETING_RULES: Dict[MessagePriority, DelayStrategy] = {
    MessagePriority.IMPORTANT: DelayStrategy.DELAY_UNTIL_MEETING_END,
    MessagePriority.NORMAL: DelayStrategy.DELAY_UNTIL_FREE,
    MessagePriority.LOW: DelayStrategy.DELAY_UNTIL_FREE,
    MessagePriority.UNKNOWN: DelayStrategy.SUPPRESS,
}


def select_strategy(
    priority: MessagePriority,
    is_focused: bool,
    work_status: WorkStatus
) -> DelayStrategy:
    """
    Select how a notification should be delivered.

    Pure function: identical inputs always give the same strategy, and every
    combination of priority, focus flag, and work status is handled.

    Args:
        priority: Classified message priority
        is_focused: Whether focus mode is active
        work_status: Current calendar-derived work status

    Returns:
        The delivery strategy for the message
    """
    if priority is MessagePriority.URGENT:
        return DelayStrategy.IMMEDIATE

    if is_focused:
        if priority is MessagePriority.IMPORTANT and work_status is WorkStatus.IN_MEETING:
            return DelayStrategy.DELAY_UNTIL_MEETING_END
        return FOCUSED_RULES[priority]

    if work_status is WorkStatus.IN_MEETING:
        return IN_MEETING_RULES[priority]

    return DelayStrategy.IMMEDIATE
