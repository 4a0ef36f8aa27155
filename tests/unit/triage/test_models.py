"""
Unit tests for triage data models.
"""

import pytest

from src.notification_triage.models import DelayStrategy, MessagePriority


class TestMessagePriority:

    @pytest.mark.parametrize("label,expected", [
        ("urgent", MessagePriority.URGENT),
        (" Important ", MessagePriority.IMPORTANT),
        ("LOW", MessagePriority.LOW),
        ("unknown", MessagePriority.UNKNOWN),
        ("critical", MessagePriority.NORMAL),
        ("", MessagePriority.NORMAL),
        (None, MessagePriority.NORMAL),
    ])
    def test_from_label(self, label, expected):
        assert MessagePriority.from_label(label) is expected

    def test_severity_order(self):
        ranked = sorted(MessagePriority, key=lambda p: p.severity, reverse=True)
        assert ranked == [
            MessagePriority.URGENT,
            MessagePriority.IMPORTANT,
            MessagePriority.NORMAL,
            MessagePriority.LOW,
            MessagePriority.UNKNOWN
        ]


def test_deferred_strategies():
    deferred = {s for s in DelayStrategy if s.is_deferred}
    assert deferred == {
        DelayStrategy.DELAY_UNTIL_FREE,
        DelayStrategy.DELAY_UNTIL_MEETING_END,
        DelayStrategy.BATCH_END_OF_DAY
    }
