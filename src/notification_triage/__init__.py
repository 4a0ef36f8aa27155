"""
Notification triage package initialization.
"""

from .models import (
    ClassificationResult,
    ContextSnapshot,
    DelayStrategy,
    DeliveryPlan,
    Message,
    MessagePriority,
    MessageState,
    WorkStatus
)
from .strategy import select_strategy
from .delay import DelayCalculator
from .scheduler import NotificationScheduler
from .delivery import DeliverySink, RecordingDeliverySink
from .context import CalendarContextProvider, CalendarEvent
from .classifier import BasePriorityClassifier, GroqPriorityClassifier, KeywordPriorityClassifier
from .processor import TriageProcessor
from .exceptions import (
    CalendarAccessError,
    ClassificationError,
    DeliveryTransportError,
    DuplicateMessageError,
    EventNotFoundError,
    MessageNotFoundError,
    TriageError
)

__all__ = [
    'ClassificationResult',
    'ContextSnapshot',
    'DelayStrategy',
    'DeliveryPlan',
    'Message',
    'MessagePriority',
    'MessageState',
    'WorkStatus',
    'select_strategy',
    'DelayCalculator',
    'NotificationScheduler',
    'DeliverySink',
    'RecordingDeliverySink',
    'CalendarContextProvider',
    'CalendarEvent',
    'BasePriorityClassifier',
    'GroqPriorityClassifier',
    'KeywordPriorityClassifier',
    'TriageProcessor',
    'CalendarAccessError',
    'ClassificationError',
    'DeliveryTransportError',
    'DuplicateMessageError',
    'EventNotFoundError',
    'MessageNotFoundError',
    'TriageError'
]
