"""
Error taxonomy for notification triage.

Classification failures and missing free-time lookups are recovered locally;
delivery transport failures are surfaced to the caller as non-fatal errors.
"""


class TriageError(Exception):
    """Base class for triage errors."""
    pass


class ClassificationError(TriageError):
    """The priority classifier could not produce a result."""
    pass


class DeliveryTransportError(TriageError):
    """The delivery sink rejected or failed to accept a notification."""

    def __init__(self, message_id: str, detail: str):
        self.message_id = message_id
        self.detail = detail
        super().__init__(f"Delivery failed for message {message_id}: {detail}")


class MessageNotFoundError(TriageError):
    """No triage record exists for the requested message."""
    pass


class CalendarAccessError(TriageError):
    """Calendar operation attempted without calendar access."""
    pass


class EventNotFoundError(TriageError):
    """No calendar entry exists with the requested ID."""
    pass


class DuplicateMessageError(TriageError):
    """A message with this ID is already being triaged."""
    pass
