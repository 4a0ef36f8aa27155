"""
Unit tests for priority classifiers.

The Groq client is replaced with an AsyncMock returning chat-completion
shaped responses.
"""

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest

from src.integrations.groq.model_manager import ModelManager
from src.notification_triage.classifier import GroqPriorityClassifier, KeywordPriorityClassifier
from src.notification_triage.exceptions import ClassificationError
from src.notification_triage.models import ContextSnapshot, Message, MessagePriority, WorkStatus

TZ = ZoneInfo("Asia/Taipei")
NOW = datetime(2026, 10, 19, 14, 0, tzinfo=TZ)


def completion(text):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=text))])


@pytest.fixture
def context():
    return ContextSnapshot(
        work_status=WorkStatus.IN_MEETING,
        is_focused=True,
        captured_at=NOW,
        upcoming_event_titles=("Project sync",),
        current_event="Dentist"
    )


@pytest.fixture
def message():
    return Message(sender="Mom", content="Call me when you can", received_at=NOW, message_id="m1")


class TestParseResponse:
    """Decoding of model output."""

    def test_plain_json(self):
        result = GroqPriorityClassifier.parse_response(
            '{"messagePriority": "urgent", "confidence": 0.92, "reasoning": "family emergency"}'
        )
        assert result.priority is MessagePriority.URGENT
        assert result.confidence == 0.92
        assert result.reasoning == "family emergency"
        assert result.fallback is False

    def test_json_wrapped_in_prose(self):
        text = 'Sure, here it is:\n```json\n{"messagePriority": "Low", "confidence": 0.7}\n```\nHope that helps.'
        result = GroqPriorityClassifier.parse_response(text)
        assert result.priority is MessagePriority.LOW

    def test_unrecognised_label_is_normal(self):
        result = GroqPriorityClassifier.parse_response('{"messagePriority": "critical", "confidence": 0.8}')
        assert result.priority is MessagePriority.NORMAL

    def test_explicit_unknown_label(self):
        result = GroqPriorityClassifier.parse_response('{"messagePriority": "unknown", "confidence": 0.3}')
        assert result.priority is MessagePriority.UNKNOWN

    def test_confidence_is_clamped(self):
        result = GroqPriorityClassifier.parse_response('{"messagePriority": "important", "confidence": 7}')
        assert result.confidence == 1.0

    @pytest.mark.parametrize("text", ["", "no json here", "{not valid json}", '{"confidence": "high"}'])
    def test_unparseable_output_falls_back(self, text):
        result = GroqPriorityClassifier.parse_response(text)
        assert result.priority is MessagePriority.NORMAL
        assert result.confidence == 0.5
        assert result.reasoning == "Unable to parse AI response"
        assert result.fallback is True


class TestGroqPriorityClassifier:
    """LLM classification through the Groq client."""

    @pytest.mark.asyncio
    async def test_classify_sends_prompt_and_parses_reply(self, message, context):
        client = MagicMock()
        client.process_with_retry = AsyncMock(
            return_value=completion('{"messagePriority": "important", "confidence": 0.8, "reasoning": "family"}')
        )
        classifier = GroqPriorityClassifier(client=client, model_manager=ModelManager())

        result = await classifier.classify(message, context)

        assert result.priority is MessagePriority.IMPORTANT
        kwargs = client.process_with_retry.await_args.kwargs
        assert kwargs["model"] == "llama-3.3-70b-versatile"
        assert kwargs["temperature"] == 0.1
        prompt = kwargs["messages"][1]["content"]
        assert "Call me when you can" in prompt
        assert "Dentist" in prompt
        assert "Project sync" in prompt
        assert "inMeeting" in prompt

    @pytest.mark.asyncio
    async def test_model_override(self, message, context):
        client = MagicMock()
        client.process_with_retry = AsyncMock(return_value=completion('{"messagePriority": "low"}'))
        classifier = GroqPriorityClassifier(client=client, model_name="llama-3.1-8b-instant")

        await classifier.classify(message, context)

        assert client.process_with_retry.await_args.kwargs["model"] == "llama-3.1-8b-instant"

    @pytest.mark.asyncio
    async def test_transport_failure_raises(self, message, context):
        client = MagicMock()
        client.process_with_retry = AsyncMock(side_effect=RuntimeError("Failed after 3 retries"))
        manager = ModelManager()
        classifier = GroqPriorityClassifier(client=client, model_manager=manager)

        with pytest.raises(ClassificationError):
            await classifier.classify(message, context)
        assert manager.consecutive_errors["priority_classification"] == 1

    @pytest.mark.asyncio
    async def test_repeated_failures_switch_to_fallback_model(self, message, context):
        client = MagicMock()
        client.process_with_retry = AsyncMock(side_effect=RuntimeError("down"))
        classifier = GroqPriorityClassifier(client=client, model_manager=ModelManager(error_threshold=2))

        for _ in range(2):
            with pytest.raises(ClassificationError):
                await classifier.classify(message, context)
        client.process_with_retry.side_effect = None
        client.process_with_retry.return_value = completion('{"messagePriority": "normal"}')
        await classifier.classify(message, context)

        assert client.process_with_retry.await_args.kwargs["model"] == "llama-3.1-8b-instant"


class TestKeywordPriorityClassifier:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content,expected", [
        ("URGENT: production is down", MessagePriority.URGENT),
        ("爸爸在急診", MessagePriority.URGENT),
        ("Reminder: client deadline Friday", MessagePriority.IMPORTANT),
        ("明天的會議改時間", MessagePriority.IMPORTANT),
        ("Big sale this weekend", MessagePriority.LOW),
        ("Want to grab coffee?", MessagePriority.NORMAL),
    ])
    async def test_keyword_priorities(self, context, content, expected):
        message = Message(sender="x", content=content, received_at=NOW)
        result = await KeywordPriorityClassifier().classify(message, context)
        assert result.priority is expected

    @pytest.mark.asyncio
    async def test_urgent_checked_before_low(self, context):
        message = Message(sender="x", content="Urgent: sale ends today", received_at=NOW)
        result = await KeywordPriorityClassifier().classify(message, context)
        assert result.priority is MessagePriority.URGENT
        assert result.reasoning == "Matched keyword 'urgent'"


class TestSenderMasking:

    @pytest.mark.parametrize("sender,expected", [
        ("alice@example.com", "a***e@e******.com"),
        ("al@mail.co.uk", "**@m***.co.uk"),
        ("Mom", "M**"),
        ("", ""),
    ])
    def test_mask_sender(self, sender, expected):
        classifier = GroqPriorityClassifier(client=MagicMock())
        assert classifier._mask_sender(sender) == expected
