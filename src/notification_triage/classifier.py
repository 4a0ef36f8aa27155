"""
Priority classification for incoming messages.

Provides the classifier contract consumed by the triage processor, an
LLM-backed implementation on the Groq API, and a keyword classifier used
when no API credentials are configured.

Design Considerations:
- Transport failures raise ClassificationError; the caller owns the
  normal-priority fallback
- Unparseable model output degrades to normal priority, never unknown
- Sender addresses are masked in logs
"""

import json
import logging
import time
from typing import Any, Dict, List, Optional

from src.config.triage_config import TRIAGE_CONFIG
from src.integrations.groq.client import EnhancedGroqClient
from src.integrations.groq.model_manager import ModelManager
from src.notification_triage.exceptions import ClassificationError
from src.notification_triage.models import (
    ClassificationResult,
    ContextSnapshot,
    Message,
    MessagePriority
)

logger = logging.getLogger(__name__)

TASK_TYPE = "priority_classification"


class BasePriorityClassifier:
    """
    Contract for assigning a priority to an incoming message.

    Implementations may consult the user's context when judging urgency.
    """

    async def classify(self, message: Message, context: ContextSnapshot) -> ClassificationResult:
        """
        Classify a message.

        Args:
            message: Message to classify
            context: Context snapshot taken when the message arrived

        Returns:
            ClassificationResult with priority, confidence, and reasoning

        Raises:
            ClassificationError: If no classification could be produced
        """
        raise NotImplementedError("Must implement classify")


class GroqPriorityClassifier(BasePriorityClassifier):
    """
    LLM priority classifier using the Groq chat-completions API.

    Asks the model for a JSON verdict covering message priority, its view of
    the user's work status, and a short justification.
    """

    def __init__(
        self,
        client: Optional[EnhancedGroqClient] = None,
        model_manager: Optional[ModelManager] = None,
        model_name: Optional[str] = None
    ):
        self.client = client or EnhancedGroqClient()
        self.model_manager = model_manager or ModelManager()
        self.model_name = model_name
        self.model_config = TRIAGE_CONFIG["classifier"]["model"]

    async def classify(self, message: Message, context: ContextSnapshot) -> ClassificationResult:
        model = self.model_name or self.model_manager.get_model_config(TASK_TYPE)["name"]
        logger.info(f"Classifying message {message.message_id} with model {model}")

        messages = [
            {"role": "system", "content": "You triage incoming messages for a busy user. Respond with JSON only."},
            {"role": "user", "content": self._construct_prompt(message, context)}
        ]
        logger.debug(
            f"Classification input for {message.message_id}: "
            f"sender {self._mask_sender(message.sender)}, "
            f"content length {len(message.content)} characters"
        )

        start_time = time.time()
        try:
            response = await self.client.process_with_retry(
                messages=messages,
                model=model,
                max_retries=self.model_config["retry_count"],
                temperature=self.model_config["temperature"],
                max_completion_tokens=self.model_config["max_tokens"]
            )
            text = response.choices[0].message.content or ""
        except Exception as e:
            self.model_manager.record_result(TASK_TYPE, success=False)
            raise ClassificationError(f"Priority classification failed: {e}") from e

        self.model_manager.record_result(TASK_TYPE, success=True)
        duration = time.time() - start_time
        result = self.parse_response(text)
        logger.info(
            f"Message {message.message_id} classified as {result.priority.value} "
            f"(confidence {result.confidence:.2f}) in {duration:.2f}s"
        )
        return result

    def _construct_prompt(self, message: Message, context: ContextSnapshot) -> str:
        upcoming = ", ".join(context.upcoming_event_titles) or "None"
        return f"""
        Analyze the following message and the user's current state.

        Message:
        - Sender: {message.sender}
        - Content: {message.content}
        - Received: {message.received_at.isoformat()}

        User activity:
        - Current event: {context.current_event or "None"}
        - Work status: {context.work_status.value}
        - Focus mode: {"on" if context.is_focused else "off"}
        - Events in the next hour: {upcoming}

        Message priority:
        - urgent: work emergencies, family emergencies, health related
        - important: work related, important appointment reminders
        - normal: casual conversation, ordinary notifications
        - low: advertising, irrelevant notifications

        Work status:
        - working: working or in a work-related meeting
        - inMeeting: in a meeting that is not work related
        - resting: on a break with an event coming up
        - free: completely free
        - unknown: cannot be determined

        Reply with this JSON:
        {{
            "messagePriority": "urgent|important|normal|low",
            "workStatus": "working|inMeeting|resting|free|unknown",
            "shouldNotifyImmediately": true|false,
            "reasoning": "why",
            "confidence": 0.0-1.0
        }}
        """

    def _mask_sender(self, sender: str) -> str:
        """
        Mask a sender for logging.

        Email addresses keep their first and last username characters and
        the first domain character; plain names keep their first character.
        """
        if not sender:
            return sender
        if '@' not in sender:
            return sender[0] + '*' * (len(sender) - 1)

        username, domain = sender.split('@', 1)
        if len(username) <= 2:
            masked_username = '*' * len(username)
        else:
            masked_username = username[0] + '*' * (len(username) - 2) + username[-1]
        domain_parts = domain.split('.')
        if not domain_parts[0]:
            return f"{masked_username}@***"
        masked_domain = domain_parts[0][0] + '*' * (len(domain_parts[0]) - 1)
        return '.'.join([f"{masked_username}@{masked_domain}"] + domain_parts[1:])

    @staticmethod
    def parse_response(text: str) -> ClassificationResult:
        """
        Extract the JSON verdict from model output.

        Takes the span between the first '{' and the last '}'. Output that
        cannot be decoded yields normal priority with the configured
        fallback confidence.

        Args:
            text: Raw model output

        Returns:
            ClassificationResult parsed from the output
        """
        fallback = TRIAGE_CONFIG["classifier"]["fallback"]
        start = text.find("{")
        end = text.rfind("}")
        if start != -1 and end > start:
            try:
                data: Dict[str, Any] = json.loads(text[start:end + 1])
                confidence = float(data.get("confidence", 0.0))
                return ClassificationResult(
                    priority=MessagePriority.from_label(data.get("messagePriority")),
                    confidence=min(max(confidence, 0.0), 1.0),
                    reasoning=str(data.get("reasoning", ""))
                )
            except (json.JSONDecodeError, TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Could not decode classifier output: {e}")

        logger.warning("Classifier output contained no usable JSON, defaulting to normal priority")
        return ClassificationResult(
            priority=MessagePriority.NORMAL,
            confidence=fallback["confidence"],
            reasoning=fallback["reasoning"],
            fallback=True
        )


class KeywordPriorityClassifier(BasePriorityClassifier):
    """Pattern-based classifier for running without an LLM."""

    def __init__(self):
        self.priority_patterns: Dict[MessagePriority, List[str]] = {
            MessagePriority.URGENT: [
                "urgent", "asap", "emergency", "immediately", "hospital",
                "緊急", "急診"
            ],
            MessagePriority.IMPORTANT: [
                "meeting", "deadline", "client", "review", "reminder",
                "appointment", "會議", "客戶", "重要"
            ],
            MessagePriority.LOW: [
                "unsubscribe", "newsletter", "promotion", "sale", "discount",
                "廣告", "優惠"
            ]
        }

    def _normalize_text(self, text: Optional[str]) -> str:
        if text is None:
            return ""
        return text.lower().strip()

    async def classify(self, message: Message, context: ContextSnapshot) -> ClassificationResult:
        normalized = self._normalize_text(message.content)
        for priority, patterns in self.priority_patterns.items():
            matched = next((p for p in patterns if p in normalized), None)
            if matched:
                logger.info(f"Message {message.message_id} matched '{matched}', priority {priority.value}")
                return ClassificationResult(
                    priority=priority,
                    confidence=0.6,
                    reasoning=f"Matched keyword '{matched}'"
                )

        logger.info(f"No keyword matched for message {message.message_id}, priority normal")
        return ClassificationResult(
            priority=MessagePriority.NORMAL,
            confidence=0.4,
            reasoning="No priority keywords found"
        )
