from groq import Groq
from typing import Dict, List, Optional
from datetime import datetime
import asyncio
import os
from dotenv import load_dotenv
import logging

logger = logging.getLogger(__name__)


class EnhancedGroqClient:
    """Groq chat-completions client with retry logic and request metrics."""

    def __init__(self, api_key: Optional[str] = None, backoff_base: float = 2.0):
        """Initialize the client with an API key from the parameter or environment."""
        load_dotenv(override=True)
        self.api_key = api_key or os.getenv('GROQ_API_KEY')
        if not self.api_key:
            raise ValueError("GROQ_API_KEY must be provided either through initialization or environment")

        self.client = Groq(api_key=self.api_key)
        self.backoff_base = backoff_base
        self.metrics = {
            'requests': 0,
            'errors': 0,
            'avg_response_time': 0.0
        }

    async def process_with_retry(self,
                                 messages: List[Dict],
                                 model: str,
                                 max_retries: int = 3,
                                 **kwargs):
        """Send a chat completion request, retrying with exponential backoff.

        Args:
            messages: Conversation messages for the API call
            model: Groq model name
            max_retries: Maximum number of attempts
            **kwargs: Additional completion parameters

        Returns:
            The chat completion response

        Raises:
            RuntimeError: If every attempt fails
        """
        params = {
            'model': model,
            'messages': messages,
            'temperature': kwargs.pop('temperature', 0.7),
            'max_completion_tokens': kwargs.pop('max_completion_tokens', 1024),
            **kwargs
        }
        start_time = datetime.now()
        last_error = None

        for attempt in range(1, max_retries + 1):
            try:
                response = await asyncio.to_thread(self.client.chat.completions.create, **params)
                self.record_success(start_time)
                return response

            except Exception as e:
                last_error = e
                self.metrics['errors'] += 1
                logger.warning(f"Groq request attempt {attempt}/{max_retries} failed: {e}")
                if attempt < max_retries:
                    await asyncio.sleep(self.backoff_base ** attempt)

        raise RuntimeError(f"Failed after {max_retries} retries: {last_error}")

    def record_success(self, start_time: datetime):
        """Fold one successful request into the running averages."""
        duration = (datetime.now() - start_time).total_seconds()
        total = self.metrics['requests'] + 1
        self.metrics['avg_response_time'] = (
            (self.metrics['avg_response_time'] * (total - 1) + duration) / total
        )
        self.metrics['requests'] = total

    def get_performance_metrics(self) -> Dict:
        """Get current performance metrics."""
        total = self.metrics['requests'] + self.metrics['errors']
        success_rate = 100.0 if total == 0 else self.metrics['requests'] / total * 100
        return {**self.metrics, 'success_rate': success_rate}
