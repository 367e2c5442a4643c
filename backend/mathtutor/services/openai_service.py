"""
OpenAI chat-completion service.

Wraps the OpenAI SDK with:
- Lazy client creation (nothing happens until the first call)
- Sentry error tracking
- A bounded in-memory call history for health/status endpoints

The SDK is synchronous; async callers should run `chat_completion`
through `asyncio.to_thread`.

Usage:
    service = OpenAIService(api_key=OPENAI_API_KEY, model="gpt-4")
    if service.is_configured():
        response = service.chat_completion(
            messages=[{"role": "user", "content": "Hello"}],
            temperature=0.3,
        )
"""

import logging
from collections import deque
from datetime import datetime
from typing import Any, Dict, List, Optional

import sentry_sdk

from mathtutor.utils.openai_client import get_openai_client

logger = logging.getLogger(__name__)


class OpenAIService:
    """Thin, observable wrapper around OpenAI chat completions."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4",
        client: Any = None,
        history_size: int = 1000,
    ):
        self.api_key = api_key
        self.model = model
        self._client = client
        self._call_history: deque = deque(maxlen=history_size)

        if self.is_configured():
            logger.info(f"OpenAI Service initialized (model: {model})")
        else:
            logger.warning("OpenAI API key not provided. Solver will use Ollama or offline responses.")

    def is_configured(self) -> bool:
        return self._client is not None or bool(self.api_key)

    @property
    def client(self):
        if self._client is None:
            self._client = get_openai_client(self.api_key)
        return self._client

    def chat_completion(
        self,
        messages: List[Dict[str, str]],
        model: Optional[str] = None,
        **kwargs
    ) -> Any:
        """
        Make a single chat completion request.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: OpenAI model to use (default: the service model)
            **kwargs: Additional arguments passed to the OpenAI API

        Returns:
            OpenAI ChatCompletion response

        Raises:
            Exception: Whatever the SDK raised, after it has been recorded
        """
        model = model or self.model
        start_time = datetime.utcnow()

        try:
            result = self.client.chat.completions.create(
                model=model,
                messages=messages,
                **kwargs
            )
            latency_ms = (datetime.utcnow() - start_time).total_seconds() * 1000

            self._record_call(model, success=True, latency_ms=latency_ms)
            logger.debug(f"OpenAI call succeeded in {latency_ms:.0f}ms")

            return result

        except Exception as e:
            self._record_call(model, success=False, error=str(e))
            sentry_sdk.capture_exception(e)
            logger.error(f"OpenAI call failed: {str(e)}")
            raise

    def _record_call(
        self,
        model: str,
        success: bool,
        latency_ms: float = 0,
        error: str = None,
    ):
        """Record call for metrics tracking."""
        self._call_history.append({
            "timestamp": datetime.utcnow().isoformat(),
            "model": model,
            "success": success,
            "latency_ms": latency_ms,
            "error": error,
        })

    def get_status(self) -> Dict[str, Any]:
        """Service status for the detailed health endpoint."""
        recent_calls = list(self._call_history)[-100:]
        successful_recent = sum(1 for c in recent_calls if c.get("success"))
        avg_latency = (
            sum(c.get("latency_ms", 0) for c in recent_calls if c.get("success"))
            / max(successful_recent, 1)
        )

        return {
            "configured": self.is_configured(),
            "model": self.model,
            "recent_performance": {
                "total_calls": len(recent_calls),
                "successful_calls": successful_recent,
                "failed_calls": len(recent_calls) - successful_recent,
                "success_rate": (
                    f"{(successful_recent / len(recent_calls) * 100):.1f}%"
                    if recent_calls else "N/A"
                ),
                "avg_latency_ms": round(avg_latency, 1),
            },
        }
