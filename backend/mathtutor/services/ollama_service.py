"""
Local LLM Service using Ollama.

Runs models locally, so it doubles as the free fallback when no OpenAI key
is configured.

Usage:
    service = OllamaService(base_url="http://localhost:11434", default_model="llama3:latest")

    # Generate text
    text = await service.generate("Solve 2x + 5 = 13")

    # Check if Ollama is running
    if await service.is_available():
        ...

Prerequisites:
    1. Install Ollama: https://ollama.com/download
    2. Start server: ollama serve
    3. Pull model: ollama pull llama3
"""

import logging
from collections import deque
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class OllamaServiceError(Exception):
    """Base exception for Ollama service errors."""
    pass


class OllamaNotAvailableError(OllamaServiceError):
    """Raised when Ollama server is not running."""
    pass


class OllamaService:
    """
    Local LLM service using Ollama's `/api/generate` endpoint.

    Requests are single-shot (`stream: false`). `transport` lets tests plug
    in an `httpx.MockTransport`.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        default_model: str = "llama3:latest",
        timeout: float = 120.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.timeout = timeout
        self._transport = transport
        # Use deque with maxlen for automatic size limiting
        self._call_history: deque = deque(maxlen=500)

        logger.info(f"Ollama Service initialized (model: {default_model})")

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    async def generate(
        self,
        prompt: str,
        model: Optional[str] = None,
        system: Optional[str] = None,
        temperature: float = 0.3,
        top_p: float = 0.9,
        max_tokens: int = 1500,
        timeout: Optional[float] = None,
    ) -> str:
        """
        Generate text using local Ollama model.

        Args:
            prompt: The prompt to generate from
            model: Model to use (default: the service model)
            system: Optional system prompt
            temperature: Sampling temperature (0-1)
            top_p: Nucleus sampling cutoff
            max_tokens: Maximum tokens to generate
            timeout: Request timeout in seconds

        Returns:
            Generated text string

        Raises:
            OllamaNotAvailableError: If Ollama server is not running
            OllamaServiceError: If generation fails
        """
        model = model or self.default_model
        start_time = datetime.utcnow()

        payload: Dict[str, Any] = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": temperature,
                "top_p": top_p,
                "num_predict": max_tokens,
            },
        }
        if system:
            payload["system"] = system

        try:
            async with self._client(timeout or self.timeout) as client:
                response = await client.post(f"{self.base_url}/api/generate", json=payload)

                if response.status_code == 404:
                    raise OllamaNotAvailableError(
                        f"Model '{model}' not found. "
                        f"Run: ollama pull {model}"
                    )

                response.raise_for_status()
                result = response.json()

            latency_ms = (datetime.utcnow() - start_time).total_seconds() * 1000
            self._record_call(model, success=True, latency_ms=latency_ms)

            return result.get("response", "") if isinstance(result, dict) else ""

        except OllamaServiceError as e:
            self._record_call(model, success=False, error=str(e))
            raise
        except httpx.ConnectError:
            self._record_call(model, success=False, error="Connection failed")
            raise OllamaNotAvailableError(
                "Ollama server is not running. "
                "Start it with: ollama serve"
            )
        except Exception as e:
            self._record_call(model, success=False, error=str(e))
            logger.error(f"Ollama generation failed: {e}")
            raise OllamaServiceError(f"Generation failed: {e}")

    async def is_available(self) -> bool:
        """True if the Ollama server answers on `/api/tags`."""
        try:
            async with self._client(5.0) as client:
                response = await client.get(f"{self.base_url}/api/tags")
                return response.status_code == 200
        except Exception:
            return False

    async def list_models(self) -> List[str]:
        try:
            async with self._client(5.0) as client:
                response = await client.get(f"{self.base_url}/api/tags")
                response.raise_for_status()
                data = response.json()
                return [m["name"] for m in data.get("models", [])]
        except Exception as e:
            logger.warning(f"Failed to list models: {e}")
            return []

    def _record_call(
        self,
        model: str,
        success: bool,
        latency_ms: float = 0,
        error: str = None
    ):
        """Record call for metrics tracking."""
        self._call_history.append({
            "timestamp": datetime.utcnow().isoformat(),
            "model": model,
            "success": success,
            "latency_ms": latency_ms,
            "error": error
        })

    def get_status(self) -> Dict[str, Any]:
        """Get service status for monitoring."""
        recent_calls = list(self._call_history)[-50:]
        successful = sum(1 for c in recent_calls if c.get("success"))

        return {
            "base_url": self.base_url,
            "default_model": self.default_model,
            "recent_calls": len(recent_calls),
            "success_rate": f"{(successful / len(recent_calls) * 100):.1f}%" if recent_calls else "N/A",
            "avg_latency_ms": round(
                sum(c.get("latency_ms", 0) for c in recent_calls if c.get("success"))
                / max(successful, 1), 1
            )
        }
