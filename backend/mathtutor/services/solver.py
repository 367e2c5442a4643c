"""
Solver: ordered fallback chain of solving backends.

    OpenAI (cloud) -> Ollama (local) -> offline canned solution

Each backend either returns a `Solution` or raises `SolverBackendError`.
The solver tries them in order, logs every fall-through and, when the
chain is exhausted, returns the offline solution. `solve()` never raises.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from mathtutor.config import (
    OLLAMA_MODEL,
    OLLAMA_TIMEOUT_SECONDS,
    OLLAMA_URL,
    OPENAI_API_KEY,
    OPENAI_MODEL,
)
from mathtutor.exceptions import SolverBackendError
from mathtutor.schemas.solution import Solution, SolutionPayload
from mathtutor.services.offline_solutions import OFFLINE_BACKEND_ID, offline_solution
from mathtutor.services.ollama_service import OllamaService, OllamaServiceError
from mathtutor.services.openai_service import OpenAIService
from mathtutor.services.prompts import SYSTEM_PROMPT, cloud_user_prompt, local_prompt
from mathtutor.services.prose_synthesis import synthesize_solution

logger = logging.getLogger(__name__)


def parse_payload(data: Any, backend: str) -> Solution:
    """Validate a decoded JSON payload and normalize it into a `Solution`."""
    try:
        payload = SolutionPayload.model_validate(data)
    except ValidationError as e:
        raise SolverBackendError(backend, f"invalid solution payload ({e.error_count()} errors)")
    return payload.to_solution(backend)


class SolvingBackend:
    """One strategy for turning a question into a `Solution`."""

    name = "backend"

    def is_configured(self) -> bool:
        return True

    async def attempt(self, question: str, category: str) -> Solution:
        raise NotImplementedError

    def get_status(self) -> Dict[str, Any]:
        return {"configured": self.is_configured()}


class OpenAIBackend(SolvingBackend):
    """Cloud backend: one JSON-mode chat completion, no retries."""

    def __init__(self, service: OpenAIService):
        self.service = service
        self.name = service.model

    def is_configured(self) -> bool:
        return self.service.is_configured()

    async def attempt(self, question: str, category: str) -> Solution:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": cloud_user_prompt(question, category)},
        ]
        try:
            completion = await asyncio.to_thread(
                self.service.chat_completion,
                messages=messages,
                temperature=0.3,
                max_tokens=1500,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            raise SolverBackendError(self.name, f"request failed: {e}")

        try:
            content = completion.choices[0].message.content
        except (AttributeError, IndexError, TypeError):
            content = None
        if not content:
            raise SolverBackendError(self.name, "no response content")

        try:
            data = json.loads(content)
        except ValueError:
            raise SolverBackendError(self.name, "response is not valid JSON")

        return parse_payload(data, self.name)

    def get_status(self) -> Dict[str, Any]:
        return self.service.get_status()


class OllamaBackend(SolvingBackend):
    """
    Local backend. Answers are JSON or prose; prose is turned into a
    structured solution, malformed JSON objects are rejected.
    """

    def __init__(self, service: OllamaService):
        self.service = service
        self.name = service.default_model

    async def attempt(self, question: str, category: str) -> Solution:
        try:
            text = await self.service.generate(local_prompt(question, category))
        except OllamaServiceError as e:
            raise SolverBackendError(self.name, str(e))

        if not text or not text.strip():
            raise SolverBackendError(self.name, "no response content")

        try:
            data = json.loads(text)
        except ValueError:
            data = None

        if not isinstance(data, dict):
            logger.info("Ollama returned plain text, converting to structured format")
            return synthesize_solution(text, question, category, backend_id=self.name)

        return parse_payload(data, self.name)

    def get_status(self) -> Dict[str, Any]:
        return {"configured": True, **self.service.get_status()}


class OfflineBackend(SolvingBackend):
    """Canned solutions. Never fails."""

    name = OFFLINE_BACKEND_ID

    async def attempt(self, question: str, category: str) -> Solution:
        return offline_solution(question, category)


class Solver:
    """Try each backend in order and return the first solution."""

    def __init__(self, backends: Sequence[SolvingBackend]):
        self.backends: List[SolvingBackend] = list(backends)

    @classmethod
    def from_config(cls) -> "Solver":
        return cls([
            OpenAIBackend(OpenAIService(api_key=OPENAI_API_KEY, model=OPENAI_MODEL)),
            OllamaBackend(OllamaService(
                base_url=OLLAMA_URL,
                default_model=OLLAMA_MODEL,
                timeout=OLLAMA_TIMEOUT_SECONDS,
            )),
            OfflineBackend(),
        ])

    async def solve(self, question: str, category: str = "other") -> Solution:
        category = getattr(category, "value", category)

        for backend in self.backends:
            if not backend.is_configured():
                logger.info(f"Solver backend '{backend.name}' not configured, skipping")
                continue
            try:
                solution = await backend.attempt(question, category)
            except SolverBackendError as e:
                logger.warning(f"Solver backend '{e.backend}' failed: {e.reason}")
                continue
            except Exception as e:
                logger.warning(f"Solver backend '{backend.name}' raised unexpectedly: {e}")
                continue

            logger.info(
                f"Solved {category} question with '{solution.backend_id}' "
                f"({len(solution.steps)} steps, confidence {solution.confidence:.2f})"
            )
            return solution

        logger.warning("All solver backends exhausted, using offline solution")
        return offline_solution(question, category)

    def get_status(self) -> Dict[str, Optional[Dict[str, Any]]]:
        """Per-backend status keyed by backend name, in chain order."""
        return {backend.name: backend.get_status() for backend in self.backends}
