"""
Mock infrastructure for Math Tutor testing.
Provides deterministic mocks for OpenAI, Ollama and the solver.
"""

from .openai_mocks import (
    MOCK_SOLUTION_RESPONSE,
    MOCK_INVALID_SOLUTION,
    MockOpenAIClient,
    MockChatCompletion,
    mock_openai_completion,
)
from .ollama_mocks import OllamaStub, unreachable_transport
from .solver_mocks import CountingSolver, RecordingObserver

__all__ = [
    "MOCK_SOLUTION_RESPONSE",
    "MOCK_INVALID_SOLUTION",
    "MockOpenAIClient",
    "MockChatCompletion",
    "mock_openai_completion",
    "OllamaStub",
    "unreachable_transport",
    "CountingSolver",
    "RecordingObserver",
]
