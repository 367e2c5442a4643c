"""
httpx transports that stand in for an Ollama server.
"""

import json
from typing import Any, Dict, List

import httpx


class OllamaStub:
    """
    Records `/api/generate` requests and answers each with `response_text`.

    Use `stub.transport` as the `transport` argument of OllamaService.
    """

    def __init__(self, response_text: str = "", status_code: int = 200, models=("llama3:latest",)):
        self.response_text = response_text
        self.status_code = status_code
        self.models = list(models)
        self.requests: List[Dict[str, Any]] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/tags":
            return httpx.Response(200, json={"models": [{"name": m} for m in self.models]})

        self.requests.append(json.loads(request.content))
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": "stubbed failure"})
        return httpx.Response(200, json={"response": self.response_text, "done": True})


def unreachable_transport() -> httpx.MockTransport:
    """Transport that fails every request as if the server were down."""
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Connection refused", request=request)

    return httpx.MockTransport(handler)
