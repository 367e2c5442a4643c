"""
OpenAI SDK clients, created on first use.

Nothing touches the SDK at import time, so the API runs (on the local and
offline backends) without an OPENAI_API_KEY.
"""

import os
from typing import Dict, Optional

import httpx
from openai import OpenAI

# One solving attempt must not hang the request: 60s total, 10s connect
DEFAULT_TIMEOUT = httpx.Timeout(60.0, connect=10.0)

_clients: Dict[str, OpenAI] = {}


def get_openai_client(api_key: Optional[str] = None) -> OpenAI:
    """
    Return the shared client for `api_key` (or OPENAI_API_KEY).

    SDK retries are off; the solver moves on to its next backend instead.

    Raises:
        ValueError: If no key is given and OPENAI_API_KEY is not set
    """
    api_key = api_key or os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise ValueError("OPENAI_API_KEY is not set; the cloud solving backend is unavailable")

    client = _clients.get(api_key)
    if client is None:
        client = OpenAI(api_key=api_key, timeout=DEFAULT_TIMEOUT, max_retries=0)
        _clients[api_key] = client
    return client


def reset_client() -> None:
    """Drop cached clients (tests, key rotation)."""
    _clients.clear()
