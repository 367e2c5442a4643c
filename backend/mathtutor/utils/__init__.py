"""
Math Tutor Utilities Package

Contains:
- openai_client: Lazy-initialized OpenAI client
"""

from mathtutor.utils.openai_client import get_openai_client, reset_client

__all__ = [
    "get_openai_client",
    "reset_client"
]
