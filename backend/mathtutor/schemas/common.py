from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope shared by every endpoint: `{success, data?, error?, message?}`."""
    success: bool = True
    data: Optional[T] = None
    error: Optional[str] = None
    message: Optional[str] = None


def error_body(error: str, message: Optional[str] = None) -> dict:
    body: dict[str, Any] = {"success": False, "error": error}
    if message:
        body["message"] = message
    return body
