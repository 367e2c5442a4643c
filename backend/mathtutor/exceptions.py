"""
Domain errors for the Math Tutor backend.

Each error carries the HTTP status and the `error`/`message` pair used in
the response envelope, so routers can let them propagate to the
application-level exception handler.
"""

from typing import Optional


class MathTutorError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500
    error = "Internal server error"
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(MathTutorError):
    status_code = 404
    error = "Not found"
    default_message = "The requested resource does not exist"


class UserNotFoundError(NotFoundError):
    error = "User not found"
    default_message = "User not found"


class QuestionNotFoundError(NotFoundError):
    error = "Question not found"
    default_message = "The requested question does not exist"


class ConflictError(MathTutorError):
    status_code = 409
    error = "Conflict"
    default_message = "The resource already exists"


class EmailAlreadyExistsError(ConflictError):
    error = "Email already exists"
    default_message = "A user with this email already exists"


class StoreError(MathTutorError):
    """A persistence operation failed; the session has been rolled back."""

    default_message = "A database operation failed"


class SolverBackendError(Exception):
    """A solving backend could not produce a valid solution.

    Never leaves the Solver: it is the signal to try the next backend.
    """

    def __init__(self, backend: str, reason: str):
        self.backend = backend
        self.reason = reason
        super().__init__(f"{backend}: {reason}")
