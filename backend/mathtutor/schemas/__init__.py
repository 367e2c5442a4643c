"""
Math Tutor Schemas Package

Pydantic models for solver output, workflow results and the response envelope.
"""

from mathtutor.schemas.common import ApiResponse, error_body
from mathtutor.schemas.solution import (
    Solution,
    SolutionStep,
    SolutionPayload,
)
from mathtutor.schemas.question import (
    AnswerResult,
    PendingResult,
    HistoryItem,
    UserHistory,
    BulkQuestionItem,
    BulkItemResult,
    BulkIngestResult,
    QuestionStats,
)

__all__ = [
    # Envelope
    "ApiResponse",
    "error_body",

    # Solver output
    "Solution",
    "SolutionStep",
    "SolutionPayload",

    # Workflow results
    "AnswerResult",
    "PendingResult",
    "HistoryItem",
    "UserHistory",
    "BulkQuestionItem",
    "BulkItemResult",
    "BulkIngestResult",
    "QuestionStats",
]
