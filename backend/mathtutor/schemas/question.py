"""
Workflow result schemas.

These are what the question and bulk workflows return and what the cache
stores (as `model_dump(mode="json")`).
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from mathtutor.models.models import QuestionType
from mathtutor.schemas.solution import SolutionStep


class AnswerResult(BaseModel):
    """A question together with its worked answer."""
    id: str
    question: str
    question_type: str
    status: str
    steps: List[SolutionStep] = Field(default_factory=list)
    final_answer: str = ""
    explanation: str = ""
    created_at: datetime
    processing_time_ms: int = 0
    ai_model_used: Optional[str] = None

    @classmethod
    def from_question(cls, question) -> "AnswerResult":
        answer = question.answer
        return cls(
            id=question.id,
            question=question.question_text,
            question_type=question.question_type,
            status=question.status,
            steps=answer.steps if answer else [],
            final_answer=answer.final_answer if answer else "",
            explanation=answer.explanation if answer else "",
            created_at=question.created_at,
            processing_time_ms=answer.processing_time_ms if answer else 0,
            ai_model_used=answer.ai_model_used if answer else None,
        )


class PendingResult(BaseModel):
    """Placeholder returned when no answer could be produced synchronously."""
    id: str
    status: str = "processing"
    message: str = "Question submitted successfully. Processing may take a moment."


# =============================================================================
# HISTORY
# =============================================================================

class HistoryAnswer(BaseModel):
    steps: List[SolutionStep]
    final_answer: str
    explanation: str


class HistoryItem(BaseModel):
    id: str
    question_text: str
    question_type: str
    status: str
    created_at: datetime
    answer: Optional[HistoryAnswer] = None

    @classmethod
    def from_question(cls, question) -> "HistoryItem":
        answer = question.answer
        return cls(
            id=question.id,
            question_text=question.question_text,
            question_type=question.question_type,
            status=question.status,
            created_at=question.created_at,
            answer=HistoryAnswer(
                steps=answer.steps,
                final_answer=answer.final_answer,
                explanation=answer.explanation,
            ) if answer else None,
        )


class UserHistory(BaseModel):
    user_id: str
    questions: List[HistoryItem]
    total_count: int


# =============================================================================
# BULK INGEST
# =============================================================================

class BulkQuestionItem(BaseModel):
    question: str = Field(..., min_length=1, max_length=1000)
    user_id: UUID
    question_type: QuestionType = QuestionType.OTHER


class BulkItemResult(BaseModel):
    question: str
    success: bool
    question_id: Optional[str] = None
    error: Optional[str] = None
    processing_time_ms: int


class BulkIngestResult(BaseModel):
    total_questions: int
    successful: int
    failed: int
    results: List[BulkItemResult]
    processing_time_ms: int


class QuestionStats(BaseModel):
    total_questions: int
    completed_questions: int
    pending_questions: int
    failed_questions: int
    avg_processing_time_ms: float
    questions_today: int
