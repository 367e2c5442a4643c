from typing import List, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field, field_validator

from mathtutor.dependencies.services import get_bulk_ingest_service, get_question_service
from mathtutor.exceptions import QuestionNotFoundError
from mathtutor.models.models import QuestionStatus, QuestionType
from mathtutor.schemas.common import ApiResponse
from mathtutor.schemas.question import (
    AnswerResult,
    BulkIngestResult,
    BulkQuestionItem,
    PendingResult,
    QuestionStats,
    UserHistory,
)
from mathtutor.services.bulk_ingest import MAX_BULK_ITEMS, BulkIngestService
from mathtutor.services.question_service import QuestionService

router = APIRouter(prefix="/api/question", tags=["questions"])


class SubmitQuestionRequest(BaseModel):
    question: str = Field(..., min_length=3, max_length=1000)
    user_id: UUID
    question_type: QuestionType = QuestionType.OTHER

    @field_validator("question", mode="before")
    @classmethod
    def strip_question(cls, v):
        return v.strip() if isinstance(v, str) else v


class BulkIngestRequest(BaseModel):
    questions: List[BulkQuestionItem] = Field(..., min_length=1, max_length=MAX_BULK_ITEMS)


@router.post(
    "",
    response_model=ApiResponse[Union[AnswerResult, PendingResult]],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def submit_question(
    request: SubmitQuestionRequest,
    response: Response,
    service: QuestionService = Depends(get_question_service),
):
    """
    Submit a math question.

    Returns 201 with the worked answer, or 202 with a placeholder when the
    answer could not be produced right away.
    """
    result = await service.submit_question(request.question, str(request.user_id), request.question_type)

    if isinstance(result, PendingResult):
        response.status_code = status.HTTP_202_ACCEPTED
        return ApiResponse(data=result, message="Question submitted for processing")

    return ApiResponse(data=result, message="Question processed successfully")


@router.post(
    "/ingest",
    response_model=ApiResponse[BulkIngestResult],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def bulk_ingest(
    request: BulkIngestRequest,
    service: BulkIngestService = Depends(get_bulk_ingest_service),
):
    """Solve up to 50 questions concurrently; failures are reported per item."""
    result = await service.bulk_ingest(request.questions)
    return ApiResponse(
        data=result,
        message=(
            f"Bulk ingest completed: {result.successful}/{result.total_questions} "
            "questions processed successfully"
        ),
    )


@router.get("/stats", response_model=ApiResponse[QuestionStats], response_model_exclude_none=True)
def get_question_stats(service: QuestionService = Depends(get_question_service)):
    return ApiResponse(data=service.get_question_stats())


@router.get("/search", response_model=ApiResponse[List[AnswerResult]], response_model_exclude_none=True)
def search_questions(
    q: str = Query(..., min_length=1, max_length=200),
    limit: int = Query(10, ge=1, le=100),
    service: QuestionService = Depends(get_question_service),
):
    """Case-insensitive substring search over question text."""
    return ApiResponse(data=service.search_questions(q, limit))


@router.get("", response_model=ApiResponse[List[AnswerResult]], response_model_exclude_none=True)
def get_questions_by_status(
    status_filter: QuestionStatus = Query(QuestionStatus.PENDING, alias="status"),
    limit: int = Query(100, ge=1, le=100),
    service: QuestionService = Depends(get_question_service),
):
    return ApiResponse(data=service.get_questions_by_status(status_filter, limit))


@router.get(
    "/user/{user_id}/history",
    response_model=ApiResponse[UserHistory],
    response_model_exclude_none=True,
)
async def get_user_history(
    user_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: QuestionService = Depends(get_question_service),
):
    history = await service.get_user_history(str(user_id), page, limit)
    return ApiResponse(data=history)


@router.get("/{question_id}", response_model=ApiResponse[AnswerResult], response_model_exclude_none=True)
def get_question(question_id: UUID, service: QuestionService = Depends(get_question_service)):
    result = service.get_question_with_answer(str(question_id))
    if result is None:
        raise QuestionNotFoundError()
    return ApiResponse(data=result)


@router.delete("/{question_id}", response_model=ApiResponse, response_model_exclude_none=True)
def delete_question(question_id: UUID, service: QuestionService = Depends(get_question_service)):
    if not service.delete_question(str(question_id)):
        raise QuestionNotFoundError()
    return ApiResponse(message="Question deleted successfully")
