"""
Question workflow.

Submitting a question:

    1. The user must exist (UserNotFoundError otherwise, nothing is written).
    2. Cache hit on the normalized question text: a new question row is
       created, the cached answer is copied onto it and returned with the new
       id and timestamp. The solver is not called.
    3. Cache miss: question row -> `processing` -> solve -> answer row ->
       `completed` -> cache. If anything after the question row fails, the
       question is marked `failed` and a `processing` placeholder is returned.

Only UserNotFoundError and a failure to create the question row reach the
caller; every later step is best-effort.
"""

import asyncio
import logging
import time
from datetime import datetime
from typing import List, Optional, Union

from mathtutor.config import HISTORY_CACHE_TTL_SECONDS, QUESTION_CACHE_TTL_SECONDS
from mathtutor.exceptions import StoreError, UserNotFoundError
from mathtutor.models.models import QuestionStatus
from mathtutor.repositories.answer_repository import AnswerRepository
from mathtutor.repositories.question_repository import QuestionRepository
from mathtutor.repositories.user_repository import UserRepository
from mathtutor.schemas.question import (
    AnswerResult,
    HistoryItem,
    PendingResult,
    QuestionStats,
    UserHistory,
)
from mathtutor.services.cache_service import CacheService
from mathtutor.services.observability import WorkflowObserver
from mathtutor.services.solver import Solver

logger = logging.getLogger(__name__)


def elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class QuestionService:

    def __init__(
        self,
        users: UserRepository,
        questions: QuestionRepository,
        answers: AnswerRepository,
        cache: CacheService,
        solver: Solver,
        observer: Optional[WorkflowObserver] = None,
    ):
        self.users = users
        self.questions = questions
        self.answers = answers
        self.cache = cache
        self.solver = solver
        self.observer = observer or WorkflowObserver()

    def _set_status(self, question_id: str, status: QuestionStatus) -> bool:
        try:
            return self.questions.update_question_status(question_id, status)
        except StoreError as e:
            logger.warning(f"Could not move question {question_id} to {status.value}: {e}")
            return False

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit_question(
        self,
        question_text: str,
        user_id: str,
        question_type: str = "other",
    ) -> Union[AnswerResult, PendingResult]:
        question_type = getattr(question_type, "value", question_type)
        self.observer.started("submit_question", user_id=user_id, question_type=question_type)

        if self.users.get_user_by_id(user_id) is None:
            error = UserNotFoundError("Please create a user account first")
            self.observer.failed("submit_question", error, user_id=user_id)
            raise error

        cache_key = CacheService.question_key(question_text)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            return self._answer_from_cache(cached, question_text, user_id, question_type)

        question = self.questions.create_question(user_id, question_text, question_type)
        self._set_status(question.id, QuestionStatus.PROCESSING)

        try:
            started = time.perf_counter()
            solution = await self.solver.solve(question_text, question_type)
            processing_time_ms = elapsed_ms(started)

            steps = [step.model_dump() for step in solution.steps]
            answer = self.answers.create_answer(
                question_id=question.id,
                steps=steps,
                final_answer=solution.final_answer,
                explanation=solution.explanation,
                processing_time_ms=processing_time_ms,
                ai_model_used=solution.backend_id,
            )
            self._set_status(question.id, QuestionStatus.COMPLETED)

            result = AnswerResult(
                id=question.id,
                question=question_text,
                question_type=question_type,
                status=QuestionStatus.COMPLETED.value,
                steps=solution.steps,
                final_answer=solution.final_answer,
                explanation=solution.explanation,
                created_at=answer.created_at,
                processing_time_ms=processing_time_ms,
                ai_model_used=solution.backend_id,
            )
        except Exception as e:
            self.observer.failed("submit_question", e, user_id=user_id, question_id=question.id)
            self._set_status(question.id, QuestionStatus.FAILED)
            return PendingResult(id=question.id)

        await self.cache.set(cache_key, result.model_dump(mode="json"), QUESTION_CACHE_TTL_SECONDS)

        self.observer.succeeded(
            "submit_question",
            user_id=user_id,
            question_id=question.id,
            cache_hit=False,
            processing_time_ms=processing_time_ms,
            backend=solution.backend_id,
        )
        return result

    def _answer_from_cache(
        self,
        cached: dict,
        question_text: str,
        user_id: str,
        question_type: str,
    ) -> Union[AnswerResult, PendingResult]:
        """Attribute a cached answer to a freshly created question row."""
        logger.info(f"Cache hit for question submitted by user {user_id}")
        question = self.questions.create_question(user_id, question_text, question_type)

        try:
            cached_result = AnswerResult.model_validate(cached)
            self.answers.create_answer(
                question_id=question.id,
                steps=[step.model_dump() for step in cached_result.steps],
                final_answer=cached_result.final_answer,
                explanation=cached_result.explanation,
                processing_time_ms=cached_result.processing_time_ms,
                ai_model_used=cached_result.ai_model_used or "gpt-4",
            )
        except Exception as e:
            self.observer.failed("submit_question", e, user_id=user_id, question_id=question.id, cache_hit=True)
            self._set_status(question.id, QuestionStatus.FAILED)
            return PendingResult(id=question.id)

        self._set_status(question.id, QuestionStatus.COMPLETED)
        self.observer.succeeded("submit_question", user_id=user_id, question_id=question.id, cache_hit=True)

        return cached_result.model_copy(update={"id": question.id, "created_at": datetime.utcnow()})

    # =========================================================================
    # Reads
    # =========================================================================

    def get_question_with_answer(self, question_id: str) -> Optional[AnswerResult]:
        question = self.questions.get_question_with_answer(question_id)
        if question is None:
            return None
        return AnswerResult.from_question(question)

    def delete_question(self, question_id: str) -> bool:
        return self.questions.delete_question(question_id)

    async def get_user_history(self, user_id: str, page: int = 1, limit: int = 10) -> UserHistory:
        """Paginated history, served from cache when possible."""
        cache_key = CacheService.history_key(user_id, page, limit)
        cached = await self.cache.get(cache_key)
        if cached is not None:
            logger.debug(f"Cache hit for user history: {user_id} page {page}")
            return UserHistory.model_validate(cached)

        if self.users.get_user_by_id(user_id) is None:
            raise UserNotFoundError("The specified user does not exist")

        questions, total = self.questions.get_user_history(user_id, page, limit)
        history = UserHistory(
            user_id=user_id,
            questions=[HistoryItem.from_question(q) for q in questions],
            total_count=total,
        )
        await self.cache.set(cache_key, history.model_dump(mode="json"), HISTORY_CACHE_TTL_SECONDS)
        return history

    def get_questions_by_status(self, status: str, limit: int = 100) -> List[AnswerResult]:
        return [AnswerResult.from_question(q) for q in self.questions.get_questions_by_status(status, limit)]

    def get_question_stats(self) -> QuestionStats:
        return QuestionStats(**self.questions.get_question_stats())

    def search_questions(self, term: str, limit: int = 10) -> List[AnswerResult]:
        return [AnswerResult.from_question(q) for q in self.questions.search_questions(term, limit)]

    # =========================================================================
    # Pending sweep
    # =========================================================================

    async def process_pending_questions(self, limit: int = 10) -> int:
        """Solve up to `limit` questions still in `pending`. Returns how many completed."""
        pending = self.questions.get_questions_by_status(QuestionStatus.PENDING, limit)
        if not pending:
            return 0

        self.observer.started("process_pending_questions", count=len(pending))
        completed = 0
        for question in pending:
            question_id = question.id
            self._set_status(question_id, QuestionStatus.PROCESSING)
            try:
                started = time.perf_counter()
                solution = await self.solver.solve(question.question_text, question.question_type)
                self.answers.create_answer(
                    question_id=question_id,
                    steps=[step.model_dump() for step in solution.steps],
                    final_answer=solution.final_answer,
                    explanation=solution.explanation,
                    processing_time_ms=elapsed_ms(started),
                    ai_model_used=solution.backend_id,
                )
                self._set_status(question_id, QuestionStatus.COMPLETED)
                completed += 1
            except Exception as e:
                self.observer.failed("process_pending_questions", e, question_id=question_id)
                self._set_status(question_id, QuestionStatus.FAILED)

        self.observer.succeeded("process_pending_questions", completed=completed, failed=len(pending) - completed)
        return completed


async def run_pending_sweeper(service_factory, interval_seconds: int) -> None:
    """
    Periodically process pending questions.

    `service_factory` is a context manager yielding a QuestionService bound
    to a fresh database session. Designed to run as a task within the
    FastAPI process until cancelled.
    """
    logger.info(f"Pending question sweeper started (every {interval_seconds}s)")

    while True:
        try:
            with service_factory() as service:
                completed = await service.process_pending_questions()
            if completed:
                logger.info(f"Sweeper completed {completed} pending questions")
        except Exception as e:
            logger.error(f"Error in pending question sweep: {e}")

        await asyncio.sleep(interval_seconds)
