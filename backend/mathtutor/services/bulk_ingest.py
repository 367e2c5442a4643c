"""
Bulk ingest: the question workflow fanned out over a batch.

Items run concurrently with `asyncio.gather` and independently of each
other: no shared transaction, no ordering, no early abort. A failing item
becomes a failed entry in the result; rows it already created are kept
(its question is marked `failed`). The question cache is never consulted.
"""

import asyncio
import logging
import time
from typing import Optional, Sequence

from mathtutor.exceptions import StoreError, UserNotFoundError
from mathtutor.models.models import QuestionStatus
from mathtutor.repositories.answer_repository import AnswerRepository
from mathtutor.repositories.question_repository import QuestionRepository
from mathtutor.repositories.user_repository import UserRepository
from mathtutor.schemas.question import BulkIngestResult, BulkItemResult, BulkQuestionItem
from mathtutor.services.observability import WorkflowObserver
from mathtutor.services.question_service import elapsed_ms
from mathtutor.services.solver import Solver

logger = logging.getLogger(__name__)

MAX_BULK_ITEMS = 50


class BulkIngestService:

    def __init__(
        self,
        users: UserRepository,
        questions: QuestionRepository,
        answers: AnswerRepository,
        solver: Solver,
        observer: Optional[WorkflowObserver] = None,
    ):
        self.users = users
        self.questions = questions
        self.answers = answers
        self.solver = solver
        self.observer = observer or WorkflowObserver()

    async def bulk_ingest(self, items: Sequence[BulkQuestionItem]) -> BulkIngestResult:
        started = time.perf_counter()
        self.observer.started("bulk_ingest", total=len(items))

        results = await asyncio.gather(*(self._process_item(item) for item in items))

        successful = sum(1 for r in results if r.success)
        result = BulkIngestResult(
            total_questions=len(items),
            successful=successful,
            failed=len(results) - successful,
            results=list(results),
            processing_time_ms=elapsed_ms(started),
        )
        self.observer.succeeded(
            "bulk_ingest",
            total=result.total_questions,
            successful=result.successful,
            failed=result.failed,
            processing_time_ms=result.processing_time_ms,
        )
        return result

    async def _process_item(self, item: BulkQuestionItem) -> BulkItemResult:
        started = time.perf_counter()
        user_id = str(item.user_id)
        question_type = getattr(item.question_type, "value", item.question_type)
        question_id = None

        try:
            if self.users.get_user_by_id(user_id) is None:
                raise UserNotFoundError()

            question = self.questions.create_question(user_id, item.question, question_type)
            question_id = question.id
            self.questions.update_question_status(question_id, QuestionStatus.PROCESSING)

            solution = await self.solver.solve(item.question, question_type)
            processing_time_ms = elapsed_ms(started)

            self.answers.create_answer(
                question_id=question_id,
                steps=[step.model_dump() for step in solution.steps],
                final_answer=solution.final_answer,
                explanation=solution.explanation,
                processing_time_ms=processing_time_ms,
                ai_model_used=solution.backend_id,
            )
            self.questions.update_question_status(question_id, QuestionStatus.COMPLETED)

            return BulkItemResult(
                question=item.question,
                success=True,
                question_id=question_id,
                processing_time_ms=processing_time_ms,
            )

        except Exception as e:
            self.observer.failed("bulk_ingest_item", e, user_id=user_id, question_id=question_id)
            if question_id is not None:
                self._mark_failed(question_id)
            return BulkItemResult(
                question=item.question,
                success=False,
                error=str(e) or e.__class__.__name__,
                processing_time_ms=elapsed_ms(started),
            )

    def _mark_failed(self, question_id: str) -> None:
        try:
            self.questions.update_question_status(question_id, QuestionStatus.FAILED)
        except StoreError as e:
            logger.warning(f"Could not mark bulk question {question_id} as failed: {e}")
