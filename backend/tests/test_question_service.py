"""
Tests for the question workflow: submission (cache hit and miss), failure
handling, history caching, stats and the pending sweep.
"""

import pytest

from mathtutor.exceptions import UserNotFoundError
from mathtutor.models.models import Answer, Question, QuestionStatus
from mathtutor.schemas.question import AnswerResult, PendingResult
from mathtutor.services.cache_service import CacheService
from mathtutor.services.question_service import QuestionService

from tests.mocks import CountingSolver, RecordingObserver


QUESTION = "Solve for x: 2x + 5 = 13"
UNKNOWN_USER = "00000000-0000-4000-8000-000000000000"


def service_with(solver, user_repo, question_repo, answer_repo, cache, observer=None):
    return QuestionService(
        users=user_repo,
        questions=question_repo,
        answers=answer_repo,
        cache=cache,
        solver=solver,
        observer=observer or RecordingObserver(),
    )


class TestSubmitQuestion:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cache_miss_solves_and_persists(self, question_service, solver, test_user, db, cache):
        result = await question_service.submit_question(QUESTION, test_user.id, "algebra")

        assert isinstance(result, AnswerResult)
        assert result.status == "completed"
        assert result.question == QUESTION
        assert result.question_type == "algebra"
        assert result.ai_model_used == "mock"
        assert len(result.steps) == 3
        assert solver.calls == [(QUESTION, "algebra")]

        question = db.query(Question).filter(Question.id == result.id).one()
        assert question.status == "completed"
        assert question.answer.final_answer == result.final_answer
        assert question.answer.steps[0]["step_number"] == 1

        assert await cache.get(CacheService.question_key(QUESTION)) is not None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cache_hit_skips_solver(self, question_service, solver, test_user, other_user, db):
        first = await question_service.submit_question(QUESTION, test_user.id, "algebra")
        second = await question_service.submit_question("  SOLVE FOR X: 2X + 5 = 13 ", other_user.id, "algebra")

        assert solver.call_count == 1
        assert isinstance(second, AnswerResult)
        assert second.id != first.id
        assert second.final_answer == first.final_answer
        assert second.steps == first.steps

        hit = db.query(Question).filter(Question.id == second.id).one()
        assert hit.user_id == other_user.id
        assert hit.status == "completed"
        assert hit.answer is not None
        assert db.query(Answer).count() == 2

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cache_hit_reports_to_observer(self, question_service, observer, test_user):
        await question_service.submit_question(QUESTION, test_user.id)
        await question_service.submit_question(QUESTION, test_user.id)

        hits = [e[2]["cache_hit"] for e in observer.of_kind("succeeded")]
        assert hits == [False, True]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_user_writes_nothing(self, question_service, solver, observer, db):
        with pytest.raises(UserNotFoundError) as exc_info:
            await question_service.submit_question(QUESTION, UNKNOWN_USER)

        assert exc_info.value.message == "Please create a user account first"
        assert db.query(Question).count() == 0
        assert solver.call_count == 0
        assert len(observer.of_kind("failed")) == 1

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_solver_failure_marks_question_failed(
        self, user_repo, question_repo, answer_repo, cache, test_user, db
    ):
        solver = CountingSolver(fail_on=(QUESTION,))
        service = service_with(solver, user_repo, question_repo, answer_repo, cache)

        result = await service.submit_question(QUESTION, test_user.id)

        assert isinstance(result, PendingResult)
        assert result.status == "processing"
        assert result.message == "Question submitted successfully. Processing may take a moment."

        question = db.query(Question).filter(Question.id == result.id).one()
        assert question.status == "failed"
        assert question.answer is None
        assert await cache.get(CacheService.question_key(QUESTION)) is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unusable_cache_entry_marks_question_failed(self, question_service, solver, cache, test_user, db):
        await cache.set(CacheService.question_key(QUESTION), {"unexpected": "shape"})

        result = await question_service.submit_question(QUESTION, test_user.id)

        assert isinstance(result, PendingResult)
        assert solver.call_count == 0
        assert db.query(Question).filter(Question.id == result.id).one().status == "failed"


class TestQuestionReads:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_get_question_with_answer(self, question_service, test_user):
        submitted = await question_service.submit_question(QUESTION, test_user.id, "algebra")

        found = question_service.get_question_with_answer(submitted.id)
        assert found.id == submitted.id
        assert found.final_answer == submitted.final_answer
        assert [s.description for s in found.steps] == [s.description for s in submitted.steps]

        assert question_service.get_question_with_answer(UNKNOWN_USER) is None

    @pytest.mark.unit
    def test_unanswered_question_has_empty_answer_fields(self, question_service, question_repo, test_user):
        question = question_repo.create_question(test_user.id, "What is 7 * 6?", "arithmetic")

        found = question_service.get_question_with_answer(question.id)
        assert found.status == "pending"
        assert found.steps == []
        assert found.final_answer == ""
        assert found.ai_model_used is None

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_delete_question(self, question_service, test_user, db):
        submitted = await question_service.submit_question(QUESTION, test_user.id)

        assert question_service.delete_question(submitted.id) is True
        assert question_service.delete_question(submitted.id) is False
        assert db.query(Answer).count() == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_search_and_by_status(self, question_service, question_repo, test_user):
        await question_service.submit_question("Find the derivative of x² + 3x - 5", test_user.id, "calculus")
        question_repo.create_question(test_user.id, "What is the area of a circle?", "geometry")

        found = question_service.search_questions("DERIVATIVE")
        assert [q.question for q in found] == ["Find the derivative of x² + 3x - 5"]

        pending = question_service.get_questions_by_status("pending")
        assert [q.question for q in pending] == ["What is the area of a circle?"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_stats(self, user_repo, question_repo, answer_repo, cache, test_user):
        solver = CountingSolver(fail_on=("Explain limits",))
        service = service_with(solver, user_repo, question_repo, answer_repo, cache)

        await service.submit_question(QUESTION, test_user.id)
        await service.submit_question("Explain limits", test_user.id)
        question_repo.create_question(test_user.id, "What is 2 + 2?", "arithmetic")

        stats = service.get_question_stats()
        assert stats.total_questions == 3
        assert stats.completed_questions == 1
        assert stats.pending_questions == 1
        assert stats.failed_questions == 1
        assert stats.questions_today == 3
        assert stats.avg_processing_time_ms >= 0


class TestUserHistory:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_history_contains_answers(self, question_service, test_user):
        await question_service.submit_question(QUESTION, test_user.id, "algebra")

        history = await question_service.get_user_history(test_user.id)

        assert history.user_id == test_user.id
        assert history.total_count == 1
        item = history.questions[0]
        assert item.question_text == QUESTION
        assert item.status == "completed"
        assert item.answer is not None
        assert len(item.answer.steps) == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_history_served_from_cache(self, question_service, question_repo, test_user):
        submitted = await question_service.submit_question(QUESTION, test_user.id)
        first = await question_service.get_user_history(test_user.id, 1, 10)

        question_repo.delete_question(submitted.id)
        cached = await question_service.get_user_history(test_user.id, 1, 10)
        fresh = await question_service.get_user_history(test_user.id, 1, 20)

        assert cached == first
        assert cached.total_count == 1
        assert fresh.total_count == 0

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_history_unknown_user(self, question_service):
        with pytest.raises(UserNotFoundError) as exc_info:
            await question_service.get_user_history(UNKNOWN_USER)
        assert exc_info.value.message == "The specified user does not exist"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_history_pagination(self, question_service, question_repo, test_user):
        for n in range(5):
            question_repo.create_question(test_user.id, f"What is {n} + {n}?", "arithmetic")

        page = await question_service.get_user_history(test_user.id, page=2, limit=2)
        assert page.total_count == 5
        assert len(page.questions) == 2


class TestPendingSweep:

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_process_pending_questions(self, question_service, question_repo, solver, test_user, db):
        ids = [
            question_repo.create_question(test_user.id, text, "algebra").id
            for text in ("Solve 3x + 2 = 14", "Solve 2y + 8 = 20")
        ]

        completed = await question_service.process_pending_questions()

        assert completed == 2
        assert solver.call_count == 2
        for question_id in ids:
            question = db.query(Question).filter(Question.id == question_id).one()
            assert question.status == QuestionStatus.COMPLETED.value
            assert question.answer.ai_model_used == "mock"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failures_are_marked(self, user_repo, question_repo, answer_repo, cache, test_user, db):
        solver = CountingSolver(fail_on=("Explain limits",))
        service = service_with(solver, user_repo, question_repo, answer_repo, cache)
        bad = question_repo.create_question(test_user.id, "Explain limits", "calculus")
        good = question_repo.create_question(test_user.id, "What is 2 + 2?", "arithmetic")

        assert await service.process_pending_questions() == 1
        assert db.query(Question).filter(Question.id == bad.id).one().status == "failed"
        assert db.query(Question).filter(Question.id == good.id).one().status == "completed"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_nothing_pending(self, question_service, solver):
        assert await question_service.process_pending_questions() == 0
        assert solver.call_count == 0
