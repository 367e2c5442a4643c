import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import case, func
from sqlalchemy.orm import joinedload

from mathtutor.models.models import Answer, Question, QuestionStatus
from mathtutor.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class QuestionRepository(BaseRepository):

    def create_question(self, user_id: str, question_text: str, question_type: str = "other") -> Question:
        question = Question(
            user_id=user_id,
            question_text=question_text,
            question_type=getattr(question_type, "value", question_type),
            status=QuestionStatus.PENDING.value,
        )
        with self.store_errors("create_question"):
            self.db.add(question)
            self.db.commit()
            self.db.refresh(question)
        return question

    def get_question_by_id(self, question_id: str) -> Optional[Question]:
        with self.store_errors("get_question_by_id"):
            return self.db.query(Question).filter(Question.id == question_id).first()

    def get_question_with_answer(self, question_id: str) -> Optional[Question]:
        """Question with its answer eagerly loaded (`question.answer` may be None)."""
        with self.store_errors("get_question_with_answer"):
            return (
                self.db.query(Question)
                .options(joinedload(Question.answer))
                .filter(Question.id == question_id)
                .first()
            )

    def update_question_status(self, question_id: str, status: str) -> bool:
        status = getattr(status, "value", status)
        with self.store_errors("update_question_status"):
            updated = (
                self.db.query(Question)
                .filter(Question.id == question_id)
                .update(
                    {Question.status: status, Question.updated_at: datetime.utcnow()},
                    synchronize_session="fetch",
                )
            )
            self.db.commit()
        return updated > 0

    def delete_question(self, question_id: str) -> bool:
        with self.store_errors("delete_question"):
            question = self.db.query(Question).filter(Question.id == question_id).first()
            if question is None:
                return False
            self.db.delete(question)
            self.db.commit()
        return True

    def get_user_history(self, user_id: str, page: int = 1, limit: int = 10) -> Tuple[List[Question], int]:
        """One page of a user's questions, newest first, answers joined, plus the total count."""
        offset = (page - 1) * limit
        with self.store_errors("get_user_history"):
            total = self.db.query(Question).filter(Question.user_id == user_id).count()
            questions = (
                self.db.query(Question)
                .options(joinedload(Question.answer))
                .filter(Question.user_id == user_id)
                .order_by(Question.created_at.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
        return questions, total

    def get_questions_by_status(self, status: str, limit: int = 100) -> List[Question]:
        status = getattr(status, "value", status)
        with self.store_errors("get_questions_by_status"):
            return (
                self.db.query(Question)
                .filter(Question.status == status)
                .order_by(Question.created_at.desc())
                .limit(limit)
                .all()
            )

    def search_questions(self, term: str, limit: int = 10) -> List[Question]:
        """Case-insensitive substring search over question text."""
        with self.store_errors("search_questions"):
            return (
                self.db.query(Question)
                .options(joinedload(Question.answer))
                .filter(Question.question_text.ilike(f"%{term}%"))
                .order_by(Question.created_at.desc())
                .limit(limit)
                .all()
            )

    def get_question_stats(self) -> Dict[str, Any]:
        """Counts by status, average answer time and today's volume in a single query."""
        today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)

        def count_where(condition):
            return func.count(case((condition, 1)))

        with self.store_errors("get_question_stats"):
            row = (
                self.db.query(
                    func.count(Question.id),
                    count_where(Question.status == QuestionStatus.COMPLETED.value),
                    count_where(Question.status == QuestionStatus.PENDING.value),
                    count_where(Question.status == QuestionStatus.FAILED.value),
                    func.avg(Answer.processing_time_ms),
                    count_where(Question.created_at >= today),
                )
                .outerjoin(Answer, Answer.question_id == Question.id)
                .one()
            )

        total, completed, pending, failed, avg_ms, today_count = row
        return {
            "total_questions": total or 0,
            "completed_questions": completed or 0,
            "pending_questions": pending or 0,
            "failed_questions": failed or 0,
            "avg_processing_time_ms": round(float(avg_ms), 2) if avg_ms is not None else 0.0,
            "questions_today": today_count or 0,
        }
