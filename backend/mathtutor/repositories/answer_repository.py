import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import func

from mathtutor.models.models import Answer
from mathtutor.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class AnswerRepository(BaseRepository):

    def create_answer(
        self,
        question_id: str,
        steps: List[Dict[str, Any]],
        final_answer: str,
        explanation: str,
        processing_time_ms: int,
        ai_model_used: str = "gpt-4",
    ) -> Answer:
        answer = Answer(
            question_id=question_id,
            steps=steps,
            final_answer=final_answer,
            explanation=explanation,
            processing_time_ms=processing_time_ms,
            ai_model_used=ai_model_used,
        )
        with self.store_errors("create_answer"):
            self.db.add(answer)
            self.db.commit()
            self.db.refresh(answer)
        return answer

    def get_answer_by_id(self, answer_id: str) -> Optional[Answer]:
        with self.store_errors("get_answer_by_id"):
            return self.db.query(Answer).filter(Answer.id == answer_id).first()

    def get_answer_by_question_id(self, question_id: str) -> Optional[Answer]:
        with self.store_errors("get_answer_by_question_id"):
            return self.db.query(Answer).filter(Answer.question_id == question_id).first()

    def update_answer(self, answer_id: str, **fields) -> Optional[Answer]:
        """Update `steps`, `final_answer`, `explanation` or `processing_time_ms`."""
        allowed = {"steps", "final_answer", "explanation", "processing_time_ms"}
        with self.store_errors("update_answer"):
            answer = self.db.query(Answer).filter(Answer.id == answer_id).first()
            if answer is None:
                return None
            for key, value in fields.items():
                if key in allowed and value is not None:
                    setattr(answer, key, value)
            self.db.commit()
            self.db.refresh(answer)
            return answer

    def delete_answer(self, answer_id: str) -> bool:
        with self.store_errors("delete_answer"):
            deleted = self.db.query(Answer).filter(Answer.id == answer_id).delete()
            self.db.commit()
        return deleted > 0

    def get_answers_by_processing_time(
        self,
        min_time_ms: int,
        max_time_ms: int,
        limit: int = 100,
    ) -> List[Answer]:
        with self.store_errors("get_answers_by_processing_time"):
            return (
                self.db.query(Answer)
                .filter(Answer.processing_time_ms.between(min_time_ms, max_time_ms))
                .order_by(Answer.processing_time_ms.asc())
                .limit(limit)
                .all()
            )

    def get_average_processing_time(self) -> float:
        with self.store_errors("get_average_processing_time"):
            avg = self.db.query(func.avg(Answer.processing_time_ms)).scalar()
        return round(float(avg), 2) if avg is not None else 0.0
