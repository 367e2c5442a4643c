from sqlalchemy import Column, String, Integer, DateTime, JSON, ForeignKey, Text, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import enum
import uuid
from mathtutor.database import Base


def generate_uuid():
    return str(uuid.uuid4())


class QuestionType(str, enum.Enum):
    """Closed set of question categories."""
    ALGEBRA = "algebra"
    CALCULUS = "calculus"
    GEOMETRY = "geometry"
    ARITHMETIC = "arithmetic"
    OTHER = "other"


class QuestionStatus(str, enum.Enum):
    """Question lifecycle: pending -> processing -> completed | failed."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


QUESTION_TYPES = tuple(t.value for t in QuestionType)
QUESTION_STATUSES = tuple(s.value for s in QuestionStatus)


def _in_clause(column: str, values) -> str:
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    questions = relationship(
        "Question",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        CheckConstraint(_in_clause("question_type", QUESTION_TYPES), name="ck_questions_type"),
        CheckConstraint(_in_clause("status", QUESTION_STATUSES), name="ck_questions_status"),
    )

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    question_text = Column(Text, nullable=False)
    question_type = Column(String(50), nullable=False, default=QuestionType.OTHER.value, index=True)
    status = Column(String(20), nullable=False, default=QuestionStatus.PENDING.value, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="questions")
    answer = relationship(
        "Answer",
        back_populates="question",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Answer(Base):
    __tablename__ = "answers"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    question_id = Column(
        String(36),
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    steps = Column(JSON, nullable=False)  # Ordered list of step dicts
    final_answer = Column(Text, nullable=False)
    explanation = Column(Text, nullable=False)
    processing_time_ms = Column(Integer, nullable=False, default=0, index=True)
    ai_model_used = Column(String(100), nullable=False, default="gpt-4")

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    question = relationship("Question", back_populates="answer")
