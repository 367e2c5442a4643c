"""
Math Tutor Repositories Package

One repository per entity, each constructed around a SQLAlchemy Session.
"""

from mathtutor.repositories.answer_repository import AnswerRepository
from mathtutor.repositories.question_repository import QuestionRepository
from mathtutor.repositories.user_repository import UserRepository

__all__ = [
    "AnswerRepository",
    "QuestionRepository",
    "UserRepository",
]
