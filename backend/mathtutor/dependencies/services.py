"""
Service wiring for FastAPI routes.

Long-lived collaborators (cache, solver, observer) are created once in the
application lifespan and kept on `app.state`. Repositories and services are
built per request around the request's database session. Tests swap any of
these through `app.dependency_overrides`.
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from mathtutor.database import get_db
from mathtutor.repositories.answer_repository import AnswerRepository
from mathtutor.repositories.question_repository import QuestionRepository
from mathtutor.repositories.user_repository import UserRepository
from mathtutor.services.bulk_ingest import BulkIngestService
from mathtutor.services.cache_service import CacheService
from mathtutor.services.observability import LoggingObserver, WorkflowObserver
from mathtutor.services.question_service import QuestionService
from mathtutor.services.solver import Solver
from mathtutor.services.user_service import UserService


def get_cache(request: Request) -> CacheService:
    return request.app.state.cache


def get_solver(request: Request) -> Solver:
    return request.app.state.solver


def get_observer(request: Request) -> WorkflowObserver:
    observer = getattr(request.app.state, "observer", None)
    return observer or LoggingObserver()


def get_question_service(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
    solver: Solver = Depends(get_solver),
    observer: WorkflowObserver = Depends(get_observer),
) -> QuestionService:
    return QuestionService(
        users=UserRepository(db),
        questions=QuestionRepository(db),
        answers=AnswerRepository(db),
        cache=cache,
        solver=solver,
        observer=observer,
    )


def get_bulk_ingest_service(
    db: Session = Depends(get_db),
    solver: Solver = Depends(get_solver),
    observer: WorkflowObserver = Depends(get_observer),
) -> BulkIngestService:
    return BulkIngestService(
        users=UserRepository(db),
        questions=QuestionRepository(db),
        answers=AnswerRepository(db),
        solver=solver,
        observer=observer,
    )


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    return UserService(UserRepository(db))
