"""
Pytest configuration and fixtures for Math Tutor backend tests.

Provides:
- In-memory SQLite database per test
- Repositories, cache and solver test doubles
- FastAPI test client with dependency overrides
- Sample user fixtures
"""

import os

# Set test environment before importing the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("REDIS_URL", None)
os.environ.pop("SENTRY_DSN", None)
os.environ["PENDING_SWEEP_INTERVAL_SECONDS"] = "0"

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from mathtutor.database import Base, get_db
from mathtutor.dependencies.services import get_cache, get_observer, get_solver
from mathtutor.main import app
from mathtutor.models import models  # noqa: F401 - registers tables
from mathtutor.models.models import User
from mathtutor.repositories.answer_repository import AnswerRepository
from mathtutor.repositories.question_repository import QuestionRepository
from mathtutor.repositories.user_repository import UserRepository
from mathtutor.services.bulk_ingest import BulkIngestService
from mathtutor.services.cache_service import CacheService
from mathtutor.services.question_service import QuestionService

from tests.mocks import CountingSolver, RecordingObserver


# =========================================================================
# Database
# =========================================================================

@pytest.fixture(scope="function")
def engine():
    """Fresh in-memory database for each test"""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def user_repo(db: Session) -> UserRepository:
    return UserRepository(db)


@pytest.fixture
def question_repo(db: Session) -> QuestionRepository:
    return QuestionRepository(db)


@pytest.fixture
def answer_repo(db: Session) -> AnswerRepository:
    return AnswerRepository(db)


# =========================================================================
# Collaborators
# =========================================================================

@pytest.fixture
def cache() -> CacheService:
    """In-memory cache (no REDIS_URL)"""
    return CacheService()


@pytest.fixture
def solver() -> CountingSolver:
    return CountingSolver()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def question_service(user_repo, question_repo, answer_repo, cache, solver, observer) -> QuestionService:
    return QuestionService(
        users=user_repo,
        questions=question_repo,
        answers=answer_repo,
        cache=cache,
        solver=solver,
        observer=observer,
    )


@pytest.fixture
def bulk_service(user_repo, question_repo, answer_repo, solver, observer) -> BulkIngestService:
    return BulkIngestService(
        users=user_repo,
        questions=question_repo,
        answers=answer_repo,
        solver=solver,
        observer=observer,
    )


# =========================================================================
# API client
# =========================================================================

@pytest.fixture(scope="function")
def client(db: Session, cache, solver, observer) -> Generator[TestClient, None, None]:
    """Provide FastAPI test client with database and collaborator overrides"""
    def override_get_db():
        try:
            yield db
        finally:
            pass  # Don't close - let the fixture handle it

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache
    app.dependency_overrides[get_solver] = lambda: solver
    app.dependency_overrides[get_observer] = lambda: observer
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# =========================================================================
# User Fixtures
# =========================================================================

@pytest.fixture
def test_user(user_repo: UserRepository) -> User:
    return user_repo.create_user("alice@example.com", "Alice Johnson")


@pytest.fixture
def other_user(user_repo: UserRepository) -> User:
    return user_repo.create_user("bob@example.com", "Bob Smith")
