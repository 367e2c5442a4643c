"""
FastAPI Dependencies for the Math Tutor API
"""

from mathtutor.dependencies.services import (
    get_cache,
    get_solver,
    get_observer,
    get_question_service,
    get_bulk_ingest_service,
    get_user_service,
)

__all__ = [
    "get_cache",
    "get_solver",
    "get_observer",
    "get_question_service",
    "get_bulk_ingest_service",
    "get_user_service",
]
