import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mathtutor.exceptions import StoreError

logger = logging.getLogger(__name__)


class BaseRepository:
    """Session holder that turns SQLAlchemy failures into `StoreError`."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def store_errors(self, operation: str):
        """Roll back, log and re-raise any SQLAlchemy error as `StoreError`."""
        try:
            yield
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error during {operation}: {e}")
            raise StoreError() from e
