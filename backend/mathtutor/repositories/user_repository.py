import logging
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from mathtutor.exceptions import EmailAlreadyExistsError
from mathtutor.models.models import User
from mathtutor.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository):

    def create_user(self, email: str, name: str) -> User:
        user = User(email=email, name=name)
        with self.store_errors("create_user"):
            self.db.add(user)
            try:
                self.db.commit()
            except IntegrityError:
                # Unique index on email lost a race with a concurrent insert
                self.db.rollback()
                raise EmailAlreadyExistsError()
            self.db.refresh(user)
        logger.info(f"User created: {user.id}")
        return user

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        with self.store_errors("get_user_by_id"):
            return self.db.query(User).filter(User.id == user_id).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self.store_errors("get_user_by_email"):
            return self.db.query(User).filter(User.email == email).first()

    def update_user(self, user_id: str, email: Optional[str] = None, name: Optional[str] = None) -> Optional[User]:
        """Update the given fields. Returns None if the user does not exist."""
        with self.store_errors("update_user"):
            user = self.db.query(User).filter(User.id == user_id).first()
            if user is None:
                return None
            if email is not None:
                user.email = email
            if name is not None:
                user.name = name
            user.updated_at = datetime.utcnow()
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                raise EmailAlreadyExistsError()
            self.db.refresh(user)
            return user

    def delete_user(self, user_id: str) -> bool:
        """Delete a user and, by cascade, their questions and answers."""
        with self.store_errors("delete_user"):
            user = self.db.query(User).filter(User.id == user_id).first()
            if user is None:
                return False
            self.db.delete(user)
            self.db.commit()
        logger.info(f"User deleted: {user_id}")
        return True

    def get_users(self, page: int = 1, limit: int = 10) -> Tuple[List[User], int]:
        """Return one page of users (newest first) and the total count."""
        offset = (page - 1) * limit
        with self.store_errors("get_users"):
            total = self.db.query(User).count()
            users = (
                self.db.query(User)
                .order_by(User.created_at.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
        return users, total

    def get_user_count(self) -> int:
        with self.store_errors("get_user_count"):
            return self.db.query(User).count()
