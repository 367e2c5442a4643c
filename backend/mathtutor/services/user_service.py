import logging
import math
from typing import Any, Dict, Optional

from mathtutor.exceptions import EmailAlreadyExistsError, UserNotFoundError
from mathtutor.models.models import User
from mathtutor.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    """User account management."""

    def __init__(self, users: UserRepository):
        self.users = users

    def create_user(self, email: str, name: str) -> User:
        """Create a user. Raises EmailAlreadyExistsError if the email is taken."""
        if self.users.get_user_by_email(email) is not None:
            raise EmailAlreadyExistsError()
        return self.users.create_user(email, name)

    def get_user_by_id(self, user_id: str) -> User:
        user = self.users.get_user_by_id(user_id)
        if user is None:
            raise UserNotFoundError("The specified user does not exist")
        return user

    def get_user_by_email(self, email: str) -> User:
        user = self.users.get_user_by_email(email)
        if user is None:
            raise UserNotFoundError("No user found with this email")
        return user

    def update_user(self, user_id: str, email: Optional[str] = None, name: Optional[str] = None) -> User:
        if email is not None:
            existing = self.users.get_user_by_email(email)
            if existing is not None and existing.id != user_id:
                raise EmailAlreadyExistsError()

        user = self.users.update_user(user_id, email=email, name=name)
        if user is None:
            raise UserNotFoundError("The specified user does not exist")
        logger.info(f"User updated: {user_id}")
        return user

    def delete_user(self, user_id: str) -> None:
        """Delete a user along with their questions and answers."""
        if not self.users.delete_user(user_id):
            raise UserNotFoundError("The specified user does not exist")

    def get_users(self, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        users, total = self.users.get_users(page, limit)
        return {
            "users": users,
            "total_count": total,
            "current_page": page,
            "total_pages": math.ceil(total / limit) if limit else 0,
        }
