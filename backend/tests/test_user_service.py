"""
Tests for user account management.
"""

import pytest

from mathtutor.exceptions import EmailAlreadyExistsError, UserNotFoundError
from mathtutor.services.user_service import UserService


@pytest.fixture
def user_service(user_repo):
    return UserService(user_repo)


class TestUserService:

    @pytest.mark.unit
    def test_create_user(self, user_service):
        user = user_service.create_user("dana@example.com", "Dana")
        assert user.email == "dana@example.com"
        assert user_service.get_user_by_id(user.id).name == "Dana"

    @pytest.mark.unit
    def test_create_user_duplicate_email(self, user_service, test_user):
        with pytest.raises(EmailAlreadyExistsError) as exc_info:
            user_service.create_user(test_user.email, "Alice Again")
        assert exc_info.value.status_code == 409

    @pytest.mark.unit
    def test_lookup_errors(self, user_service):
        with pytest.raises(UserNotFoundError) as by_id:
            user_service.get_user_by_id("missing-id")
        with pytest.raises(UserNotFoundError) as by_email:
            user_service.get_user_by_email("nobody@example.com")

        assert by_id.value.message == "The specified user does not exist"
        assert by_email.value.message == "No user found with this email"

    @pytest.mark.unit
    def test_update_keeps_own_email(self, user_service, test_user):
        updated = user_service.update_user(test_user.id, email=test_user.email, name="Alice J.")
        assert updated.name == "Alice J."

    @pytest.mark.unit
    def test_update_rejects_other_users_email(self, user_service, test_user, other_user):
        with pytest.raises(EmailAlreadyExistsError):
            user_service.update_user(other_user.id, email=test_user.email)

    @pytest.mark.unit
    def test_update_missing_user(self, user_service):
        with pytest.raises(UserNotFoundError):
            user_service.update_user("missing-id", name="Ghost")

    @pytest.mark.unit
    def test_delete_user(self, user_service, test_user):
        user_id = test_user.id
        user_service.delete_user(user_id)
        with pytest.raises(UserNotFoundError):
            user_service.delete_user(user_id)

    @pytest.mark.unit
    def test_get_users_page_metadata(self, user_service):
        for n in range(5):
            user_service.create_user(f"user{n}@example.com", f"User {n}")

        page = user_service.get_users(page=2, limit=2)
        assert page["total_count"] == 5
        assert page["current_page"] == 2
        assert page["total_pages"] == 3
        assert len(page["users"]) == 2
