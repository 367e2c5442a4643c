from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from mathtutor.dependencies.services import get_user_service
from mathtutor.schemas.common import ApiResponse
from mathtutor.services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["users"])


class CreateUserRequest(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class UpdateUserRequest(BaseModel):
    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def at_least_one_field(self):
        if self.email is None and self.name is None:
            raise ValueError("At least one of email or name must be provided")
        return self


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: str
    created_at: datetime
    updated_at: datetime


class UsersPage(BaseModel):
    users: List[UserResponse]
    total_count: int
    current_page: int
    total_pages: int


@router.post("", response_model=ApiResponse[UserResponse], response_model_exclude_none=True, status_code=status.HTTP_201_CREATED)
def create_user(request: CreateUserRequest, service: UserService = Depends(get_user_service)):
    user = service.create_user(request.email, request.name)
    return ApiResponse(data=UserResponse.model_validate(user), message="User created successfully")


@router.get("", response_model=ApiResponse[UsersPage], response_model_exclude_none=True)
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    service: UserService = Depends(get_user_service),
):
    result = service.get_users(page, limit)
    return ApiResponse(data=UsersPage(
        users=[UserResponse.model_validate(u) for u in result["users"]],
        total_count=result["total_count"],
        current_page=result["current_page"],
        total_pages=result["total_pages"],
    ))


@router.get("/search/email", response_model=ApiResponse[UserResponse], response_model_exclude_none=True)
def get_user_by_email(email: str = Query(..., min_length=3, max_length=255), service: UserService = Depends(get_user_service)):
    user = service.get_user_by_email(email)
    return ApiResponse(data=UserResponse.model_validate(user))


@router.get("/{user_id}", response_model=ApiResponse[UserResponse], response_model_exclude_none=True)
def get_user(user_id: UUID, service: UserService = Depends(get_user_service)):
    user = service.get_user_by_id(str(user_id))
    return ApiResponse(data=UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=ApiResponse[UserResponse], response_model_exclude_none=True)
def update_user(user_id: UUID, request: UpdateUserRequest, service: UserService = Depends(get_user_service)):
    user = service.update_user(str(user_id), email=request.email, name=request.name)
    return ApiResponse(data=UserResponse.model_validate(user), message="User updated successfully")


@router.delete("/{user_id}", response_model=ApiResponse, response_model_exclude_none=True)
def delete_user(user_id: UUID, service: UserService = Depends(get_user_service)):
    """Delete a user together with their questions and answers."""
    service.delete_user(str(user_id))
    return ApiResponse(message="User deleted successfully")
