"""Pydantic schemas for admin user management."""

from typing import Literal

from pydantic import BaseModel, Field

from docmarket.schemas.auth import UserResponse


class UserCreateRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    phone: str | None = Field(default=None, max_length=20)
    password: str = Field(min_length=1)
    role: Literal["user", "admin"] = "user"


class UserUpdateRequest(BaseModel):
    email: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=20)
    password: str | None = None
    role: Literal["user", "admin"] | None = None


class UserListResponse(BaseModel):
    users: list[UserResponse]


class UserEnvelope(BaseModel):
    user: UserResponse


class UserMutationResponse(BaseModel):
    message: str
    user: UserResponse
