"""Pydantic schemas for authentication endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserResponse(BaseModel):
    id: int
    email: str
    phone: str | None = None
    role: str
    created_at: datetime

    model_config = {"from_attributes": True}


class RegisterRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255)
    phone: str | None = Field(default=None, max_length=20)
    password: str = Field(min_length=1)


class LoginRequest(BaseModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserResponse


class ProfileResponse(BaseModel):
    user: UserResponse


class ForgotPasswordRequest(BaseModel):
    email: str = Field(min_length=1)


class ForgotPasswordResponse(BaseModel):
    message: str
    token: str | None = None
    reset_url: str | None = None


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(min_length=1)
    new_password: str = Field(min_length=1, alias="newPassword")


class MessageResponse(BaseModel):
    message: str
