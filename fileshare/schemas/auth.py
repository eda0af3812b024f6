"""Pydantic schemas for authentication endpoints."""

from typing import List

from pydantic import BaseModel, EmailStr, Field, field_validator

from common.constants import MAX_PASSWORD_BYTES, MIN_PASSWORD_LENGTH
from fileshare.repositories.user_repository import User


class RegisterRequest(BaseModel):
    """Request model for user registration."""
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return value


class LoginRequest(BaseModel):
    """Request model for user login."""
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class UserResponse(BaseModel):
    """Public view of a user; never carries the password hash."""
    id: str
    name: str
    email: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.user_id, name=user.name, email=user.email)


class AuthResponse(BaseModel):
    """Response model for registration and login."""
    token: str
    user: UserResponse


class UserListResponse(BaseModel):
    users: List[UserResponse]
