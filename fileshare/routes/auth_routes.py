"""Authentication API routes."""

from fastapi import APIRouter, Depends, status

from fileshare.auth import get_current_user
from fileshare.config import API_PREFIX
from fileshare.repositories.user_repository import User
from fileshare.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserListResponse,
    UserResponse,
)
from fileshare.service_locator import ServiceContainer, get_services

router = APIRouter(prefix=f"{API_PREFIX}/auth", tags=["Authentication"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, services: ServiceContainer = Depends(get_services)):
    """
    Register a new user account.

    Parameters:
        - name: Display name
        - email: Email address (unique, case-insensitive)
        - password: User password (will be hashed before storage)

    Returns:
        - token: Bearer credential for subsequent requests
        - user: id, name and email of the created user

    Raises:
        - 400: Email already registered
        - 422: Invalid request body
    """
    token, user = services.auth_service.register_user(request.name, request.email, request.password)
    return AuthResponse(token=token, user=UserResponse.from_user(user))


@router.post("/login", response_model=AuthResponse)
async def login(request: LoginRequest, services: ServiceContainer = Depends(get_services)):
    """
    Authenticate a user and issue a new bearer credential.

    Raises:
        - 401: Invalid email or password
    """
    token, user = services.auth_service.login_user(request.email, request.password)
    return AuthResponse(token=token, user=UserResponse.from_user(user))


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    """
    Return the user identified by the presented credential.
    """
    return UserResponse.from_user(current_user)


@router.get("/users", response_model=UserListResponse)
async def list_users(
    current_user: User = Depends(get_current_user),
    services: ServiceContainer = Depends(get_services),
):
    """
    List other registered users, for choosing who to share a file with.
    """
    users = services.auth_service.list_users(exclude_user_id=current_user.user_id)
    return UserListResponse(users=[UserResponse.from_user(user) for user in users])
