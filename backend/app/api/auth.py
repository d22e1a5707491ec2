"""
Authentication API endpoints
- Registration and login (JWT bearer tokens)
- Current user profile and password change

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, Depends, status

from app.core.auth import TokenUser, get_current_user
from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.core.responses import success_response
from app.domain.user import LoginRequest, PasswordChange, UserRegister
from app.services.user_service import UserService

router = APIRouter()


def get_user_service() -> UserService:
    return UserService()


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(payload: UserRegister, service: UserService = Depends(get_user_service)):
    """Create a customer account and return it with a token"""
    result = service.register(payload)
    return success_response(result, "Registration successful")


@router.post("/login", dependencies=[Depends(rate_limit(settings.RATE_LIMIT_LOGIN, 60))])
async def login(payload: LoginRequest, service: UserService = Depends(get_user_service)):
    result = service.login(payload)
    return success_response(result, "Login successful")


@router.get("/me")
async def me(
    current_user: TokenUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return success_response(service.get_user(current_user.id))


@router.put("/change-password")
async def change_password(
    payload: PasswordChange,
    current_user: TokenUser = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    service.change_password(current_user.id, payload)
    return success_response(message="Password changed successfully")
