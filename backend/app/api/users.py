"""
User management API endpoints (admin only)

Author: TM3
Date: 2025-10-17
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.auth import get_user_service
from app.core.auth import TokenUser, require_admin
from app.core.responses import Pagination, paginated_response, success_response
from app.domain.user import UserCreate, UserUpdate
from app.services.user_service import UserService

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("")
async def list_users(
    search: Optional[str] = Query(None, description="Search by name or email"),
    role: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    service: UserService = Depends(get_user_service),
):
    pagination = Pagination.from_params(page, limit)
    users, total = service.list_users(search, role, pagination.limit, pagination.offset)
    return paginated_response(users, pagination, total)


@router.get("/stats")
async def user_stats(service: UserService = Depends(get_user_service)):
    """Totals by activity plus accounts created in the last 30 days"""
    return success_response(service.get_stats())


@router.get("/{user_id}")
async def get_user(user_id: int, service: UserService = Depends(get_user_service)):
    return success_response(service.get_user(user_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreate, service: UserService = Depends(get_user_service)):
    return success_response(service.create_user(payload), "User created")


@router.put("/{user_id}")
async def update_user(user_id: int, payload: UserUpdate, service: UserService = Depends(get_user_service)):
    return success_response(service.update_user(user_id, payload), "User updated")


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    current_user: TokenUser = Depends(require_admin),
    service: UserService = Depends(get_user_service),
):
    service.delete_user(user_id, current_user.id)
    return success_response(message="User deleted")
