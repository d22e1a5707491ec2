"""
Activities API endpoints

Author: TM3
Date: 2025-10-17
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.core.auth import TokenUser, require_admin
from app.core.responses import Pagination, paginated_response, success_response
from app.domain.content import ActivityCreate, ActivityUpdate
from app.services.content_service import ActivityService

router = APIRouter()


def get_activity_service() -> ActivityService:
    return ActivityService()


@router.get("/admin/list", dependencies=[Depends(require_admin)])
async def admin_list_activities(
    published: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    service: ActivityService = Depends(get_activity_service),
):
    pagination = Pagination.from_params(page, limit)
    items, total = service.list_all(published, search, pagination.limit, pagination.offset)
    return paginated_response(items, pagination, total)


@router.get("/admin/{activity_id}", dependencies=[Depends(require_admin)])
async def admin_get_activity(activity_id: int, service: ActivityService = Depends(get_activity_service)):
    return success_response(service.get_activity(activity_id))


@router.get("")
async def list_activities(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    service: ActivityService = Depends(get_activity_service),
):
    """Published activities without their content body"""
    pagination = Pagination.from_params(page, limit)
    items, total = service.list_published(pagination.limit, pagination.offset)
    return paginated_response(items, pagination, total)


@router.get("/{activity_id}")
async def get_activity(activity_id: int, service: ActivityService = Depends(get_activity_service)):
    return success_response(service.get_activity(activity_id, published_only=True))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_activity(
    payload: ActivityCreate,
    current_user: TokenUser = Depends(require_admin),
    service: ActivityService = Depends(get_activity_service),
):
    return success_response(service.create_activity(payload, current_user.id), "Activity created")


@router.put("/{activity_id}", dependencies=[Depends(require_admin)])
async def update_activity(activity_id: int, payload: ActivityUpdate,
                          service: ActivityService = Depends(get_activity_service)):
    return success_response(service.update_activity(activity_id, payload), "Activity updated")


@router.patch("/{activity_id}/toggle", dependencies=[Depends(require_admin)])
async def toggle_activity(activity_id: int, service: ActivityService = Depends(get_activity_service)):
    activity = service.toggle(activity_id)
    return success_response(activity, "Activity published" if activity.published else "Activity hidden")


@router.delete("/{activity_id}", dependencies=[Depends(require_admin)])
async def delete_activity(activity_id: int, service: ActivityService = Depends(get_activity_service)):
    service.delete_activity(activity_id)
    return success_response(message="Activity deleted")
