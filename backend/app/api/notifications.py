"""
Notification API endpoints (authenticated)

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, Depends, Query

from app.core.auth import TokenUser, get_current_user, require_admin
from app.core.responses import success_response
from app.services.notification_service import NotificationService

router = APIRouter()


def get_notification_service() -> NotificationService:
    return NotificationService()


@router.get("")
async def list_notifications(
    limit: int = Query(50, ge=1, le=200),
    skip: int = Query(0, ge=0),
    unread_only: bool = Query(False),
    current_user: TokenUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Notifications addressed to the caller, newest first, each with is_read"""
    return success_response(service.list_for_user(current_user, limit=limit, skip=skip, unread_only=unread_only))


@router.get("/unread-count")
async def unread_count(
    current_user: TokenUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    return success_response({"count": service.unread_count(current_user)})


@router.put("/read-all")
async def mark_all_read(
    current_user: TokenUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    marked = service.mark_all_read(current_user)
    return success_response({"marked": marked}, "All notifications marked as read")


@router.delete("/cleanup", dependencies=[Depends(require_admin)])
async def cleanup_notifications(
    days: int = Query(30, ge=1),
    service: NotificationService = Depends(get_notification_service),
):
    removed = service.delete_old(days)
    return success_response({"deleted": removed}, f"Deleted notifications older than {days} days")


@router.put("/{notification_id}/read")
async def mark_read(
    notification_id: int,
    current_user: TokenUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    service.mark_read(notification_id, current_user)
    return success_response(message="Notification marked as read")


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    current_user: TokenUser = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    service.delete(notification_id, current_user)
    return success_response(message="Notification deleted")
