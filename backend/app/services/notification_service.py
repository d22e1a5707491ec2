"""
Notification Service - staff notifications for order events

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Dict, List, Optional, Any

from app.core.auth import TokenUser
from app.core.exceptions import NotFoundError
from app.domain.notification import (
    Notification, NotificationCreate, Recipient, default_recipients, format_vnd,
)
from app.domain.order import Order
from app.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)

ORDER_EVENT_TITLES = {
    "order_updated": "Đơn hàng cập nhật",
    "order_cancelled": "Đơn hàng đã hủy",
    "order_shipped": "Đơn hàng đang giao",
    "order_delivered": "Đơn hàng đã giao",
}


def order_display_number(order_number: Optional[str], order_id: Any) -> str:
    """The order number, or the last 8 characters of the id upper-cased"""
    if order_number:
        return order_number
    return str(order_id)[-8:].upper()


class NotificationService:
    """Creates and reads notifications"""

    def __init__(self, repo: Optional[NotificationRepository] = None):
        self.repo = repo or NotificationRepository()

    def create_notification(self, payload: NotificationCreate) -> Notification:
        notification = self.repo.create(Notification(**payload.model_dump()))
        logger.info(f"Notification created: {notification.id} - {notification.type}")
        return notification

    def create_order_notification(self, order: Order) -> Notification:
        number = order_display_number(order.order_number, order.id)
        return self.create_notification(NotificationCreate(
            type="order_created",
            title="Đơn hàng mới",
            message=f"Đơn hàng {number} - {order.item_count} sản phẩm - {format_vnd(order.total)}",
            data={
                "order_id": order.id,
                "order_number": number,
                "total": float(order.total),
                "item_count": order.item_count,
                "user_id": order.user_id,
                "is_guest": order.is_guest,
            },
            recipients=default_recipients(),
        ))

    def create_order_event(self, order: Order, event_type: str, note: Optional[str] = None) -> Notification:
        """Status change notification; the owner is notified along with staff"""
        number = order_display_number(order.order_number, order.id)
        message = f"Đơn hàng {number} - {order.status}"
        if note:
            message = f"{message} - {note}"

        recipients: List[Recipient] = default_recipients()
        if order.user_id is not None:
            recipients.append(Recipient(user_id=order.user_id))

        return self.create_notification(NotificationCreate(
            type=event_type,
            title=ORDER_EVENT_TITLES.get(event_type, "Đơn hàng"),
            message=message,
            data={"order_id": order.id, "order_number": number, "status": order.status},
            recipients=recipients,
        ))

    def list_for_user(self, user: TokenUser, limit: int = 50, skip: int = 0,
                      unread_only: bool = False) -> Dict:
        notifications, total = self.repo.find_for_user(
            user.id, user.role, user.is_staff,
            unread_only=unread_only, limit=limit, skip=skip,
        )
        unread_count = self.repo.count_unread(user.id, user.role, user.is_staff)
        return {"notifications": notifications, "total": total, "unread_count": unread_count}

    def unread_count(self, user: TokenUser) -> int:
        return self.repo.count_unread(user.id, user.role, user.is_staff)

    def mark_read(self, notification_id: int, user: TokenUser) -> None:
        if not self.repo.exists(notification_id):
            raise NotFoundError("Notification", notification_id)
        self.repo.mark_read(notification_id, user.id)

    def mark_all_read(self, user: TokenUser) -> int:
        return self.repo.mark_all_read(user.id, user.role, user.is_staff)

    def delete(self, notification_id: int, user: TokenUser) -> None:
        """Admins delete any notification; everyone else only those addressed to them"""
        if user.is_admin:
            deleted = self.repo.delete(notification_id)
        else:
            deleted = self.repo.delete_visible(notification_id, user.id, user.role, user.is_staff)
        if not deleted:
            raise NotFoundError("Notification", notification_id)
        logger.info(f"Notification {notification_id} deleted by user {user.id}")

    def delete_old(self, days: int = 30) -> int:
        removed = self.repo.delete_older_than(days)
        logger.info(f"Deleted {removed} notifications older than {days} days")
        return removed
