"""
Order Service - checkout, cancellation and status workflow

Checkout resolves prices from the catalog, applies an optional voucher,
writes the order with its stock decrements in one transaction, and only
then consumes the voucher and notifies staff.

Author: TM3
Date: 2025-10-17
"""
import logging
from collections import OrderedDict
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from app.core.auth import TokenUser
from app.core.exceptions import (
    AppError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.domain.order import (
    Order, OrderCreate, OrderStatusUpdate, OrderStatusHistory,
    can_transition, generate_order_number,
)
from app.repositories.order_repository import OrderRepository
from app.repositories.product_repository import ProductRepository
from app.services.notification_service import NotificationService
from app.services.voucher_service import VoucherService

logger = logging.getLogger(__name__)

MAX_ORDER_NUMBER_ATTEMPTS = 5

STATUS_EVENTS = {
    "shipped": "order_shipped",
    "delivered": "order_delivered",
    "cancelled": "order_cancelled",
}


class OrderService:
    """Business logic for storefront orders"""

    def __init__(
        self,
        orders: Optional[OrderRepository] = None,
        products: Optional[ProductRepository] = None,
        vouchers: Optional[VoucherService] = None,
        notifications: Optional[NotificationService] = None,
    ):
        self.orders = orders or OrderRepository()
        self.products = products or ProductRepository()
        self.vouchers = vouchers or VoucherService()
        self.notifications = notifications or NotificationService()

    def _new_order_number(self) -> str:
        for _ in range(MAX_ORDER_NUMBER_ATTEMPTS):
            number = generate_order_number()
            if not self.orders.order_number_exists(number):
                return number
        raise AppError("Could not allocate an order number, please retry", 500)

    def create_order(self, payload: OrderCreate, user: Optional[TokenUser] = None) -> Order:
        """
        Place an order for a customer or a guest.

        Raises:
            ValidationError: missing guest contact, empty cart, unavailable product,
                insufficient stock or an unusable voucher
            NotFoundError: unknown product or voucher
        """
        if user is None and not (payload.guest_email and payload.guest_name):
            raise ValidationError("Guest email and name are required")
        if not payload.items:
            raise ValidationError("Order must contain at least one item")

        # Merge repeated lines for the same product
        quantities: "OrderedDict[int, int]" = OrderedDict()
        for line in payload.items:
            quantities[line.product_id] = quantities.get(line.product_id, 0) + line.quantity

        products = self.products.find_by_ids(list(quantities))
        items = []
        stock_updates = {}
        subtotal = Decimal("0")

        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            if not product:
                raise NotFoundError("Product", product_id)
            if product.status != "active":
                raise ValidationError(f"Product {product.name} is not available")
            if not product.can_fulfil(quantity):
                raise ValidationError(
                    f"Insufficient stock for {product.name}: {product.quantity} available"
                )

            unit_price = product.final_price()
            line_total = unit_price * quantity
            subtotal += line_total
            items.append({
                "product_id": product.id,
                "product_name": product.name,
                "sku": product.sku,
                "quantity": quantity,
                "unit_price": unit_price,
                "total": line_total,
            })
            if product.track_quantity:
                stock_updates[product.id] = quantity

        user_id = user.id if user else None
        discount = Decimal("0")
        voucher = None
        if payload.voucher_code:
            preview = self.vouchers.preview(payload.voucher_code, subtotal, user_id)
            voucher = preview["voucher"]
            discount = preview["discount"]

        total = max(subtotal - discount + payload.shipping_fee, Decimal("0"))

        order_id = self.orders.create(
            {
                "order_number": self._new_order_number(),
                "user_id": user_id,
                "guest_email": payload.guest_email if user is None else None,
                "guest_name": payload.guest_name if user is None else None,
                "phone": payload.phone,
                "shipping_address": payload.shipping_address,
                "subtotal": subtotal,
                "discount_amount": discount,
                "shipping_fee": payload.shipping_fee,
                "total": total,
                "voucher_code": voucher.code if voucher else None,
                "payment_method": payload.payment_method,
                "notes": payload.notes,
            },
            items,
            stock_updates,
            changed_by=user_id,
        )
        order = self.orders.find_by_id(order_id)
        logger.info(f"Order {order.order_number} placed ({'guest' if user is None else f'user {user_id}'})")

        if voucher:
            try:
                self.vouchers.increment_usage(voucher.id, user_id)
            except Exception as e:
                logger.warning(f"Order {order.order_number}: voucher usage not recorded: {e}")

        try:
            self.notifications.create_order_notification(order)
        except Exception as e:
            logger.warning(f"Order {order.order_number}: notification not created: {e}")

        return order

    # =========================================================================
    # Reads
    # =========================================================================

    def get_order(self, order_id: int, user: TokenUser) -> Order:
        order = self.orders.find_by_id(order_id)
        if not order:
            raise NotFoundError("Order", order_id)
        if not user.is_staff and order.user_id != user.id:
            raise PermissionDeniedError("You do not have access to this order")
        return order

    def list_my_orders(self, user: TokenUser, status: Optional[str],
                       limit: int, offset: int) -> Tuple[List[Order], int]:
        return self.orders.find_all(user_id=user.id, status=status, limit=limit, offset=offset)

    def list_all_orders(
        self,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        search: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Order], int]:
        return self.orders.find_all(
            status=status, payment_status=payment_status, search=search,
            date_from=date_from, date_to=date_to, limit=limit, offset=offset,
        )

    def tracking(self, order_id: int, user: TokenUser) -> dict:
        order = self.get_order(order_id, user)
        return {
            "order_number": order.order_number,
            "status": order.status,
            "payment_status": order.payment_status,
            "history": [entry.model_dump() for entry in order.history],
        }

    def get_history(self, order_id: int) -> List[OrderStatusHistory]:
        if not self.orders.find_by_id(order_id):
            raise NotFoundError("Order", order_id)
        return self.orders.get_history(order_id)

    # =========================================================================
    # Writes
    # =========================================================================

    def _notify(self, order: Order, event_type: str, note: Optional[str] = None):
        try:
            self.notifications.create_order_event(order, event_type, note)
        except Exception as e:
            logger.warning(f"Order {order.order_number}: {event_type} notification not created: {e}")

    def cancel_order(self, order_id: int, user: TokenUser, reason: Optional[str] = None) -> Order:
        order = self.get_order(order_id, user)
        if not order.is_cancellable:
            raise ValidationError(f"Order cannot be cancelled in status {order.status}")

        applied = self.orders.update_status(
            order_id, "cancelled",
            note=reason or "Cancelled",
            changed_by=user.id,
            restore_stock=True,
            cancel_reason=reason,
            expected_status=order.status,
        )
        if not applied:
            raise ConflictError("Order status changed while cancelling, please reload and retry")
        order = self.orders.find_by_id(order_id)
        logger.info(f"Order {order.order_number} cancelled by user {user.id}")
        self._notify(order, "order_cancelled", reason)
        return order

    def update_status(self, order_id: int, payload: OrderStatusUpdate, user: TokenUser) -> Order:
        order = self.orders.find_by_id(order_id)
        if not order:
            raise NotFoundError("Order", order_id)
        if not can_transition(order.status, payload.status):
            raise ValidationError(f"Cannot change order status from {order.status} to {payload.status}")

        applied = self.orders.update_status(
            order_id, payload.status,
            note=payload.note,
            changed_by=user.id,
            payment_status=payload.payment_status,
            restore_stock=payload.status == "cancelled",
            cancel_reason=payload.note if payload.status == "cancelled" else None,
            expected_status=order.status,
        )
        if not applied:
            raise ConflictError(f"Order status changed from {order.status} meanwhile, please reload and retry")
        updated = self.orders.find_by_id(order_id)
        logger.info(f"Order {updated.order_number}: {order.status} -> {payload.status}")
        self._notify(updated, STATUS_EVENTS.get(payload.status, "order_updated"), payload.note)
        return updated

    def delete_order(self, order_id: int) -> None:
        if not self.orders.delete(order_id):
            raise NotFoundError("Order", order_id)
        logger.info(f"Deleted order {order_id}")
