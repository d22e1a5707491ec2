"""
Order Repository - Data Access Layer for Orders

Handles all database queries for orders and returns Order domain models.

Author: TM3
Date: 2025-10-17
"""
from datetime import datetime
from typing import List, Optional, Tuple, Dict, Any

from psycopg2.extras import Json

from app.domain.order import Order, OrderItem, OrderStatusHistory
from app.core.database import transaction
from app.core.exceptions import ValidationError

ORDER_COLUMNS = """
    o.id, o.order_number, o.user_id, o.guest_email, o.guest_name, o.phone,
    o.shipping_address, o.subtotal, o.discount_amount, o.shipping_fee, o.total,
    o.voucher_code, o.status, o.payment_method, o.payment_status, o.notes,
    o.cancelled_at, o.cancel_reason, o.created_at, o.updated_at
"""


class OrderRepository:
    """
    Repository for Order data access

    All SQL queries for orders are centralized here.
    Returns Order domain models with their items and status history.
    """

    @staticmethod
    def _load_children(cursor, orders: List[Order], with_history: bool = True) -> None:
        if not orders:
            return
        by_id = {order.id: order for order in orders}
        ids = list(by_id)

        cursor.execute("""
            SELECT id, order_id, product_id, product_name, sku, quantity, unit_price, total
            FROM order_items
            WHERE order_id = ANY(%s)
            ORDER BY id
        """, (ids,))
        for row in cursor.fetchall():
            by_id[row['order_id']].items.append(OrderItem(**row))

        if with_history:
            cursor.execute("""
                SELECT id, order_id, status, note, changed_by, created_at
                FROM order_status_history
                WHERE order_id = ANY(%s)
                ORDER BY created_at, id
            """, (ids,))
            for row in cursor.fetchall():
                by_id[row['order_id']].history.append(OrderStatusHistory(**row))

    def find_by_id(self, order_id: int) -> Optional[Order]:
        """
        Find order by ID with items and status history

        Returns:
            Order with all related data or None if not found
        """
        with transaction() as cursor:
            cursor.execute(f"SELECT {ORDER_COLUMNS} FROM orders o WHERE o.id = %s", (order_id,))
            row = cursor.fetchone()
            if not row:
                return None
            order = Order(**row)
            self._load_children(cursor, [order])
        return order

    def find_by_ids(self, order_ids: List[int]) -> Dict[int, Order]:
        """Orders keyed by id (items loaded, no history); missing ids are simply absent"""
        if not order_ids:
            return {}
        with transaction() as cursor:
            cursor.execute(
                f"SELECT {ORDER_COLUMNS} FROM orders o WHERE o.id = ANY(%s)",
                (list(order_ids),)
            )
            orders = [Order(**row) for row in cursor.fetchall()]
            self._load_children(cursor, orders, with_history=False)
        return {order.id: order for order in orders}

    def order_number_exists(self, order_number: str) -> bool:
        with transaction() as cursor:
            cursor.execute("SELECT 1 FROM orders WHERE order_number = %s", (order_number,))
            return cursor.fetchone() is not None

    def find_all(
        self,
        user_id: Optional[int] = None,
        status: Optional[str] = None,
        payment_status: Optional[str] = None,
        search: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Order], int]:
        """
        Find orders with filters

        Returns:
            Tuple of (list of orders, total count)
        """
        conditions = []
        params: list = []

        if user_id is not None:
            conditions.append("o.user_id = %s")
            params.append(user_id)
        if status:
            conditions.append("o.status = %s")
            params.append(status)
        if payment_status:
            conditions.append("o.payment_status = %s")
            params.append(payment_status)
        if search:
            conditions.append("(o.order_number ILIKE %s OR o.guest_email ILIKE %s OR o.guest_name ILIKE %s)")
            params.extend([f"%{search}%"] * 3)
        if date_from:
            conditions.append("o.created_at >= %s")
            params.append(date_from)
        if date_to:
            conditions.append("o.created_at <= %s")
            params.append(date_to)

        where_clause = " AND ".join(conditions) if conditions else "1=1"

        with transaction() as cursor:
            cursor.execute(f"SELECT COUNT(*) AS total FROM orders o WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {ORDER_COLUMNS}
                FROM orders o
                WHERE {where_clause}
                ORDER BY o.created_at DESC, o.id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            orders = [Order(**row) for row in cursor.fetchall()]
            self._load_children(cursor, orders, with_history=False)

        return orders, total

    def create(self, order: Dict[str, Any], items: List[Dict[str, Any]],
               stock_updates: Dict[int, int], changed_by: Optional[int] = None) -> int:
        """
        Insert order, items and first history row, and decrement stock, in one transaction.

        Args:
            order: Column values for the orders row
            items: Column values for each order_items row
            stock_updates: {product_id: quantity to subtract} for tracked products

        Returns:
            New order ID
        """
        with transaction() as cursor:
            cursor.execute("""
                INSERT INTO orders (
                    order_number, user_id, guest_email, guest_name, phone, shipping_address,
                    subtotal, discount_amount, shipping_fee, total, voucher_code,
                    status, payment_method, payment_status, notes, created_at, updated_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, 'pending', %s, 'pending', %s, NOW(), NOW())
                RETURNING id
            """, (
                order['order_number'], order.get('user_id'), order.get('guest_email'),
                order.get('guest_name'), order.get('phone'),
                Json(order['shipping_address']) if order.get('shipping_address') is not None else None,
                order['subtotal'], order['discount_amount'], order['shipping_fee'], order['total'],
                order.get('voucher_code'), order.get('payment_method', 'cod'), order.get('notes'),
            ))
            order_id = cursor.fetchone()['id']

            for item in items:
                cursor.execute("""
                    INSERT INTO order_items (order_id, product_id, product_name, sku, quantity, unit_price, total)
                    VALUES (%s, %s, %s, %s, %s, %s, %s)
                """, (
                    order_id, item['product_id'], item['product_name'], item.get('sku'),
                    item['quantity'], item['unit_price'], item['total'],
                ))

            for product_id, quantity in stock_updates.items():
                cursor.execute("""
                    UPDATE products
                    SET quantity = quantity - %s, updated_at = NOW()
                    WHERE id = %s AND track_quantity
                      AND (allow_backorder OR quantity >= %s)
                """, (quantity, product_id, quantity))
                if cursor.rowcount == 0:
                    # Raising inside the transaction discards the order rows
                    raise ValidationError(f"Insufficient stock for product {product_id}")

            cursor.execute("""
                INSERT INTO order_status_history (order_id, status, note, changed_by, created_at)
                VALUES (%s, 'pending', 'Order placed', %s, NOW())
            """, (order_id, changed_by))

        return order_id

    def update_status(
        self,
        order_id: int,
        status: str,
        note: Optional[str] = None,
        changed_by: Optional[int] = None,
        payment_status: Optional[str] = None,
        restore_stock: bool = False,
        cancel_reason: Optional[str] = None,
        expected_status: Optional[str] = None,
    ) -> bool:
        """
        Change status, append history and optionally give stock back (cancellation)

        With expected_status the row only changes while it still holds that
        status, so two racing requests cannot both apply (or both restore stock).

        Returns:
            False when no row matched (missing order or status already changed)
        """
        params = [status, payment_status, status, cancel_reason, order_id]
        status_guard = ""
        if expected_status is not None:
            status_guard = " AND status = %s"
            params.append(expected_status)

        with transaction() as cursor:
            cursor.execute(f"""
                UPDATE orders
                SET status = %s,
                    payment_status = COALESCE(%s, payment_status),
                    cancelled_at = CASE WHEN %s = 'cancelled' THEN NOW() ELSE cancelled_at END,
                    cancel_reason = COALESCE(%s, cancel_reason),
                    updated_at = NOW()
                WHERE id = %s{status_guard}
            """, params)
            if cursor.rowcount == 0:
                return False

            if restore_stock:
                cursor.execute("""
                    UPDATE products p
                    SET quantity = p.quantity + oi.quantity, updated_at = NOW()
                    FROM order_items oi
                    WHERE oi.order_id = %s AND oi.product_id = p.id AND p.track_quantity
                """, (order_id,))

            cursor.execute("""
                INSERT INTO order_status_history (order_id, status, note, changed_by, created_at)
                VALUES (%s, %s, %s, %s, NOW())
            """, (order_id, status, note, changed_by))
        return True

    def get_history(self, order_id: int) -> List[OrderStatusHistory]:
        with transaction() as cursor:
            cursor.execute("""
                SELECT id, order_id, status, note, changed_by, created_at
                FROM order_status_history
                WHERE order_id = %s
                ORDER BY created_at, id
            """, (order_id,))
            return [OrderStatusHistory(**row) for row in cursor.fetchall()]

    def delete(self, order_id: int) -> bool:
        with transaction() as cursor:
            cursor.execute("DELETE FROM orders WHERE id = %s", (order_id,))
            return cursor.rowcount > 0
