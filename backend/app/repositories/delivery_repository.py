"""
Delivery Repository - Data Access Layer for delivery orders

Author: TM3
Date: 2025-10-17
"""
from datetime import datetime
from typing import List, Optional, Tuple

from app.core.database import transaction
from app.domain.delivery import DeliveryOrder, DeliveryItem

DELIVERY_COLUMNS = """
    id, order_code, buyer_id, buyer_name, delivery_date,
    is_invoice, is_debt, is_shipped, proof_image, note, status,
    created_by, created_at, updated_at
"""


class DeliveryRepository:
    """All SQL queries for delivery orders are centralized here."""

    @staticmethod
    def _load_items(cursor, deliveries: List[DeliveryOrder]) -> None:
        if not deliveries:
            return
        by_id = {delivery.id: delivery for delivery in deliveries}
        cursor.execute("""
            SELECT id, delivery_order_id, product_id, name, quantity, price
            FROM delivery_order_items
            WHERE delivery_order_id = ANY(%s)
            ORDER BY id
        """, (list(by_id),))
        for row in cursor.fetchall():
            data = dict(row)
            delivery_id = data.pop('delivery_order_id')
            by_id[delivery_id].items.append(DeliveryItem(**data))

    @staticmethod
    def _write_items(cursor, delivery_id: int, items: List[DeliveryItem]) -> None:
        for item in items:
            if item.id is None:
                cursor.execute("""
                    INSERT INTO delivery_order_items (delivery_order_id, product_id, name, quantity, price, total)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    RETURNING id
                """, (delivery_id, item.product_id, item.name, item.quantity, item.price, item.total))
                item.id = cursor.fetchone()['id']
            else:
                cursor.execute("""
                    UPDATE delivery_order_items
                    SET product_id = %s, name = %s, quantity = %s, price = %s, total = %s
                    WHERE id = %s AND delivery_order_id = %s
                """, (item.product_id, item.name, item.quantity, item.price, item.total,
                      item.id, delivery_id))

    def _find_one(self, where: str, value) -> Optional[DeliveryOrder]:
        with transaction() as cursor:
            cursor.execute(f"SELECT {DELIVERY_COLUMNS} FROM delivery_orders WHERE {where}", (value,))
            row = cursor.fetchone()
            if not row:
                return None
            delivery = DeliveryOrder(**row)
            self._load_items(cursor, [delivery])
        return delivery

    def find_by_id(self, delivery_id: int) -> Optional[DeliveryOrder]:
        return self._find_one("id = %s", delivery_id)

    def find_by_code(self, order_code: str) -> Optional[DeliveryOrder]:
        return self._find_one("order_code = %s", order_code.strip().upper())

    def code_exists(self, order_code: str) -> bool:
        with transaction() as cursor:
            cursor.execute(
                "SELECT 1 FROM delivery_orders WHERE order_code = %s",
                (order_code.strip().upper(),)
            )
            return cursor.fetchone() is not None

    def find_all(
        self,
        search: Optional[str] = None,
        buyer_name: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        is_shipped: Optional[bool] = None,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[DeliveryOrder], int]:
        """
        Find delivery orders with filters, newest delivery date first

        Returns:
            Tuple of (list of delivery orders, total count)
        """
        conditions = []
        params: list = []

        if search:
            conditions.append("(order_code ILIKE %s OR buyer_name ILIKE %s)")
            params.extend([f"%{search}%", f"%{search}%"])
        if buyer_name:
            conditions.append("buyer_name ILIKE %s")
            params.append(f"%{buyer_name}%")
        if date_from:
            conditions.append("delivery_date >= %s")
            params.append(date_from)
        if date_to:
            conditions.append("delivery_date <= %s")
            params.append(date_to)
        if is_shipped is not None:
            conditions.append("is_shipped = %s")
            params.append(is_shipped)
        if status:
            conditions.append("status = %s")
            params.append(status)

        where_clause = " AND ".join(conditions) if conditions else "1=1"

        with transaction() as cursor:
            cursor.execute(f"SELECT COUNT(*) AS total FROM delivery_orders WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {DELIVERY_COLUMNS}
                FROM delivery_orders
                WHERE {where_clause}
                ORDER BY delivery_date DESC, id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            deliveries = [DeliveryOrder(**row) for row in cursor.fetchall()]
            self._load_items(cursor, deliveries)

        return deliveries, total

    def create(self, delivery: DeliveryOrder) -> int:
        with transaction() as cursor:
            cursor.execute("""
                INSERT INTO delivery_orders (
                    order_code, buyer_id, buyer_name, delivery_date, amount,
                    is_invoice, is_debt, is_shipped, proof_image, note, status,
                    created_by, created_at, updated_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, NOW(), NOW())
                RETURNING id
            """, (
                delivery.order_code, delivery.buyer_id, delivery.buyer_name, delivery.delivery_date,
                delivery.amount, delivery.is_invoice, delivery.is_debt, delivery.is_shipped,
                delivery.proof_image, delivery.note, delivery.status, delivery.created_by,
            ))
            delivery_id = cursor.fetchone()['id']
            self._write_items(cursor, delivery_id, delivery.items)
        delivery.id = delivery_id
        return delivery_id

    def save(self, delivery: DeliveryOrder) -> None:
        with transaction() as cursor:
            cursor.execute("""
                UPDATE delivery_orders
                SET buyer_id = %s, buyer_name = %s, delivery_date = %s, amount = %s,
                    is_invoice = %s, is_debt = %s, is_shipped = %s, proof_image = %s,
                    note = %s, status = %s, updated_at = NOW()
                WHERE id = %s
            """, (
                delivery.buyer_id, delivery.buyer_name, delivery.delivery_date, delivery.amount,
                delivery.is_invoice, delivery.is_debt, delivery.is_shipped, delivery.proof_image,
                delivery.note, delivery.status, delivery.id,
            ))
            self._write_items(cursor, delivery.id, delivery.items)

    def set_proof(self, delivery_id: int, url: str) -> bool:
        with transaction() as cursor:
            cursor.execute(
                "UPDATE delivery_orders SET proof_image = %s, updated_at = NOW() WHERE id = %s",
                (url, delivery_id)
            )
            return cursor.rowcount > 0

    def delete(self, delivery_id: int) -> bool:
        with transaction() as cursor:
            cursor.execute("DELETE FROM delivery_orders WHERE id = %s", (delivery_id,))
            return cursor.rowcount > 0
