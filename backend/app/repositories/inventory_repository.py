"""
Inventory Repository - Data Access Layer for warehouse stock

Author: TM3
Date: 2025-10-17
"""
from datetime import datetime
from typing import List, Optional, Tuple, Dict

from app.core.database import transaction, build_set_clause
from app.core.exceptions import NotFoundError, ValidationError
from app.domain.inventory import InventoryItem, InventoryHistory

ITEM_COLUMNS = """
    id, name, quantity, unit, net_weight, min_stock, price, location, category,
    created_at, updated_at
"""
HISTORY_COLUMNS = """
    id, inventory_id, item_name, type, amount, unit, partner, note, created_by, created_at
"""
WRITABLE = {"name", "quantity", "unit", "net_weight", "min_stock", "price", "location", "category"}


class InventoryRepository:
    """All SQL queries for inventory items and movements are centralized here."""

    def find_by_id(self, item_id: int) -> Optional[InventoryItem]:
        with transaction() as cursor:
            cursor.execute(f"SELECT {ITEM_COLUMNS} FROM inventory_items WHERE id = %s", (item_id,))
            row = cursor.fetchone()
        return InventoryItem(**row) if row else None

    def find_all(
        self,
        search: Optional[str] = None,
        location: Optional[str] = None,
        category: Optional[str] = None,
        low_stock: Optional[bool] = None,
        premium: Optional[bool] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[InventoryItem], int]:
        conditions = []
        params: list = []

        if search:
            conditions.append("name ILIKE %s")
            params.append(f"%{search}%")
        if location:
            conditions.append("location = %s")
            params.append(location)
        if category:
            conditions.append("category = %s")
            params.append(category)
        if low_stock:
            conditions.append("quantity < min_stock")
        if premium:
            conditions.append("category = 'Premium'")

        where_clause = " AND ".join(conditions) if conditions else "1=1"

        with transaction() as cursor:
            cursor.execute(f"SELECT COUNT(*) AS total FROM inventory_items WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {ITEM_COLUMNS}
                FROM inventory_items
                WHERE {where_clause}
                ORDER BY updated_at DESC, id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            rows = cursor.fetchall()

        return [InventoryItem(**row) for row in rows], total

    def get_stats(self) -> Dict:
        """
        Warehouse totals

        Returns:
            Dict with total_items, total_jars, total_value, total_weight_kg, low_stock
        """
        with transaction() as cursor:
            cursor.execute("""
                SELECT
                    COUNT(*) AS total_items,
                    COALESCE(SUM(quantity), 0) AS total_jars,
                    COALESCE(SUM(quantity * price), 0) AS total_value,
                    COALESCE(SUM(quantity * net_weight), 0) AS total_grams,
                    COUNT(*) FILTER (WHERE quantity < min_stock) AS low_stock
                FROM inventory_items
            """)
            row = cursor.fetchone()

        return {
            'total_items': row['total_items'],
            'total_jars': int(row['total_jars']),
            'total_value': float(row['total_value']),
            'total_weight_kg': round(float(row['total_grams']) / 1000, 1),
            'low_stock': row['low_stock'],
        }

    def create(self, data: Dict) -> InventoryItem:
        columns = [c for c in data if c in WRITABLE]
        placeholders = ", ".join(["%s"] * len(columns))
        with transaction() as cursor:
            cursor.execute(f"""
                INSERT INTO inventory_items ({", ".join(columns)}, created_at, updated_at)
                VALUES ({placeholders}, NOW(), NOW())
                RETURNING {ITEM_COLUMNS}
            """, [data[c] for c in columns])
            return InventoryItem(**cursor.fetchone())

    def update(self, item_id: int, fields: Dict) -> Optional[InventoryItem]:
        set_clause, values = build_set_clause(fields, WRITABLE)
        if not set_clause:
            return self.find_by_id(item_id)
        with transaction() as cursor:
            cursor.execute(f"""
                UPDATE inventory_items
                SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING {ITEM_COLUMNS}
            """, values + [item_id])
            row = cursor.fetchone()
        return InventoryItem(**row) if row else None

    def delete(self, item_id: int) -> bool:
        """Delete an item; its history goes with it (ON DELETE CASCADE)"""
        with transaction() as cursor:
            cursor.execute("DELETE FROM inventory_history WHERE inventory_id = %s", (item_id,))
            cursor.execute("DELETE FROM inventory_items WHERE id = %s", (item_id,))
            return cursor.rowcount > 0

    def adjust(self, item: InventoryItem, delta: int, movement_type: str, amount: int,
               partner: Optional[str] = None, note: Optional[str] = None,
               created_by: Optional[int] = None) -> Tuple[InventoryItem, InventoryHistory]:
        """
        Apply a relative quantity change and write the movement row in one transaction.

        The update is relative and guarded so concurrent movements never
        overwrite each other or push the quantity below zero.

        Raises:
            NotFoundError: the item was deleted meanwhile
            ValidationError: an export would exceed the current stock
        """
        with transaction() as cursor:
            cursor.execute(f"""
                UPDATE inventory_items
                SET quantity = quantity + %s, updated_at = NOW()
                WHERE id = %s AND quantity + %s >= 0
                RETURNING {ITEM_COLUMNS}
            """, (delta, item.id, delta))
            row = cursor.fetchone()
            if row is None:
                cursor.execute("SELECT 1 FROM inventory_items WHERE id = %s", (item.id,))
                if cursor.fetchone() is None:
                    raise NotFoundError("Inventory item", item.id)
                raise ValidationError("Insufficient stock")
            updated = InventoryItem(**row)

            cursor.execute(f"""
                INSERT INTO inventory_history (
                    inventory_id, item_name, type, amount, unit, partner, note, created_by, created_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, NOW())
                RETURNING {HISTORY_COLUMNS}
            """, (item.id, item.name, movement_type, amount, item.unit, partner, note, created_by))
            history = InventoryHistory(**cursor.fetchone())

        return updated, history

    def find_history(
        self,
        inventory_id: Optional[int] = None,
        movement_type: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[InventoryHistory], int]:
        conditions = []
        params: list = []

        if inventory_id is not None:
            conditions.append("inventory_id = %s")
            params.append(inventory_id)
        if movement_type:
            conditions.append("type = %s")
            params.append(movement_type)
        if date_from:
            conditions.append("created_at >= %s")
            params.append(date_from)
        if date_to:
            conditions.append("created_at <= %s")
            params.append(date_to)
        if search:
            conditions.append("(item_name ILIKE %s OR partner ILIKE %s OR note ILIKE %s)")
            params.extend([f"%{search}%"] * 3)

        where_clause = " AND ".join(conditions) if conditions else "1=1"

        with transaction() as cursor:
            cursor.execute(f"SELECT COUNT(*) AS total FROM inventory_history WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {HISTORY_COLUMNS}
                FROM inventory_history
                WHERE {where_clause}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            rows = cursor.fetchall()

        return [InventoryHistory(**row) for row in rows], total
