"""
Product Repository - Data Access Layer for Products

Handles all database queries for products and returns Product domain models.

Author: TM3
Date: 2025-10-17
"""
from decimal import Decimal
from typing import List, Optional, Tuple, Dict

from app.core.database import transaction, build_set_clause
from app.core.exceptions import ValidationError
from app.domain.product import Product

PRODUCT_SELECT = """
    SELECT
        p.id, p.name, p.slug, p.sku, p.description, p.short_description,
        p.price, p.compare_price, p.cost_price, p.sale_price, p.on_sale,
        p.sale_start_date, p.sale_end_date,
        p.quantity, p.track_quantity, p.allow_backorder,
        p.category_id, c.name AS category_name,
        p.brand_id, b.name AS brand_name,
        p.tags, p.images, p.status, p.is_visible, p.is_featured,
        p.published_at, p.created_at, p.updated_at
    FROM products p
    LEFT JOIN categories c ON c.id = p.category_id
    LEFT JOIN brands b ON b.id = p.brand_id
"""

WRITABLE = {
    "name", "slug", "sku", "description", "short_description",
    "price", "compare_price", "cost_price", "sale_price", "on_sale",
    "sale_start_date", "sale_end_date",
    "quantity", "track_quantity", "allow_backorder",
    "category_id", "brand_id", "tags", "images",
    "status", "is_visible", "is_featured", "published_at",
}

# Effective price used for price filters and sorting
FINAL_PRICE_SQL = """
    CASE WHEN p.on_sale AND p.sale_price IS NOT NULL
          AND (p.sale_start_date IS NULL OR p.sale_start_date <= NOW())
          AND (p.sale_end_date IS NULL OR p.sale_end_date >= NOW())
         THEN p.sale_price ELSE p.price END
"""

SORTS = {
    "latest": "p.created_at DESC",
    "price_asc": f"{FINAL_PRICE_SQL} ASC",
    "price_desc": f"{FINAL_PRICE_SQL} DESC",
    "name": "p.name ASC",
}


class ProductRepository:
    """
    Repository for Product data access

    All SQL queries for products are centralized here.
    Returns Product domain models, not raw dictionaries.
    """

    @staticmethod
    def _map_row_to_product(row: dict) -> Product:
        data = dict(row)
        data['tags'] = data.get('tags') or []
        data['images'] = data.get('images') or []
        return Product(**data)

    def find_by_id(self, product_id: int) -> Optional[Product]:
        """
        Find product by ID

        Returns:
            Product or None if not found
        """
        with transaction() as cursor:
            cursor.execute(f"{PRODUCT_SELECT} WHERE p.id = %s", (product_id,))
            row = cursor.fetchone()
        return self._map_row_to_product(row) if row else None

    def find_by_ids(self, product_ids: List[int]) -> Dict[int, Product]:
        if not product_ids:
            return {}
        with transaction() as cursor:
            cursor.execute(f"{PRODUCT_SELECT} WHERE p.id = ANY(%s)", (list(product_ids),))
            rows = cursor.fetchall()
        return {row['id']: self._map_row_to_product(row) for row in rows}

    def find_by_slug(self, slug: str) -> Optional[Product]:
        with transaction() as cursor:
            cursor.execute(f"{PRODUCT_SELECT} WHERE p.slug = %s", (slug,))
            row = cursor.fetchone()
        return self._map_row_to_product(row) if row else None

    def sku_exists(self, sku: str, exclude_id: Optional[int] = None) -> bool:
        with transaction() as cursor:
            cursor.execute(
                "SELECT 1 FROM products WHERE sku = %s AND id <> %s",
                (sku.upper(), exclude_id or 0)
            )
            return cursor.fetchone() is not None

    def slug_exists(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        with transaction() as cursor:
            cursor.execute(
                "SELECT 1 FROM products WHERE slug = %s AND id <> %s",
                (slug, exclude_id or 0)
            )
            return cursor.fetchone() is not None

    def find_all(
        self,
        category_id: Optional[int] = None,
        brand_id: Optional[int] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        tags: Optional[List[str]] = None,
        status: Optional[str] = None,
        is_visible: Optional[bool] = None,
        is_featured: Optional[bool] = None,
        on_sale: Optional[bool] = None,
        in_stock: Optional[bool] = None,
        search: Optional[str] = None,
        sort: str = "latest",
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Product], int]:
        """
        Find products with filters

        Returns:
            Tuple of (list of products, total count)
        """
        conditions = []
        params: list = []

        if category_id is not None:
            conditions.append("p.category_id = %s")
            params.append(category_id)
        if brand_id is not None:
            conditions.append("p.brand_id = %s")
            params.append(brand_id)
        if min_price is not None:
            conditions.append(f"{FINAL_PRICE_SQL} >= %s")
            params.append(min_price)
        if max_price is not None:
            conditions.append(f"{FINAL_PRICE_SQL} <= %s")
            params.append(max_price)
        if tags:
            conditions.append("p.tags && %s")
            params.append(list(tags))
        if status:
            conditions.append("p.status = %s")
            params.append(status)
        if is_visible is not None:
            conditions.append("p.is_visible = %s")
            params.append(is_visible)
        if is_featured is not None:
            conditions.append("p.is_featured = %s")
            params.append(is_featured)
        if on_sale is not None:
            conditions.append("p.on_sale = %s")
            params.append(on_sale)
        if in_stock is True:
            conditions.append("(NOT p.track_quantity OR p.quantity > 0 OR p.allow_backorder)")
        elif in_stock is False:
            conditions.append("(p.track_quantity AND p.quantity <= 0 AND NOT p.allow_backorder)")
        if search:
            conditions.append("(p.name ILIKE %s OR p.sku ILIKE %s OR p.description ILIKE %s)")
            params.extend([f"%{search}%"] * 3)

        where_clause = " AND ".join(conditions) if conditions else "1=1"
        order_by = SORTS.get(sort, SORTS["latest"])

        with transaction() as cursor:
            cursor.execute(f"""
                SELECT COUNT(*) AS total
                FROM products p
                WHERE {where_clause}
            """, params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                {PRODUCT_SELECT}
                WHERE {where_clause}
                ORDER BY {order_by}, p.id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            rows = cursor.fetchall()

        return [self._map_row_to_product(row) for row in rows], total

    def find_featured(self, limit: int = 8) -> List[Product]:
        with transaction() as cursor:
            cursor.execute(f"""
                {PRODUCT_SELECT}
                WHERE p.status = 'active' AND p.is_visible AND p.is_featured
                ORDER BY p.updated_at DESC
                LIMIT %s
            """, (limit,))
            rows = cursor.fetchall()
        return [self._map_row_to_product(row) for row in rows]

    def create(self, data: Dict) -> Product:
        columns = [c for c in data if c in WRITABLE]
        placeholders = ", ".join(["%s"] * len(columns))
        with transaction() as cursor:
            cursor.execute(f"""
                INSERT INTO products ({", ".join(columns)}, created_at, updated_at)
                VALUES ({placeholders}, NOW(), NOW())
                RETURNING id
            """, [data[c] for c in columns])
            product_id = cursor.fetchone()['id']
        return self.find_by_id(product_id)

    def update(self, product_id: int, fields: Dict) -> Optional[Product]:
        set_clause, values = build_set_clause(fields, WRITABLE)
        if set_clause:
            with transaction() as cursor:
                cursor.execute(f"""
                    UPDATE products
                    SET {set_clause}, updated_at = NOW()
                    WHERE id = %s
                """, values + [product_id])
                if cursor.rowcount == 0:
                    return None
        return self.find_by_id(product_id)

    def set_quantity(self, product_id: int, quantity: int) -> Optional[Product]:
        with transaction() as cursor:
            cursor.execute(
                "UPDATE products SET quantity = %s, updated_at = NOW() WHERE id = %s",
                (quantity, product_id)
            )
            if cursor.rowcount == 0:
                return None
        return self.find_by_id(product_id)

    def change_quantity(self, product_id: int, delta: int) -> Optional[Product]:
        """
        Add delta (negative to subtract) to the stored quantity.

        Relative so concurrent changes add up; a subtraction that would go
        below zero only applies to backorder products.

        Returns:
            Updated product, or None if it does not exist

        Raises:
            ValidationError: not enough stock
        """
        with transaction() as cursor:
            cursor.execute("""
                UPDATE products
                SET quantity = quantity + %s, updated_at = NOW()
                WHERE id = %s AND (allow_backorder OR quantity + %s >= 0)
            """, (delta, product_id, delta))
            if cursor.rowcount == 0:
                cursor.execute("SELECT 1 FROM products WHERE id = %s", (product_id,))
                if cursor.fetchone() is None:
                    return None
                raise ValidationError("Insufficient stock")
        return self.find_by_id(product_id)

    def delete(self, product_id: int) -> bool:
        with transaction() as cursor:
            cursor.execute("DELETE FROM products WHERE id = %s", (product_id,))
            return cursor.rowcount > 0
