"""
Category and Brand Repositories

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Dict, Type

from app.core.database import transaction, build_set_clause
from app.domain.product import Category, Brand


class _TaxonomyRepository:
    """Shared SQL for the two lookup tables referenced by products"""

    table: str = ""
    fk_column: str = ""
    updatable: set = set()
    model: Type = None

    def find_all(self, active_only: bool = False) -> List:
        where_clause = "WHERE t.is_active" if active_only else ""
        with transaction() as cursor:
            cursor.execute(f"""
                SELECT t.*, (
                    SELECT COUNT(*) FROM products p WHERE p.{self.fk_column} = t.id
                ) AS product_count
                FROM {self.table} t
                {where_clause}
                ORDER BY t.name
            """)
            rows = cursor.fetchall()
        return [self.model(**row) for row in rows]

    def find_by_id(self, entity_id: int):
        with transaction() as cursor:
            cursor.execute(f"SELECT * FROM {self.table} WHERE id = %s", (entity_id,))
            row = cursor.fetchone()
        return self.model(**row) if row else None

    def find_by_slug(self, slug: str):
        with transaction() as cursor:
            cursor.execute(f"SELECT * FROM {self.table} WHERE slug = %s", (slug,))
            row = cursor.fetchone()
        return self.model(**row) if row else None

    def slug_exists(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        with transaction() as cursor:
            cursor.execute(
                f"SELECT 1 FROM {self.table} WHERE slug = %s AND id <> %s",
                (slug, exclude_id or 0)
            )
            return cursor.fetchone() is not None

    def count_products(self, entity_id: int) -> int:
        with transaction() as cursor:
            cursor.execute(
                f"SELECT COUNT(*) AS total FROM products WHERE {self.fk_column} = %s",
                (entity_id,)
            )
            return cursor.fetchone()['total']

    def create(self, data: Dict):
        columns = [c for c in data if c in self.updatable]
        placeholders = ", ".join(["%s"] * len(columns))
        with transaction() as cursor:
            cursor.execute(f"""
                INSERT INTO {self.table} ({", ".join(columns)}, created_at, updated_at)
                VALUES ({placeholders}, NOW(), NOW())
                RETURNING *
            """, [data[c] for c in columns])
            return self.model(**cursor.fetchone())

    def update(self, entity_id: int, fields: Dict):
        set_clause, values = build_set_clause(fields, self.updatable)
        if not set_clause:
            return self.find_by_id(entity_id)
        with transaction() as cursor:
            cursor.execute(f"""
                UPDATE {self.table}
                SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING *
            """, values + [entity_id])
            row = cursor.fetchone()
        return self.model(**row) if row else None

    def delete(self, entity_id: int) -> bool:
        with transaction() as cursor:
            cursor.execute(f"DELETE FROM {self.table} WHERE id = %s", (entity_id,))
            return cursor.rowcount > 0


class CategoryRepository(_TaxonomyRepository):
    table = "categories"
    fk_column = "category_id"
    updatable = {"name", "slug", "description", "is_active"}
    model = Category


class BrandRepository(_TaxonomyRepository):
    table = "brands"
    fk_column = "brand_id"
    updatable = {"name", "slug", "description", "logo", "website", "is_active"}
    model = Brand
