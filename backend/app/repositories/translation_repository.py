"""
Translation Repository - Data Access Layer for translation keys

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple, Dict

from app.core.database import transaction
from app.domain.translation import Translation

TRANSLATION_COLUMNS = """
    id, key, base_key, locale, variant, value, category, description, updated_by,
    created_at, updated_at
"""


class TranslationRepository:
    """All SQL queries for translations are centralized here."""

    def find_by_locale(self, locale: str) -> List[Translation]:
        with transaction() as cursor:
            cursor.execute(
                f"SELECT {TRANSLATION_COLUMNS} FROM translations WHERE locale = %s ORDER BY key",
                (locale,)
            )
            rows = cursor.fetchall()
        return [Translation(**row) for row in rows]

    def find_values(self, keys: List[str]) -> Dict[str, str]:
        """{key: value} for the keys that exist"""
        if not keys:
            return {}
        with transaction() as cursor:
            cursor.execute("SELECT key, value FROM translations WHERE key = ANY(%s)", (list(keys),))
            return {row['key']: row['value'] for row in cursor.fetchall()}

    def find_by_base_key(self, base_key: str) -> List[Translation]:
        with transaction() as cursor:
            cursor.execute(f"""
                SELECT {TRANSLATION_COLUMNS}
                FROM translations
                WHERE base_key = %s
                ORDER BY locale, variant NULLS FIRST
            """, (base_key,))
            rows = cursor.fetchall()
        return [Translation(**row) for row in rows]

    def find_all(
        self,
        locale: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[List[Translation], int]:
        conditions = []
        params: list = []

        if locale:
            conditions.append("locale = %s")
            params.append(locale)
        if category:
            conditions.append("category = %s")
            params.append(category)
        if search:
            conditions.append("(key ILIKE %s OR value ILIKE %s)")
            params.extend([f"%{search}%", f"%{search}%"])

        where_clause = " AND ".join(conditions) if conditions else "1=1"

        with transaction() as cursor:
            cursor.execute(f"SELECT COUNT(*) AS total FROM translations WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {TRANSLATION_COLUMNS}
                FROM translations
                WHERE {where_clause}
                ORDER BY base_key, locale, variant NULLS FIRST
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            rows = cursor.fetchall()

        return [Translation(**row) for row in rows], total

    def upsert(self, translation: Translation) -> Translation:
        with transaction() as cursor:
            cursor.execute(f"""
                INSERT INTO translations (
                    key, base_key, locale, variant, value, category, description, updated_by,
                    created_at, updated_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, NOW(), NOW())
                ON CONFLICT (key) DO UPDATE SET
                    base_key = EXCLUDED.base_key,
                    locale = EXCLUDED.locale,
                    variant = EXCLUDED.variant,
                    value = EXCLUDED.value,
                    category = EXCLUDED.category,
                    description = COALESCE(EXCLUDED.description, translations.description),
                    updated_by = EXCLUDED.updated_by,
                    updated_at = NOW()
                RETURNING {TRANSLATION_COLUMNS}
            """, (
                translation.key, translation.base_key, translation.locale, translation.variant,
                translation.value, translation.category, translation.description,
                translation.updated_by,
            ))
            return Translation(**cursor.fetchone())

    def delete(self, key: str) -> bool:
        with transaction() as cursor:
            cursor.execute("DELETE FROM translations WHERE key = %s", (key,))
            return cursor.rowcount > 0
