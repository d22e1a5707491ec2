"""
Content Repositories - homepage settings, news, activities, advertisements

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple, Dict, Any

from psycopg2.extras import Json

from app.core.database import transaction, build_set_clause
from app.domain.content import HomepageSettings, News, Activity, Advertisement


def _insert(cursor, table: str, data: Dict, writable: set, json_fields=()) -> dict:
    columns = [c for c in data if c in writable]
    values = [
        Json(data[c]) if c in json_fields and data[c] is not None else data[c]
        for c in columns
    ]
    placeholders = ", ".join(["%s"] * len(columns))
    cursor.execute(f"""
        INSERT INTO {table} ({", ".join(columns)}, created_at, updated_at)
        VALUES ({placeholders}, NOW(), NOW())
        RETURNING *
    """, values)
    return cursor.fetchone()


# =============================================================================
# Homepage settings
# =============================================================================

class HomepageRepository:
    """One published and at most one draft homepage document"""

    HOMEPAGE_COLUMNS = "id, status, version, settings, published_at, updated_by, created_at, updated_at"

    def find_by_status(self, status: str) -> Optional[HomepageSettings]:
        with transaction() as cursor:
            cursor.execute(f"""
                SELECT {self.HOMEPAGE_COLUMNS}
                FROM homepage_settings
                WHERE status = %s
                ORDER BY version DESC, updated_at DESC
                LIMIT 1
            """, (status,))
            row = cursor.fetchone()
        return HomepageSettings(**row) if row else None

    def create(self, status: str, version: int, settings: Dict[str, Any],
               updated_by: Optional[int] = None, published: bool = False) -> HomepageSettings:
        with transaction() as cursor:
            cursor.execute(f"""
                INSERT INTO homepage_settings (status, version, settings, published_at, updated_by, created_at, updated_at)
                VALUES (%s, %s, %s, CASE WHEN %s THEN NOW() END, %s, NOW(), NOW())
                RETURNING {self.HOMEPAGE_COLUMNS}
            """, (status, version, Json(settings), published, updated_by))
            return HomepageSettings(**cursor.fetchone())

    def save_draft(self, settings: Dict[str, Any], version: int,
                   updated_by: Optional[int] = None) -> HomepageSettings:
        with transaction() as cursor:
            cursor.execute(f"""
                UPDATE homepage_settings
                SET settings = %s, version = %s, updated_by = %s, updated_at = NOW()
                WHERE status = 'draft'
                RETURNING {self.HOMEPAGE_COLUMNS}
            """, (Json(settings), version, updated_by))
            row = cursor.fetchone()
            if row is None:
                cursor.execute(f"""
                    INSERT INTO homepage_settings (status, version, settings, updated_by, created_at, updated_at)
                    VALUES ('draft', %s, %s, %s, NOW(), NOW())
                    RETURNING {self.HOMEPAGE_COLUMNS}
                """, (version, Json(settings), updated_by))
                row = cursor.fetchone()
        return HomepageSettings(**row)

    def publish(self, settings: Dict[str, Any], version: int,
                updated_by: Optional[int] = None) -> HomepageSettings:
        """Upsert the published document and drop the draft in one transaction"""
        with transaction() as cursor:
            cursor.execute(f"""
                UPDATE homepage_settings
                SET settings = %s, version = %s, published_at = NOW(), updated_by = %s, updated_at = NOW()
                WHERE status = 'published'
                RETURNING {self.HOMEPAGE_COLUMNS}
            """, (Json(settings), version, updated_by))
            row = cursor.fetchone()
            if row is None:
                cursor.execute(f"""
                    INSERT INTO homepage_settings (status, version, settings, published_at, updated_by, created_at, updated_at)
                    VALUES ('published', %s, %s, NOW(), %s, NOW(), NOW())
                    RETURNING {self.HOMEPAGE_COLUMNS}
                """, (version, Json(settings), updated_by))
                row = cursor.fetchone()
            cursor.execute("DELETE FROM homepage_settings WHERE status = 'draft'")
        return HomepageSettings(**row)


# =============================================================================
# News
# =============================================================================

NEWS_WRITABLE = {
    "title", "slug", "excerpt", "content", "cover_image", "category", "tags",
    "author_name", "author_role", "read_time", "locale", "status", "is_featured",
    "published_at", "created_by",
}


class NewsRepository:

    def find_by_id(self, news_id: int) -> Optional[News]:
        with transaction() as cursor:
            cursor.execute("SELECT * FROM news WHERE id = %s", (news_id,))
            row = cursor.fetchone()
        return News(**row) if row else None

    def find_published_by_slug(self, slug: str) -> Optional[News]:
        """Fetch a published article and count the view"""
        with transaction() as cursor:
            cursor.execute("""
                UPDATE news SET views = views + 1
                WHERE slug = %s AND status = 'published'
                RETURNING *
            """, (slug,))
            row = cursor.fetchone()
        return News(**row) if row else None

    def slug_exists(self, slug: str, exclude_id: Optional[int] = None) -> bool:
        with transaction() as cursor:
            cursor.execute("SELECT 1 FROM news WHERE slug = %s AND id <> %s", (slug, exclude_id or 0))
            return cursor.fetchone() is not None

    def find_all(
        self,
        status: Optional[str] = None,
        locale: Optional[str] = None,
        category: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 12,
        offset: int = 0
    ) -> Tuple[List[News], int]:
        conditions = []
        params: list = []

        if status:
            conditions.append("status = %s")
            params.append(status)
        if locale:
            conditions.append("locale = %s")
            params.append(locale)
        if category:
            conditions.append("category = %s")
            params.append(category)
        if search:
            conditions.append("(title ILIKE %s OR excerpt ILIKE %s)")
            params.extend([f"%{search}%", f"%{search}%"])

        where_clause = " AND ".join(conditions) if conditions else "1=1"

        with transaction() as cursor:
            cursor.execute(f"SELECT COUNT(*) AS total FROM news WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT *
                FROM news
                WHERE {where_clause}
                ORDER BY is_featured DESC, published_at DESC NULLS LAST, created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            rows = cursor.fetchall()

        return [News(**row) for row in rows], total

    def create(self, data: Dict) -> News:
        with transaction() as cursor:
            return News(**_insert(cursor, "news", data, NEWS_WRITABLE))

    def update(self, news_id: int, fields: Dict) -> Optional[News]:
        set_clause, values = build_set_clause(fields, NEWS_WRITABLE)
        if not set_clause:
            return self.find_by_id(news_id)
        with transaction() as cursor:
            cursor.execute(f"""
                UPDATE news SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING *
            """, values + [news_id])
            row = cursor.fetchone()
        return News(**row) if row else None

    def delete(self, news_id: int) -> bool:
        with transaction() as cursor:
            cursor.execute("DELETE FROM news WHERE id = %s", (news_id,))
            return cursor.rowcount > 0


# =============================================================================
# Activities
# =============================================================================

ACTIVITY_WRITABLE = {
    "title", "short_description", "content", "image_url", "gallery", "activity_date",
    "location", "published", "display_order", "tags", "seo", "created_by",
}
ACTIVITY_SUMMARY_COLUMNS = """
    id, title, short_description, image_url, gallery, activity_date, location,
    published, display_order, tags, seo, created_by, created_at, updated_at
"""
ACTIVITY_ORDER = "display_order DESC, activity_date DESC NULLS LAST, created_at DESC"


class ActivityRepository:

    def find_by_id(self, activity_id: int, published_only: bool = False) -> Optional[Activity]:
        query = "SELECT * FROM activities WHERE id = %s"
        if published_only:
            query += " AND published"
        with transaction() as cursor:
            cursor.execute(query, (activity_id,))
            row = cursor.fetchone()
        return Activity(**row) if row else None

    def find_all(
        self,
        published: Optional[bool] = None,
        search: Optional[str] = None,
        with_content: bool = True,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Activity], int]:
        conditions = []
        params: list = []

        if published is not None:
            conditions.append("published = %s")
            params.append(published)
        if search:
            conditions.append("(title ILIKE %s OR short_description ILIKE %s OR location ILIKE %s)")
            params.extend([f"%{search}%"] * 3)

        where_clause = " AND ".join(conditions) if conditions else "1=1"
        columns = "*" if with_content else ACTIVITY_SUMMARY_COLUMNS

        with transaction() as cursor:
            cursor.execute(f"SELECT COUNT(*) AS total FROM activities WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {columns}
                FROM activities
                WHERE {where_clause}
                ORDER BY {ACTIVITY_ORDER}
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            rows = cursor.fetchall()

        return [Activity(**row) for row in rows], total

    def create(self, data: Dict) -> Activity:
        with transaction() as cursor:
            return Activity(**_insert(cursor, "activities", data, ACTIVITY_WRITABLE, json_fields=("seo",)))

    def update(self, activity_id: int, fields: Dict) -> Optional[Activity]:
        set_clause, values = build_set_clause(fields, ACTIVITY_WRITABLE, json_fields=("seo",))
        if not set_clause:
            return self.find_by_id(activity_id)
        with transaction() as cursor:
            cursor.execute(f"""
                UPDATE activities SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING *
            """, values + [activity_id])
            row = cursor.fetchone()
        return Activity(**row) if row else None

    def toggle_published(self, activity_id: int) -> Optional[Activity]:
        with transaction() as cursor:
            cursor.execute("""
                UPDATE activities SET published = NOT published, updated_at = NOW()
                WHERE id = %s
                RETURNING *
            """, (activity_id,))
            row = cursor.fetchone()
        return Activity(**row) if row else None

    def delete(self, activity_id: int) -> bool:
        with transaction() as cursor:
            cursor.execute("DELETE FROM activities WHERE id = %s", (activity_id,))
            return cursor.rowcount > 0


# =============================================================================
# Advertisements
# =============================================================================

AD_WRITABLE = {
    "enabled", "title", "content", "image_url", "link", "link_text", "delay_time",
    "width", "height", "max_width", "max_height", "position", "show_close_button",
    "close_on_click_outside", "close_on_escape", "auto_close_time", "priority",
    "start_date", "end_date", "target_audience", "created_by",
}


class AdvertisementRepository:

    def find_by_id(self, ad_id: int) -> Optional[Advertisement]:
        with transaction() as cursor:
            cursor.execute("SELECT * FROM advertisements WHERE id = %s", (ad_id,))
            row = cursor.fetchone()
        return Advertisement(**row) if row else None

    def find_all(self, limit: int = 20, offset: int = 0) -> Tuple[List[Advertisement], int]:
        with transaction() as cursor:
            cursor.execute("SELECT COUNT(*) AS total FROM advertisements")
            total = cursor.fetchone()['total']
            cursor.execute("""
                SELECT * FROM advertisements
                ORDER BY priority DESC, created_at DESC
                LIMIT %s OFFSET %s
            """, (limit, offset))
            rows = cursor.fetchall()
        return [Advertisement(**row) for row in rows], total

    def find_live(self) -> List[Advertisement]:
        """Enabled ads whose window contains now, best first"""
        with transaction() as cursor:
            cursor.execute("""
                SELECT * FROM advertisements
                WHERE enabled
                  AND (start_date IS NULL OR start_date <= NOW())
                  AND (end_date IS NULL OR end_date >= NOW())
                ORDER BY priority DESC, created_at DESC
            """)
            rows = cursor.fetchall()
        return [Advertisement(**row) for row in rows]

    def create(self, data: Dict) -> Advertisement:
        with transaction() as cursor:
            return Advertisement(**_insert(
                cursor, "advertisements", data, AD_WRITABLE, json_fields=("target_audience",)
            ))

    def update(self, ad_id: int, fields: Dict) -> Optional[Advertisement]:
        set_clause, values = build_set_clause(fields, AD_WRITABLE, json_fields=("target_audience",))
        if not set_clause:
            return self.find_by_id(ad_id)
        with transaction() as cursor:
            cursor.execute(f"""
                UPDATE advertisements SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING *
            """, values + [ad_id])
            row = cursor.fetchone()
        return Advertisement(**row) if row else None

    def toggle_enabled(self, ad_id: int) -> Optional[Advertisement]:
        with transaction() as cursor:
            cursor.execute("""
                UPDATE advertisements SET enabled = NOT enabled, updated_at = NOW()
                WHERE id = %s
                RETURNING *
            """, (ad_id,))
            row = cursor.fetchone()
        return Advertisement(**row) if row else None

    def delete(self, ad_id: int) -> bool:
        with transaction() as cursor:
            cursor.execute("DELETE FROM advertisements WHERE id = %s", (ad_id,))
            return cursor.rowcount > 0
