"""
Notification Repository - Data Access Layer for staff notifications

Recipients are a JSONB array; matching uses the containment operator so a
single GIN-indexable predicate covers user, role and all-employee targets.

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple

from psycopg2.extras import Json

from app.core.database import transaction
from app.domain.notification import Notification


class NotificationRepository:
    """All SQL queries for notifications are centralized here."""

    @staticmethod
    def _visibility(user_id: int, role: str, is_staff: bool) -> Tuple[str, list]:
        clauses = ["n.recipients @> %s", "n.recipients @> %s"]
        params = [Json([{"user_id": user_id}]), Json([{"role": (role or "").lower()}])]
        if is_staff:
            clauses.append("n.recipients @> %s")
            params.append(Json([{"all_employees": True}]))
        return "(" + " OR ".join(clauses) + ")", params

    def create(self, notification: Notification) -> Notification:
        with transaction() as cursor:
            cursor.execute("""
                INSERT INTO notifications (type, title, message, data, recipients, created_at)
                VALUES (%s, %s, %s, %s, %s, NOW())
                RETURNING id, type, title, message, data, recipients, created_at
            """, (
                notification.type, notification.title, notification.message,
                Json(notification.data),
                Json([r.model_dump(exclude_none=True) for r in notification.recipients]),
            ))
            return Notification(**cursor.fetchone())

    def exists(self, notification_id: int) -> bool:
        with transaction() as cursor:
            cursor.execute("SELECT 1 FROM notifications WHERE id = %s", (notification_id,))
            return cursor.fetchone() is not None

    def find_for_user(self, user_id: int, role: str, is_staff: bool,
                      unread_only: bool = False, limit: int = 50,
                      skip: int = 0) -> Tuple[List[Notification], int]:
        """
        Notifications addressed to the user, newest first, each with is_read

        Returns:
            Tuple of (notifications, total matching)
        """
        visibility, params = self._visibility(user_id, role, is_staff)
        conditions = [visibility]
        if unread_only:
            conditions.append("r.user_id IS NULL")
        where_clause = " AND ".join(conditions)

        with transaction() as cursor:
            cursor.execute(f"""
                SELECT COUNT(*) AS total
                FROM notifications n
                LEFT JOIN notification_reads r ON r.notification_id = n.id AND r.user_id = %s
                WHERE {where_clause}
            """, [user_id] + params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT n.id, n.type, n.title, n.message, n.data, n.recipients, n.created_at,
                       (r.user_id IS NOT NULL) AS is_read
                FROM notifications n
                LEFT JOIN notification_reads r ON r.notification_id = n.id AND r.user_id = %s
                WHERE {where_clause}
                ORDER BY n.created_at DESC, n.id DESC
                LIMIT %s OFFSET %s
            """, [user_id] + params + [limit, skip])
            rows = cursor.fetchall()

        return [Notification(**row) for row in rows], total

    def count_unread(self, user_id: int, role: str, is_staff: bool) -> int:
        visibility, params = self._visibility(user_id, role, is_staff)
        with transaction() as cursor:
            cursor.execute(f"""
                SELECT COUNT(*) AS total
                FROM notifications n
                LEFT JOIN notification_reads r ON r.notification_id = n.id AND r.user_id = %s
                WHERE {visibility} AND r.user_id IS NULL
            """, [user_id] + params)
            return cursor.fetchone()['total']

    def mark_read(self, notification_id: int, user_id: int) -> None:
        with transaction() as cursor:
            cursor.execute("""
                INSERT INTO notification_reads (notification_id, user_id, read_at)
                VALUES (%s, %s, NOW())
                ON CONFLICT (notification_id, user_id) DO NOTHING
            """, (notification_id, user_id))

    def mark_all_read(self, user_id: int, role: str, is_staff: bool) -> int:
        visibility, params = self._visibility(user_id, role, is_staff)
        with transaction() as cursor:
            cursor.execute(f"""
                INSERT INTO notification_reads (notification_id, user_id, read_at)
                SELECT n.id, %s, NOW()
                FROM notifications n
                WHERE {visibility}
                ON CONFLICT (notification_id, user_id) DO NOTHING
            """, [user_id] + params)
            return cursor.rowcount

    def delete(self, notification_id: int) -> bool:
        with transaction() as cursor:
            cursor.execute("DELETE FROM notifications WHERE id = %s", (notification_id,))
            return cursor.rowcount > 0

    def delete_visible(self, notification_id: int, user_id: int, role: str, is_staff: bool) -> bool:
        """Delete only when the notification is addressed to this user"""
        visibility, params = self._visibility(user_id, role, is_staff)
        with transaction() as cursor:
            cursor.execute(
                f"DELETE FROM notifications n WHERE n.id = %s AND {visibility}",
                [notification_id] + params
            )
            return cursor.rowcount > 0

    def delete_older_than(self, days: int) -> int:
        with transaction() as cursor:
            cursor.execute(
                "DELETE FROM notifications WHERE created_at < NOW() - make_interval(days => %s)",
                (days,)
            )
            return cursor.rowcount

    def find_by_id(self, notification_id: int) -> Optional[Notification]:
        with transaction() as cursor:
            cursor.execute("""
                SELECT id, type, title, message, data, recipients, created_at
                FROM notifications WHERE id = %s
            """, (notification_id,))
            row = cursor.fetchone()
        return Notification(**row) if row else None
