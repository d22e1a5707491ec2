"""
User Repository - Data Access Layer for users

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple, Dict

from app.core.database import transaction, build_set_clause
from app.domain.user import User

USER_COLUMNS = "id, email, name, phone, role, is_active, last_login_at, created_at, updated_at"
UPDATABLE = {"name", "phone", "role", "is_active"}


class UserRepository:
    """All SQL queries for users are centralized here."""

    def find_by_id(self, user_id: int) -> Optional[User]:
        with transaction() as cursor:
            cursor.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = %s", (user_id,))
            row = cursor.fetchone()
        return User(**row) if row else None

    def find_credentials(self, email: str) -> Optional[Dict]:
        """Row including password_hash, for login and password changes"""
        with transaction() as cursor:
            cursor.execute(
                f"SELECT {USER_COLUMNS}, password_hash FROM users WHERE email = %s",
                (email.lower(),)
            )
            return cursor.fetchone()

    def find_credentials_by_id(self, user_id: int) -> Optional[Dict]:
        with transaction() as cursor:
            cursor.execute(
                f"SELECT {USER_COLUMNS}, password_hash FROM users WHERE id = %s",
                (user_id,)
            )
            return cursor.fetchone()

    def email_exists(self, email: str) -> bool:
        with transaction() as cursor:
            cursor.execute("SELECT 1 FROM users WHERE email = %s", (email.lower(),))
            return cursor.fetchone() is not None

    def find_all(
        self,
        search: Optional[str] = None,
        role: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[User], int]:
        conditions = []
        params: list = []
        if search:
            conditions.append("(name ILIKE %s OR email ILIKE %s)")
            params.extend([f"%{search}%", f"%{search}%"])
        if role:
            conditions.append("role = %s")
            params.append(role.lower())
        where_clause = " AND ".join(conditions) if conditions else "1=1"

        with transaction() as cursor:
            cursor.execute(f"SELECT COUNT(*) AS total FROM users WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {USER_COLUMNS}
                FROM users
                WHERE {where_clause}
                ORDER BY created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            rows = cursor.fetchall()

        return [User(**row) for row in rows], total

    def create(self, email: str, password_hash: str, name: Optional[str],
               phone: Optional[str], role: str = "customer") -> User:
        with transaction() as cursor:
            cursor.execute(f"""
                INSERT INTO users (email, password_hash, name, phone, role, is_active, created_at, updated_at)
                VALUES (%s, %s, %s, %s, %s, TRUE, NOW(), NOW())
                RETURNING {USER_COLUMNS}
            """, (email.lower(), password_hash, name, phone, role))
            return User(**cursor.fetchone())

    def update(self, user_id: int, fields: Dict) -> Optional[User]:
        set_clause, values = build_set_clause(fields, UPDATABLE)
        if not set_clause:
            return self.find_by_id(user_id)

        with transaction() as cursor:
            cursor.execute(f"""
                UPDATE users
                SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING {USER_COLUMNS}
            """, values + [user_id])
            row = cursor.fetchone()
        return User(**row) if row else None

    def update_password(self, user_id: int, password_hash: str) -> None:
        with transaction() as cursor:
            cursor.execute(
                "UPDATE users SET password_hash = %s, updated_at = NOW() WHERE id = %s",
                (password_hash, user_id)
            )

    def touch_last_login(self, user_id: int) -> None:
        with transaction() as cursor:
            cursor.execute("UPDATE users SET last_login_at = NOW() WHERE id = %s", (user_id,))

    def delete(self, user_id: int) -> bool:
        with transaction() as cursor:
            cursor.execute("DELETE FROM users WHERE id = %s", (user_id,))
            return cursor.rowcount > 0

    def get_stats(self) -> Dict:
        with transaction() as cursor:
            cursor.execute("""
                SELECT
                    COUNT(*) AS total_users,
                    COUNT(*) FILTER (WHERE is_active) AS active_users,
                    COUNT(*) FILTER (WHERE NOT is_active) AS inactive_users,
                    COUNT(*) FILTER (WHERE created_at >= NOW() - INTERVAL '30 days') AS recent_users
                FROM users
            """)
            stats = dict(cursor.fetchone())

            cursor.execute("SELECT role, COUNT(*) AS count FROM users GROUP BY role ORDER BY role")
            stats["by_role"] = {row["role"]: row["count"] for row in cursor.fetchall()}
        return stats
