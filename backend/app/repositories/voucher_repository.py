"""
Voucher Repository - Data Access Layer for vouchers and per-user usage

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple, Dict

from app.core.database import transaction, build_set_clause
from app.domain.voucher import Voucher

VOUCHER_COLUMNS = """
    id, code, name, description, discount_type, discount_value, max_discount_value,
    min_order_value, start_date, end_date, usage_limit, usage_count, per_user_limit,
    status, is_active, last_used_at, created_by, created_at, updated_at
"""

WRITABLE = {
    "code", "name", "description", "discount_type", "discount_value",
    "max_discount_value", "min_order_value", "start_date", "end_date",
    "usage_limit", "per_user_limit", "status", "is_active",
}

LIMIT_REACHED_SQL = "(usage_limit IS NOT NULL AND usage_count >= usage_limit)"

# Filters over the effective status (stored status + window + usage)
STATUS_FILTERS = {
    "disabled": "(NOT is_active OR status = 'disabled')",
    "draft": "(is_active AND status = 'draft')",
    "scheduled": "(is_active AND status NOT IN ('disabled', 'draft') AND start_date > NOW())",
    "active": (
        "(is_active AND status NOT IN ('disabled', 'draft') "
        f"AND start_date <= NOW() AND end_date >= NOW() AND NOT {LIMIT_REACHED_SQL})"
    ),
    "expired": (
        "(is_active AND status NOT IN ('disabled', 'draft') AND start_date <= NOW() "
        f"AND (end_date < NOW() OR {LIMIT_REACHED_SQL}))"
    ),
}

SORTS = {
    "latest": "created_at DESC",
    "usage": "usage_count DESC, updated_at DESC",
}


class VoucherRepository:
    """All SQL queries for vouchers are centralized here."""

    def find_by_id(self, voucher_id: int) -> Optional[Voucher]:
        with transaction() as cursor:
            cursor.execute(f"SELECT {VOUCHER_COLUMNS} FROM vouchers WHERE id = %s", (voucher_id,))
            row = cursor.fetchone()
        return Voucher(**row) if row else None

    def find_by_code(self, code: str) -> Optional[Voucher]:
        with transaction() as cursor:
            cursor.execute(f"SELECT {VOUCHER_COLUMNS} FROM vouchers WHERE code = %s", (code,))
            row = cursor.fetchone()
        return Voucher(**row) if row else None

    def code_exists(self, code: str, exclude_id: Optional[int] = None) -> bool:
        with transaction() as cursor:
            cursor.execute(
                "SELECT 1 FROM vouchers WHERE code = %s AND id <> %s",
                (code, exclude_id or 0)
            )
            return cursor.fetchone() is not None

    def find_all(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        is_active: Optional[bool] = None,
        sort: str = "latest",
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Voucher], int]:
        """
        Find vouchers with filters

        Args:
            search: Matches code, name or description
            status: Effective status (active, scheduled, expired, draft, disabled) or "all"
            sort: latest | usage

        Returns:
            Tuple of (list of vouchers, total count)
        """
        conditions = []
        params: list = []

        if is_active is not None:
            conditions.append("is_active = %s")
            params.append(is_active)
        if search:
            conditions.append("(code ILIKE %s OR name ILIKE %s OR description ILIKE %s)")
            params.extend([f"%{search}%"] * 3)
        if status and status in STATUS_FILTERS:
            conditions.append(STATUS_FILTERS[status])

        where_clause = " AND ".join(conditions) if conditions else "1=1"
        order_by = SORTS.get(sort, SORTS["latest"])

        with transaction() as cursor:
            cursor.execute(f"SELECT COUNT(*) AS total FROM vouchers WHERE {where_clause}", params)
            total = cursor.fetchone()['total']

            cursor.execute(f"""
                SELECT {VOUCHER_COLUMNS}
                FROM vouchers
                WHERE {where_clause}
                ORDER BY {order_by}, id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            rows = cursor.fetchall()

        return [Voucher(**row) for row in rows], total

    def create(self, data: Dict, created_by: Optional[int] = None) -> Voucher:
        columns = [c for c in data if c in WRITABLE]
        placeholders = ", ".join(["%s"] * len(columns))
        with transaction() as cursor:
            cursor.execute(f"""
                INSERT INTO vouchers ({", ".join(columns)}, usage_count, created_by, created_at, updated_at)
                VALUES ({placeholders}, 0, %s, NOW(), NOW())
                RETURNING {VOUCHER_COLUMNS}
            """, [data[c] for c in columns] + [created_by])
            return Voucher(**cursor.fetchone())

    def update(self, voucher_id: int, fields: Dict) -> Optional[Voucher]:
        set_clause, values = build_set_clause(fields, WRITABLE)
        if not set_clause:
            return self.find_by_id(voucher_id)
        with transaction() as cursor:
            cursor.execute(f"""
                UPDATE vouchers
                SET {set_clause}, updated_at = NOW()
                WHERE id = %s
                RETURNING {VOUCHER_COLUMNS}
            """, values + [voucher_id])
            row = cursor.fetchone()
        return Voucher(**row) if row else None

    def delete(self, voucher_id: int) -> bool:
        with transaction() as cursor:
            cursor.execute("DELETE FROM vouchers WHERE id = %s", (voucher_id,))
            return cursor.rowcount > 0

    def get_user_usage_count(self, voucher_id: int, user_id: int) -> int:
        with transaction() as cursor:
            cursor.execute(
                "SELECT count FROM voucher_user_usages WHERE voucher_id = %s AND user_id = %s",
                (voucher_id, user_id)
            )
            row = cursor.fetchone()
        return row['count'] if row else 0

    def increment_usage(self, voucher_id: int, user_id: Optional[int] = None,
                        track_user: bool = False) -> Optional[Voucher]:
        """
        Count one redemption.

        The global counter is bumped atomically; reaching usage_limit also
        flips the voucher to expired / inactive. When track_user is set the
        per-user counter is upserted in the same transaction.
        """
        with transaction() as cursor:
            cursor.execute(f"""
                UPDATE vouchers
                SET usage_count = usage_count + 1,
                    last_used_at = NOW(),
                    status = CASE
                        WHEN usage_limit IS NOT NULL AND usage_count + 1 >= usage_limit THEN 'expired'
                        ELSE status END,
                    is_active = CASE
                        WHEN usage_limit IS NOT NULL AND usage_count + 1 >= usage_limit THEN FALSE
                        ELSE is_active END,
                    updated_at = NOW()
                WHERE id = %s
                RETURNING {VOUCHER_COLUMNS}
            """, (voucher_id,))
            row = cursor.fetchone()
            if not row:
                return None

            if track_user and user_id is not None:
                cursor.execute("""
                    INSERT INTO voucher_user_usages (voucher_id, user_id, count, last_used_at)
                    VALUES (%s, %s, 1, NOW())
                    ON CONFLICT (voucher_id, user_id)
                    DO UPDATE SET count = voucher_user_usages.count + 1, last_used_at = NOW()
                """, (voucher_id, user_id))
        return Voucher(**row)
