"""
Debt Repository - Data Access Layer for customer debts

Debts live in debts, debt_items and debt_history; the repository
loads and saves them as Debt aggregates.

Author: TM3
Date: 2025-10-17
"""
from typing import List, Optional, Tuple, Dict

from app.core.database import transaction
from app.domain.debt import Debt, DebtItem, DebtHistoryEntry

DEBT_SELECT = """
    SELECT
        d.id, d.customer_id, u.name AS customer_name,
        d.total_amount, d.paid_amount, d.remaining_amount,
        d.status, d.notes, d.created_by, d.created_at, d.updated_at
    FROM debts d
    LEFT JOIN users u ON u.id = d.customer_id
"""


class DebtRepository:
    """All SQL queries for debts are centralized here."""

    @staticmethod
    def _load_children(cursor, debts: List[Debt]) -> None:
        if not debts:
            return
        by_id = {debt.id: debt for debt in debts}
        ids = list(by_id)

        cursor.execute("""
            SELECT id, debt_id, order_id, order_number, amount, description,
                   status, due_date, paid_at, payment_proof
            FROM debt_items
            WHERE debt_id = ANY(%s)
            ORDER BY id
        """, (ids,))
        for row in cursor.fetchall():
            by_id[row['debt_id']].items.append(DebtItem(**row))

        cursor.execute("""
            SELECT id, debt_id, action, amount, note, performed_by, created_at
            FROM debt_history
            WHERE debt_id = ANY(%s)
            ORDER BY created_at, id
        """, (ids,))
        for row in cursor.fetchall():
            by_id[row['debt_id']].history.append(DebtHistoryEntry(**row))

    @staticmethod
    def _write_children(cursor, debt_id: int, debt: Debt) -> None:
        for item in debt.items:
            if item.id is None:
                cursor.execute("""
                    INSERT INTO debt_items (
                        debt_id, order_id, order_number, amount, description,
                        status, due_date, paid_at, payment_proof
                    )
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING id
                """, (
                    debt_id, item.order_id, item.order_number, item.amount, item.description,
                    item.status, item.due_date, item.paid_at, item.payment_proof,
                ))
                item.id = cursor.fetchone()['id']
            else:
                cursor.execute("""
                    UPDATE debt_items
                    SET amount = %s, description = %s, status = %s, due_date = %s,
                        paid_at = %s, payment_proof = %s
                    WHERE id = %s AND debt_id = %s
                """, (
                    item.amount, item.description, item.status, item.due_date,
                    item.paid_at, item.payment_proof, item.id, debt_id,
                ))

        for entry in debt.history:
            if entry.id is not None:
                continue
            cursor.execute("""
                INSERT INTO debt_history (debt_id, action, amount, note, performed_by, created_at)
                VALUES (%s, %s, %s, %s, %s, COALESCE(%s, NOW()))
                RETURNING id
            """, (debt_id, entry.action, entry.amount, entry.note, entry.performed_by, entry.created_at))
            entry.id = cursor.fetchone()['id']

    def find_by_id(self, debt_id: int) -> Optional[Debt]:
        with transaction() as cursor:
            cursor.execute(f"{DEBT_SELECT} WHERE d.id = %s", (debt_id,))
            row = cursor.fetchone()
            if not row:
                return None
            debt = Debt(**row)
            self._load_children(cursor, [debt])
        return debt

    def find_by_customer(self, customer_id: int) -> List[Debt]:
        """Every debt of a customer, oldest first"""
        with transaction() as cursor:
            cursor.execute(
                f"{DEBT_SELECT} WHERE d.customer_id = %s ORDER BY d.created_at, d.id",
                (customer_id,)
            )
            debts = [Debt(**row) for row in cursor.fetchall()]
            self._load_children(cursor, debts)
        return debts

    def find_all(
        self,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Debt], int, Dict]:
        """
        Find debts with filters

        Returns:
            Tuple of (debts, total count, summary totals across the filter)
        """
        conditions = []
        params: list = []

        if customer_id is not None:
            conditions.append("d.customer_id = %s")
            params.append(customer_id)
        if status:
            conditions.append("d.status = %s")
            params.append(status)
        if search:
            conditions.append("""EXISTS (
                SELECT 1 FROM debt_items di
                WHERE di.debt_id = d.id AND di.order_number ILIKE %s
            )""")
            params.append(f"%{search}%")

        where_clause = " AND ".join(conditions) if conditions else "1=1"

        with transaction() as cursor:
            cursor.execute(f"""
                SELECT
                    COUNT(*) AS total,
                    COALESCE(SUM(d.total_amount), 0) AS total_amount,
                    COALESCE(SUM(d.paid_amount), 0) AS paid_amount,
                    COALESCE(SUM(d.remaining_amount), 0) AS remaining_amount
                FROM debts d
                WHERE {where_clause}
            """, params)
            row = cursor.fetchone()
            total = row['total']
            summary = {
                'total_amount': float(row['total_amount']),
                'paid_amount': float(row['paid_amount']),
                'remaining_amount': float(row['remaining_amount']),
            }

            cursor.execute(f"""
                {DEBT_SELECT}
                WHERE {where_clause}
                ORDER BY d.updated_at DESC, d.id DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            debts = [Debt(**row) for row in cursor.fetchall()]
            self._load_children(cursor, debts)

        return debts, total, summary

    def create(self, debt: Debt) -> int:
        """Insert the debt with its items and history in one transaction"""
        with transaction() as cursor:
            cursor.execute("""
                INSERT INTO debts (
                    customer_id, total_amount, paid_amount, remaining_amount,
                    status, notes, created_by, created_at, updated_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, NOW(), NOW())
                RETURNING id
            """, (
                debt.customer_id, debt.total_amount, debt.paid_amount, debt.remaining_amount,
                debt.status, debt.notes, debt.created_by,
            ))
            debt_id = cursor.fetchone()['id']
            self._write_children(cursor, debt_id, debt)
        debt.id = debt_id
        return debt_id

    def save(self, debt: Debt) -> None:
        """Persist totals and status, upsert items and append new history entries"""
        with transaction() as cursor:
            cursor.execute("""
                UPDATE debts
                SET total_amount = %s, paid_amount = %s, remaining_amount = %s,
                    status = %s, notes = %s, updated_at = NOW()
                WHERE id = %s
            """, (
                debt.total_amount, debt.paid_amount, debt.remaining_amount,
                debt.status, debt.notes, debt.id,
            ))
            self._write_children(cursor, debt.id, debt)

    def delete(self, debt_id: int) -> bool:
        with transaction() as cursor:
            cursor.execute("DELETE FROM debts WHERE id = %s", (debt_id,))
            return cursor.rowcount > 0
