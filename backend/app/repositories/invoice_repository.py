"""
Invoice Repository - Data Access Layer for invoices

Invoices are stored across three tables (invoices, invoice_orders,
invoice_history) and returned as Invoice domain models.

Author: TM3
Date: 2025-10-17
"""
from datetime import datetime
from typing import List, Optional, Tuple, Dict

from app.core.database import transaction
from app.domain.invoice import Invoice, InvoiceOrder, InvoiceHistoryEntry

INVOICE_SELECT = """
    SELECT
        i.id, i.customer_id, u.name AS customer_name,
        i.invoice_number, i.invoice_date, i.invoice_file, i.invoice_vat,
        i.status, i.deadline, i.reminded_at, i.issued_at,
        i.total_amount, i.notes, i.created_by, i.created_at, i.updated_at
    FROM invoices i
    LEFT JOIN users u ON u.id = i.customer_id
"""


class InvoiceRepository:
    """
    Repository for Invoice data access

    All SQL queries for invoices are centralized here.
    """

    @staticmethod
    def _load_children(cursor, invoices: List[Invoice]) -> None:
        if not invoices:
            return
        by_id = {invoice.id: invoice for invoice in invoices}
        ids = list(by_id)

        cursor.execute("""
            SELECT invoice_id, order_id, order_number, amount, order_date
            FROM invoice_orders
            WHERE invoice_id = ANY(%s)
            ORDER BY id
        """, (ids,))
        for row in cursor.fetchall():
            data = dict(row)
            invoice_id = data.pop('invoice_id')
            by_id[invoice_id].orders.append(InvoiceOrder(**data))

        cursor.execute("""
            SELECT id, invoice_id, action, note, performed_by, created_at
            FROM invoice_history
            WHERE invoice_id = ANY(%s)
            ORDER BY created_at, id
        """, (ids,))
        for row in cursor.fetchall():
            by_id[row['invoice_id']].history.append(InvoiceHistoryEntry(**row))

    @staticmethod
    def _insert_history(cursor, invoice_id: int, entries: List[InvoiceHistoryEntry]) -> None:
        for entry in entries:
            cursor.execute("""
                INSERT INTO invoice_history (invoice_id, action, note, performed_by, created_at)
                VALUES (%s, %s, %s, %s, COALESCE(%s, NOW()))
            """, (invoice_id, entry.action, entry.note, entry.performed_by, entry.created_at))

    def find_by_id(self, invoice_id: int) -> Optional[Invoice]:
        """
        Find invoice by ID with its orders and history

        Returns:
            Invoice or None if not found
        """
        with transaction() as cursor:
            cursor.execute(f"{INVOICE_SELECT} WHERE i.id = %s", (invoice_id,))
            row = cursor.fetchone()
            if not row:
                return None
            invoice = Invoice(**row)
            self._load_children(cursor, [invoice])
        return invoice

    def find_all(
        self,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        deadline_from: Optional[datetime] = None,
        deadline_to: Optional[datetime] = None,
        limit: int = 20,
        offset: int = 0
    ) -> Tuple[List[Invoice], int, Dict]:
        """
        Find invoices with filters

        Returns:
            Tuple of (invoices, total count, totals across the filter)
        """
        conditions = []
        params: list = []

        if customer_id is not None:
            conditions.append("i.customer_id = %s")
            params.append(customer_id)
        if status:
            conditions.append("i.status = %s")
            params.append(status)
        if search:
            conditions.append("""(
                i.invoice_number ILIKE %s
                OR EXISTS (
                    SELECT 1 FROM invoice_orders io
                    WHERE io.invoice_id = i.id AND io.order_number ILIKE %s
                )
            )""")
            params.extend([f"%{search}%", f"%{search}%"])
        if deadline_from:
            conditions.append("i.deadline >= %s")
            params.append(deadline_from)
        if deadline_to:
            conditions.append("i.deadline <= %s")
            params.append(deadline_to)

        where_clause = " AND ".join(conditions) if conditions else "1=1"

        with transaction() as cursor:
            cursor.execute(f"""
                SELECT
                    COUNT(*) AS total,
                    COALESCE(SUM(i.total_amount), 0) AS total_amount,
                    COUNT(*) FILTER (WHERE i.status = 'issued') AS issued,
                    COUNT(*) FILTER (WHERE i.status = 'overdue') AS overdue
                FROM invoices i
                WHERE {where_clause}
            """, params)
            summary = dict(cursor.fetchone())
            total = summary.pop('total')
            summary['total_amount'] = float(summary['total_amount'])

            cursor.execute(f"""
                {INVOICE_SELECT}
                WHERE {where_clause}
                ORDER BY i.deadline ASC, i.created_at DESC
                LIMIT %s OFFSET %s
            """, params + [limit, offset])
            invoices = [Invoice(**row) for row in cursor.fetchall()]
            self._load_children(cursor, invoices)

        return invoices, total, summary

    def find_open_duplicate(self, customer_id: int, order_ids: List[int]) -> Optional[int]:
        """ID of a non-issued invoice of this customer already covering any of these orders"""
        with transaction() as cursor:
            cursor.execute("""
                SELECT i.id
                FROM invoices i
                WHERE i.customer_id = %s
                  AND i.status <> 'issued'
                  AND EXISTS (
                      SELECT 1 FROM invoice_orders io
                      WHERE io.invoice_id = i.id AND io.order_id = ANY(%s)
                  )
                LIMIT 1
            """, (customer_id, sorted(set(order_ids))))
            row = cursor.fetchone()
        return row['id'] if row else None

    def create(self, invoice: Invoice) -> int:
        """Insert invoice, its orders and history in one transaction"""
        with transaction() as cursor:
            cursor.execute("""
                INSERT INTO invoices (
                    customer_id, status, deadline, total_amount, notes, created_by,
                    created_at, updated_at
                )
                VALUES (%s, %s, %s, %s, %s, %s, NOW(), NOW())
                RETURNING id
            """, (
                invoice.customer_id, invoice.status, invoice.deadline,
                invoice.total_amount, invoice.notes, invoice.created_by,
            ))
            invoice_id = cursor.fetchone()['id']

            for order in invoice.orders:
                cursor.execute("""
                    INSERT INTO invoice_orders (invoice_id, order_id, order_number, amount, order_date)
                    VALUES (%s, %s, %s, %s, %s)
                """, (invoice_id, order.order_id, order.order_number, order.amount, order.order_date))

            self._insert_history(cursor, invoice_id, invoice.history)
        return invoice_id

    def save(self, invoice: Invoice) -> None:
        """
        Persist scalar fields and append history entries not yet stored.

        Entries without an id are new; existing rows are never rewritten.
        """
        with transaction() as cursor:
            cursor.execute("""
                UPDATE invoices
                SET invoice_number = %s, invoice_date = %s, invoice_file = %s, invoice_vat = %s,
                    status = %s, deadline = %s, reminded_at = %s, issued_at = %s,
                    total_amount = %s, notes = %s, updated_at = NOW()
                WHERE id = %s
            """, (
                invoice.invoice_number, invoice.invoice_date, invoice.invoice_file,
                invoice.invoice_vat, invoice.status, invoice.deadline, invoice.reminded_at,
                invoice.issued_at, invoice.total_amount, invoice.notes, invoice.id,
            ))
            self._insert_history(cursor, invoice.id, [e for e in invoice.history if e.id is None])

    def delete(self, invoice_id: int) -> bool:
        with transaction() as cursor:
            cursor.execute("DELETE FROM invoices WHERE id = %s", (invoice_id,))
            return cursor.rowcount > 0
