"""
Invoice Service - reminders and issuing of customer tax invoices

Author: TM3
Date: 2025-10-17
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from app.core.clock import utcnow
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.domain.invoice import (
    Invoice, InvoiceOrder, InvoiceCreate, InvoiceUpdate, InvoiceIssue, InvoiceRemind,
)
from app.repositories.invoice_repository import InvoiceRepository
from app.repositories.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class InvoiceService:
    """Business logic for invoices"""

    def __init__(self, repo: Optional[InvoiceRepository] = None,
                 orders: Optional[OrderRepository] = None):
        self.repo = repo or InvoiceRepository()
        self.orders = orders or OrderRepository()

    def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.repo.find_by_id(invoice_id)
        if not invoice:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    def list_invoices(
        self,
        customer_id: Optional[int] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        deadline_from: Optional[datetime] = None,
        deadline_to: Optional[datetime] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[Invoice], int, Dict]:
        return self.repo.find_all(
            customer_id=customer_id, status=status, search=search,
            deadline_from=deadline_from, deadline_to=deadline_to,
            limit=limit, offset=offset,
        )

    def create_invoice(self, payload: InvoiceCreate, user_id: Optional[int] = None) -> Invoice:
        """
        Open an invoice reminder over a set of orders.

        Raises:
            ValidationError: missing customer, orders or deadline
            NotFoundError: some orders do not exist
            ConflictError: an open invoice already covers these orders
        """
        order_ids = sorted(set(payload.order_ids))
        if not payload.customer_id or not order_ids or not payload.deadline:
            raise ValidationError("Customer ID, order IDs, and deadline are required")

        orders = self.orders.find_by_ids(order_ids)
        if len(orders) != len(order_ids):
            missing = [order_id for order_id in order_ids if order_id not in orders]
            raise NotFoundError("Order", message=f"Some orders not found: {missing}")

        if self.repo.find_open_duplicate(payload.customer_id, order_ids):
            raise ConflictError("Invoice reminder already exists for these orders")

        invoice = Invoice(
            customer_id=payload.customer_id,
            orders=[
                InvoiceOrder(
                    order_id=order.id,
                    order_number=order.order_number,
                    amount=order.total,
                    order_date=order.created_at,
                )
                for order in (orders[order_id] for order_id in order_ids)
            ],
            deadline=payload.deadline,
            notes=payload.notes,
            created_by=user_id,
        )
        invoice.recalculate_total()
        invoice.refresh_status()
        invoice.add_history("created", user_id, "Invoice reminder created")

        invoice_id = self.repo.create(invoice)
        logger.info(f"Created invoice {invoice_id} for customer {payload.customer_id} ({len(order_ids)} orders)")
        return self.get_invoice(invoice_id)

    def update_invoice(self, invoice_id: int, payload: InvoiceUpdate, user_id: Optional[int] = None) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        fields = payload.model_dump(exclude_unset=True)

        if fields.get("deadline"):
            invoice.deadline = fields["deadline"]
        if "notes" in fields:
            invoice.notes = fields["notes"]

        invoice.refresh_status()
        invoice.add_history("updated", user_id, fields.get("notes") or "Invoice updated")
        self.repo.save(invoice)
        return self.get_invoice(invoice_id)

    def remind(self, invoice_id: int, payload: InvoiceRemind, user_id: Optional[int] = None) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        if invoice.is_issued:
            raise ValidationError("Invoice already issued")

        invoice.reminded_at = utcnow()
        invoice.refresh_status()
        invoice.add_history("reminded", user_id, payload.note or "Customer reminded")
        self.repo.save(invoice)
        logger.info(f"Invoice {invoice_id} reminded")
        return self.get_invoice(invoice_id)

    def issue(self, invoice_id: int, payload: InvoiceIssue, user_id: Optional[int] = None) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        if invoice.is_issued:
            raise ValidationError("Invoice already issued")

        invoice.issue(payload.invoice_number, payload.invoice_date)
        invoice.add_history("issued", user_id, f"Invoice {invoice.invoice_number} issued")
        self.repo.save(invoice)
        logger.info(f"Invoice {invoice_id} issued as {invoice.invoice_number}")
        return self.get_invoice(invoice_id)

    def attach_file(self, invoice_id: int, url: str, file_type: str = "invoice",
                    user_id: Optional[int] = None) -> Invoice:
        invoice = self.get_invoice(invoice_id)
        if file_type == "vat":
            invoice.invoice_vat = url
        else:
            invoice.invoice_file = url
        invoice.add_history("file_uploaded", user_id, f"{file_type} file uploaded")
        self.repo.save(invoice)
        return self.get_invoice(invoice_id)

    def delete_invoice(self, invoice_id: int) -> None:
        if not self.repo.delete(invoice_id):
            raise NotFoundError("Invoice", invoice_id)
        logger.info(f"Deleted invoice {invoice_id}")
