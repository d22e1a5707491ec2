"""
Debt Service - customer debts aggregated per order

Every write goes through Debt.refresh_status() so totals, overdue items
and the debt status are always derived from the items.

Author: TM3
Date: 2025-10-17
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.domain.debt import Debt, DebtItem, DebtCreate, DebtUpdate, DebtPayment
from app.repositories.debt_repository import DebtRepository
from app.repositories.order_repository import OrderRepository

logger = logging.getLogger(__name__)


class DebtService:
    """Business logic for debts"""

    def __init__(self, repo: Optional[DebtRepository] = None,
                 orders: Optional[OrderRepository] = None):
        self.repo = repo or DebtRepository()
        self.orders = orders or OrderRepository()

    def get_debt(self, debt_id: int) -> Debt:
        debt = self.repo.find_by_id(debt_id)
        if not debt:
            raise NotFoundError("Debt", debt_id)
        return debt

    def list_debts(self, customer_id: Optional[int], status: Optional[str], search: Optional[str],
                   limit: int, offset: int) -> Tuple[List[Debt], int, Dict]:
        return self.repo.find_all(
            customer_id=customer_id, status=status, search=search, limit=limit, offset=offset,
        )

    def customer_debts(self, customer_id: int) -> Dict:
        """A customer's debts plus their combined totals"""
        debts = self.repo.find_by_customer(customer_id)
        total = sum((debt.total_amount for debt in debts), Decimal("0"))
        paid = sum((debt.paid_amount for debt in debts), Decimal("0"))
        return {
            "debts": debts,
            "summary": {
                "total_amount": float(total),
                "paid_amount": float(paid),
                "remaining_amount": float(total - paid),
                "count": len(debts),
            },
        }

    def create_debt(self, payload: DebtCreate, user_id: Optional[int] = None) -> Debt:
        """
        Record an order's amount as owed by a customer.

        The item joins the customer's latest debt when one exists,
        otherwise a new debt is opened.
        """
        if not (payload.customer_id and payload.order_id and payload.amount and payload.due_date):
            raise ValidationError("Customer ID, Order ID, amount, and due date are required")

        order = self.orders.find_by_id(payload.order_id)
        if not order:
            raise NotFoundError("Order", payload.order_id)

        existing = self.repo.find_by_customer(payload.customer_id)
        if any(debt.has_order(payload.order_id) for debt in existing):
            raise ConflictError("Debt item already exists for this order")

        item = DebtItem(
            order_id=order.id,
            order_number=order.order_number,
            amount=payload.amount,
            description=payload.description,
            due_date=payload.due_date,
        )

        if existing:
            debt = existing[-1]
            debt.items.append(item)
            if payload.notes:
                debt.notes = payload.notes
        else:
            debt = Debt(
                customer_id=payload.customer_id,
                items=[item],
                notes=payload.notes,
                created_by=user_id,
            )

        debt.add_history("created", user_id, amount=payload.amount, note="Debt created")
        debt.refresh_status()

        if debt.id is None:
            debt_id = self.repo.create(debt)
        else:
            self.repo.save(debt)
            debt_id = debt.id

        logger.info(f"Debt {debt_id}: added order {order.order_number} ({payload.amount})")
        return self.get_debt(debt_id)

    def update_debt(self, debt_id: int, payload: DebtUpdate, user_id: Optional[int] = None) -> Debt:
        debt = self.get_debt(debt_id)
        fields = payload.model_dump(exclude_unset=True)

        if fields.get("amount") is not None:
            item = next((item for item in debt.items if item.status == "pending"), None)
            if item:
                old_amount = item.amount
                item.amount = fields["amount"]
                if fields.get("due_date"):
                    item.due_date = fields["due_date"]
                debt.add_history(
                    "updated", user_id, amount=fields["amount"],
                    note=f"Amount updated from {old_amount} to {fields['amount']}",
                )
        elif fields.get("due_date"):
            for item in debt.items:
                if item.status == "pending":
                    item.due_date = fields["due_date"]
            debt.add_history("updated", user_id, note="Due date updated")

        if "notes" in fields:
            debt.notes = fields["notes"]
            debt.add_history("note_added", user_id, note=fields["notes"])

        debt.refresh_status()
        self.repo.save(debt)
        return self.get_debt(debt_id)

    def mark_paid(self, debt_id: int, payload: DebtPayment, user_id: Optional[int] = None) -> Debt:
        debt = self.get_debt(debt_id)

        if payload.item_id is not None:
            item = debt.find_item(payload.item_id)
            if not item:
                raise NotFoundError("Debt item", payload.item_id)
            if item.is_paid:
                raise ValidationError("Item is already paid")
            item.mark_paid(payload.payment_proof)
            debt.add_history(
                "paid", user_id, amount=item.amount,
                note=payload.note or f"Item {item.order_number} marked as paid",
            )
        else:
            unpaid = [item for item in debt.items if not item.is_paid]
            amount = sum((item.amount for item in unpaid), Decimal("0"))
            for item in unpaid:
                item.mark_paid(payload.payment_proof)
            debt.add_history("paid", user_id, amount=amount, note=payload.note or "All items marked as paid")

        debt.refresh_status()
        self.repo.save(debt)
        logger.info(f"Debt {debt_id} payment recorded, status {debt.status}")
        return self.get_debt(debt_id)

    def attach_proof(self, debt_id: int, item_id: int, url: str) -> Debt:
        debt = self.get_debt(debt_id)
        item = debt.find_item(item_id)
        if not item:
            raise NotFoundError("Debt item", item_id)
        item.payment_proof = url
        self.repo.save(debt)
        return self.get_debt(debt_id)

    def delete_debt(self, debt_id: int) -> None:
        if not self.repo.delete(debt_id):
            raise NotFoundError("Debt", debt_id)
        logger.info(f"Deleted debt {debt_id}")
