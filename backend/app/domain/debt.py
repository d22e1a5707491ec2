"""
Debt Domain Models

A customer's debt aggregates one item per order, each with its own due
date and payment state. Totals and status are always recomputed from the
items.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List, Literal
from datetime import datetime
from decimal import Decimal

from app.core.clock import utcnow, as_utc
from app.domain.base import PartialUpdate

DebtItemStatus = Literal["pending", "paid", "overdue"]
DebtStatus = Literal["pending", "partial", "paid", "overdue"]
DebtAction = Literal["created", "updated", "paid", "marked_overdue", "note_added"]

ZERO = Decimal("0")


class DebtItem(BaseModel):
    """One order's share of a debt"""
    id: Optional[int] = None
    debt_id: Optional[int] = None
    order_id: int
    order_number: Optional[str] = None
    amount: Decimal = Field(..., gt=0)
    description: Optional[str] = None
    status: DebtItemStatus = "pending"
    due_date: datetime
    paid_at: Optional[datetime] = None
    payment_proof: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    @property
    def is_paid(self) -> bool:
        return self.status == "paid"

    def mark_paid(self, proof: Optional[str] = None, now: Optional[datetime] = None):
        self.status = "paid"
        self.paid_at = now or utcnow()
        if proof:
            self.payment_proof = proof

    def to_dict(self) -> dict:
        data = self.model_dump()
        data["amount"] = float(self.amount)
        return data


class DebtHistoryEntry(BaseModel):
    id: Optional[int] = None
    debt_id: Optional[int] = None
    action: DebtAction
    amount: Optional[Decimal] = None
    note: Optional[str] = None
    performed_by: Optional[int] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = self.model_dump()
        if data.get("amount") is not None:
            data["amount"] = float(data["amount"])
        return data


class Debt(BaseModel):
    """
    Debt domain model

    total = sum of all item amounts, paid = sum of paid items,
    remaining = total - paid.
    """
    id: Optional[int] = None
    customer_id: int
    customer_name: Optional[str] = None
    items: List[DebtItem] = Field(default_factory=list)
    total_amount: Decimal = ZERO
    paid_amount: Decimal = ZERO
    remaining_amount: Decimal = ZERO
    status: DebtStatus = "pending"
    notes: Optional[str] = None
    history: List[DebtHistoryEntry] = Field(default_factory=list)
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def find_item(self, item_id: int) -> Optional[DebtItem]:
        return next((item for item in self.items if item.id == item_id), None)

    def has_order(self, order_id: int) -> bool:
        return any(item.order_id == order_id for item in self.items)

    def add_history(self, action: str, performed_by: Optional[int] = None,
                    amount: Optional[Decimal] = None, note: Optional[str] = None) -> DebtHistoryEntry:
        entry = DebtHistoryEntry(
            debt_id=self.id,
            action=action,
            amount=amount,
            note=note,
            performed_by=performed_by,
            created_at=utcnow(),
        )
        self.history.append(entry)
        return entry

    def recalculate_totals(self):
        total = sum((item.amount for item in self.items), ZERO)
        paid = sum((item.amount for item in self.items if item.is_paid), ZERO)
        self.total_amount = total
        self.paid_amount = paid
        self.remaining_amount = total - paid

    def refresh_status(self, now: Optional[datetime] = None) -> DebtStatus:
        """
        Recompute totals, flag overdue items and derive the debt status.

        A pending item past its due date becomes overdue and makes the whole
        debt overdue; otherwise paid / partial / pending follow the totals.
        """
        now = as_utc(now) or utcnow()
        self.recalculate_totals()

        newly_overdue = []
        for item in self.items:
            if item.status == "pending" and as_utc(item.due_date) < now:
                item.status = "overdue"
                newly_overdue.append(item)

        if newly_overdue:
            numbers = ", ".join(item.order_number or str(item.order_id) for item in newly_overdue)
            self.add_history("marked_overdue", note=f"Overdue: {numbers}")

        if any(item.status == "overdue" for item in self.items):
            self.status = "overdue"
        elif self.remaining_amount == 0 and self.paid_amount > 0:
            self.status = "paid"
        elif self.paid_amount > 0:
            self.status = "partial"
        else:
            self.status = "pending"
        return self.status

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "items": [item.to_dict() for item in self.items],
            "total_amount": float(self.total_amount),
            "paid_amount": float(self.paid_amount),
            "remaining_amount": float(self.remaining_amount),
            "status": self.status,
            "notes": self.notes,
            "history": [entry.to_dict() for entry in self.history],
            "created_by": self.created_by,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class DebtCreate(BaseModel):
    customer_id: Optional[int] = None
    order_id: Optional[int] = None
    amount: Optional[Decimal] = Field(None, gt=0)
    due_date: Optional[datetime] = None
    description: Optional[str] = None
    notes: Optional[str] = None


class DebtUpdate(PartialUpdate):
    NULLABLE = frozenset({"notes"})

    amount: Optional[Decimal] = Field(None, gt=0)
    due_date: Optional[datetime] = None
    notes: Optional[str] = None


class DebtPayment(BaseModel):
    item_id: Optional[int] = None
    payment_proof: Optional[str] = None
    note: Optional[str] = None
