"""
Invoice Domain Models

An invoice groups a customer's orders until the tax invoice is issued.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Literal
from datetime import datetime
from decimal import Decimal

from app.core.clock import utcnow, as_utc
from app.core.text import random_code, timestamp_base36
from app.domain.base import PartialUpdate

InvoiceStatus = Literal["pending", "reminded", "issued", "overdue"]
InvoiceAction = Literal["created", "reminded", "issued", "updated", "file_uploaded"]


def generate_invoice_number(now_ms: Optional[int] = None) -> str:
    """INV-{base36 epoch ms}-{4 random upper alnum}"""
    return f"INV-{timestamp_base36(now_ms)}-{random_code(4)}"


class InvoiceOrder(BaseModel):
    order_id: int
    order_number: Optional[str] = None
    amount: Decimal = Decimal("0")
    order_date: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = self.model_dump()
        data["amount"] = float(self.amount)
        return data


class InvoiceHistoryEntry(BaseModel):
    id: Optional[int] = None
    invoice_id: Optional[int] = None
    action: InvoiceAction
    note: Optional[str] = None
    performed_by: Optional[int] = None
    created_at: Optional[datetime] = None


class Invoice(BaseModel):
    """
    Invoice domain model

    Status flow: pending -> reminded -> issued, with overdue when the
    deadline passes before issuing. Issued is terminal.
    """
    id: Optional[int] = None
    customer_id: int
    customer_name: Optional[str] = None
    orders: List[InvoiceOrder] = Field(default_factory=list)
    invoice_number: Optional[str] = None
    invoice_date: Optional[datetime] = None
    invoice_file: Optional[str] = None
    invoice_vat: Optional[str] = None
    status: InvoiceStatus = "pending"
    deadline: datetime
    reminded_at: Optional[datetime] = None
    issued_at: Optional[datetime] = None
    total_amount: Decimal = Decimal("0")
    notes: Optional[str] = None
    history: List[InvoiceHistoryEntry] = Field(default_factory=list)
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("invoice_number")
    @classmethod
    def _upper_number(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value else value

    @property
    def is_issued(self) -> bool:
        return self.status == "issued"

    @property
    def order_ids(self) -> List[int]:
        return sorted(order.order_id for order in self.orders)

    def recalculate_total(self):
        self.total_amount = sum((order.amount for order in self.orders), Decimal("0"))

    def add_history(self, action: str, performed_by: Optional[int] = None, note: Optional[str] = None):
        self.history.append(InvoiceHistoryEntry(
            invoice_id=self.id,
            action=action,
            note=note,
            performed_by=performed_by,
            created_at=utcnow(),
        ))

    def refresh_status(self, now: Optional[datetime] = None) -> InvoiceStatus:
        now = as_utc(now) or utcnow()
        if self.status == "issued":
            return self.status

        if self.invoice_number and self.invoice_date:
            self.status = "issued"
        elif as_utc(self.deadline) < now:
            self.status = "overdue"
        elif self.reminded_at:
            self.status = "reminded"
        else:
            self.status = "pending"
        return self.status

    def issue(self, invoice_number: Optional[str] = None, invoice_date: Optional[datetime] = None,
              now: Optional[datetime] = None):
        now = now or utcnow()
        self.invoice_number = (invoice_number or generate_invoice_number()).strip().upper()
        self.invoice_date = invoice_date or now
        self.issued_at = now
        self.status = "issued"

    def to_dict(self) -> dict:
        data = self.model_dump(exclude={"orders", "history"})
        data["orders"] = [order.to_dict() for order in self.orders]
        data["history"] = [entry.model_dump() for entry in self.history]
        data["total_amount"] = float(self.total_amount)
        return data


class InvoiceCreate(BaseModel):
    customer_id: Optional[int] = None
    order_ids: List[int] = Field(default_factory=list)
    deadline: Optional[datetime] = None
    notes: Optional[str] = None


class InvoiceUpdate(PartialUpdate):
    NULLABLE = frozenset({"notes"})

    deadline: Optional[datetime] = None
    notes: Optional[str] = None


class InvoiceIssue(BaseModel):
    invoice_number: Optional[str] = None
    invoice_date: Optional[datetime] = None


class InvoiceRemind(BaseModel):
    note: Optional[str] = None
