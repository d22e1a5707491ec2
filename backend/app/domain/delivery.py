"""
Delivery Order Domain Models

Author: TM3
Date: 2025-10-17
"""
import random
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Literal
from datetime import datetime
from decimal import Decimal

from app.core.clock import utcnow
from app.domain.base import PartialUpdate

DeliveryStatus = Literal["draft", "completed", "cancelled"]


def generate_delivery_code(now: Optional[datetime] = None) -> str:
    """LALC{MM}{YY}-{1000..9999}"""
    now = now or utcnow()
    return f"LALC{now:%m%y}-{random.randint(1000, 9999)}"


class DeliveryItem(BaseModel):
    id: Optional[int] = None
    product_id: Optional[int] = None
    name: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(Decimal("0"), ge=0)

    @property
    def total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        data = self.model_dump()
        data["price"] = float(self.price)
        data["total"] = float(self.total)
        return data


class DeliveryOrder(BaseModel):
    """
    Delivery order domain model

    amount is always the sum of item totals (quantity * price).
    """
    id: Optional[int] = None
    order_code: str
    buyer_id: Optional[int] = None
    buyer_name: Optional[str] = None
    delivery_date: datetime
    items: List[DeliveryItem] = Field(default_factory=list)
    is_invoice: bool = False
    is_debt: bool = False
    is_shipped: bool = False
    proof_image: Optional[str] = None
    note: Optional[str] = None
    status: DeliveryStatus = "draft"
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("order_code")
    @classmethod
    def _upper_code(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def amount(self) -> Decimal:
        return sum((item.total for item in self.items), Decimal("0"))

    def merge_items(self, updates: List["DeliveryItemInput"]):
        """
        Update items with a matching id, append the ones without an id.

        Unknown ids are appended as new items.
        """
        by_id = {item.id: item for item in self.items if item.id is not None}
        for update in updates:
            existing = by_id.get(update.id) if update.id is not None else None
            if existing is None:
                self.items.append(DeliveryItem(**update.model_dump(exclude={"id"}, exclude_none=True)))
                continue
            for field, value in update.model_dump(exclude_none=True, exclude={"id"}).items():
                setattr(existing, field, value)
        # Re-validate merged values (quantity >= 1, price >= 0)
        self.items = [DeliveryItem(**item.model_dump()) for item in self.items]

    def to_dict(self) -> dict:
        data = self.model_dump(exclude={"items"})
        data["items"] = [item.to_dict() for item in self.items]
        data["amount"] = float(self.amount)
        return data


class DeliveryItemInput(BaseModel):
    id: Optional[int] = None
    product_id: Optional[int] = None
    name: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=1)
    price: Optional[Decimal] = Field(None, ge=0)


class DeliveryCreate(BaseModel):
    order_code: Optional[str] = None
    buyer_id: Optional[int] = None
    buyer_name: Optional[str] = None
    delivery_date: Optional[datetime] = None
    items: List[DeliveryItem] = Field(default_factory=list)
    is_invoice: bool = False
    is_debt: bool = False
    is_shipped: bool = False
    proof_image: Optional[str] = None
    note: Optional[str] = None


class DeliveryUpdate(PartialUpdate):
    NULLABLE = frozenset({"buyer_id", "buyer_name", "proof_image", "note"})

    buyer_id: Optional[int] = None
    buyer_name: Optional[str] = None
    delivery_date: Optional[datetime] = None
    items: Optional[List[DeliveryItemInput]] = None
    is_invoice: Optional[bool] = None
    is_debt: Optional[bool] = None
    is_shipped: Optional[bool] = None
    proof_image: Optional[str] = None
    note: Optional[str] = None
    status: Optional[DeliveryStatus] = None
