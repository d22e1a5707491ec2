"""
Order Domain Models

Represents storefront orders (registered customers and guests).
These are the single source of truth for order data structure.

Author: TM3
Date: 2025-10-17
"""
import string
from pydantic import BaseModel, Field, ConfigDict, EmailStr
from typing import Optional, List, Literal, Dict, Any
from datetime import datetime
from decimal import Decimal

from app.core.clock import utcnow
from app.core.text import random_code

OrderStatus = Literal["pending", "confirmed", "processing", "shipped", "delivered", "cancelled"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]
PaymentMethod = Literal["cod", "bank_transfer"]

# Allowed status transitions for staff updates
STATUS_TRANSITIONS: Dict[str, tuple] = {
    "pending": ("confirmed", "cancelled"),
    "confirmed": ("processing", "cancelled"),
    "processing": ("shipped", "cancelled"),
    "shipped": ("delivered",),
    "delivered": (),
    "cancelled": (),
}

CANCELLABLE_STATUSES = ("pending", "confirmed")


def generate_order_number(now: Optional[datetime] = None) -> str:
    """ORD-{YYMMDD}-{6 random upper alnum}"""
    now = now or utcnow()
    return f"ORD-{now:%y%m%d}-{random_code(6, string.ascii_uppercase + string.digits)}"


def can_transition(current: str, new: str) -> bool:
    return new in STATUS_TRANSITIONS.get(current, ())


class OrderItem(BaseModel):
    """
    Order Item domain model - a line item with the price frozen at purchase time

    Fields:
        product_id: Reference to product catalog
        product_name: Product name at order time
        sku: Product SKU at order time
        quantity: Number of units ordered
        unit_price: Final price per unit when ordered
        total: quantity * unit_price
    """

    id: Optional[int] = Field(None, description="Order item ID")
    order_id: Optional[int] = Field(None, description="Parent order ID")
    product_id: Optional[int] = Field(None, description="Product catalog ID")
    product_name: str = Field(..., description="Product name at order time")
    sku: Optional[str] = Field(None, description="Product SKU")
    quantity: int = Field(..., description="Quantity ordered", ge=1)
    unit_price: Decimal = Field(..., description="Price per unit", ge=0)
    total: Decimal = Field(..., description="Total for line item", ge=0)

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        """Convert to dictionary with Decimal to float conversion"""
        data = self.model_dump()
        for field in ['unit_price', 'total']:
            if data.get(field) is not None:
                data[field] = float(data[field])
        return data


class OrderStatusHistory(BaseModel):
    id: Optional[int] = None
    order_id: Optional[int] = None
    status: str
    note: Optional[str] = None
    changed_by: Optional[int] = None
    created_at: Optional[datetime] = None


class Order(BaseModel):
    """
    Order domain model - a storefront order

    Fields:
        order_number: Public identifier (ORD-YYMMDD-XXXXXX)
        user_id: Owner (None for guest checkout)
        guest_email / guest_name: Contact for guest checkout
        subtotal: Sum of item totals
        discount_amount: Voucher discount applied
        shipping_fee: Shipping charged
        total: subtotal - discount + shipping (never negative)
    """

    id: int = Field(..., description="Internal order ID")
    order_number: str = Field(..., description="Order number")
    user_id: Optional[int] = None
    guest_email: Optional[str] = None
    guest_name: Optional[str] = None
    phone: Optional[str] = None
    shipping_address: Optional[Dict[str, Any]] = None

    subtotal: Decimal = Field(Decimal("0"), ge=0)
    discount_amount: Decimal = Field(Decimal("0"), ge=0)
    shipping_fee: Decimal = Field(Decimal("0"), ge=0)
    total: Decimal = Field(..., ge=0)
    voucher_code: Optional[str] = None

    status: OrderStatus = "pending"
    payment_method: PaymentMethod = "cod"
    payment_status: PaymentStatus = "pending"
    notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancel_reason: Optional[str] = None

    items: List[OrderItem] = Field(default_factory=list)
    history: List[OrderStatusHistory] = Field(default_factory=list)

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_guest(self) -> bool:
        return self.user_id is None

    @property
    def item_count(self) -> int:
        """Number of line items"""
        return len(self.items)

    @property
    def total_quantity(self) -> int:
        """Total units across all items"""
        return sum(item.quantity for item in self.items)

    @property
    def is_cancellable(self) -> bool:
        return self.status in CANCELLABLE_STATUSES

    def to_dict(self) -> dict:
        """
        Convert to dictionary with computed fields and nested items
        """
        data = self.model_dump(exclude={'items', 'history'})

        for field in ['subtotal', 'discount_amount', 'shipping_fee', 'total']:
            if data.get(field) is not None:
                data[field] = float(data[field])

        data['items'] = [item.to_dict() for item in self.items]
        data['history'] = [entry.model_dump() for entry in self.history]
        data['item_count'] = self.item_count
        data['total_quantity'] = self.total_quantity
        data['is_guest'] = self.is_guest

        return data


class OrderItemInput(BaseModel):
    product_id: int
    quantity: int = Field(..., ge=1)


class OrderCreate(BaseModel):
    """Schema for creating a new order (prices are resolved server-side)"""
    items: List[OrderItemInput] = Field(default_factory=list)
    guest_email: Optional[EmailStr] = None
    guest_name: Optional[str] = None
    phone: Optional[str] = None
    shipping_address: Optional[Dict[str, Any]] = None
    shipping_fee: Decimal = Field(Decimal("0"), ge=0)
    voucher_code: Optional[str] = None
    payment_method: PaymentMethod = "cod"
    notes: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus
    note: Optional[str] = None
    payment_status: Optional[PaymentStatus] = None


class OrderCancel(BaseModel):
    reason: Optional[str] = None
