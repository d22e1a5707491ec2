"""
Notification Domain Models

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Dict, Any
from datetime import datetime
from decimal import Decimal

NotificationType = Literal[
    "order_created",
    "order_updated",
    "order_cancelled",
    "order_shipped",
    "order_delivered",
    "system",
]


class Recipient(BaseModel):
    """Target of a notification: a user, a role, or every employee"""
    user_id: Optional[int] = None
    role: Optional[str] = None
    all_employees: bool = False


def default_recipients() -> List[Recipient]:
    return [Recipient(all_employees=True)]


class Notification(BaseModel):
    id: Optional[int] = None
    type: NotificationType
    title: str
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)
    recipients: List[Recipient] = Field(default_factory=default_recipients)
    is_read: bool = False
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return self.model_dump()


class NotificationCreate(BaseModel):
    type: NotificationType = "system"
    title: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    data: Dict[str, Any] = Field(default_factory=dict)
    recipients: List[Recipient] = Field(default_factory=default_recipients)


def format_vnd(value) -> str:
    """1250000 -> '1.250.000 ₫' (vi-VN currency style)"""
    amount = int(Decimal(str(value or 0)).quantize(Decimal("1")))
    grouped = f"{abs(amount):,}".replace(",", ".")
    sign = "-" if amount < 0 else ""
    return f"{sign}{grouped} ₫"
