"""
Voucher Domain Model

Discount codes with a validity window, global and per-user usage limits.
Holds the eligibility and discount rules; persistence lives in
VoucherRepository and orchestration in VoucherService.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
from typing import Optional, Literal
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from app.core.clock import utcnow, as_utc
from app.domain.base import PartialUpdate

DiscountType = Literal["percentage", "fixed"]
VoucherStatus = Literal["draft", "active", "disabled", "expired"]
RuntimeStatus = Literal["draft", "active", "disabled", "expired", "scheduled"]

ZERO = Decimal("0")


def normalize_code(code: Optional[str]) -> str:
    """Codes are compared trimmed and upper-cased"""
    return (code or "").strip().upper()


class Voucher(BaseModel):
    """
    Voucher domain model

    Fields:
        code: Unique code customers type at checkout (upper-case)
        discount_type: percentage | fixed
        discount_value: Percent (0-100] or fixed currency amount
        max_discount_value: Cap applied to the computed discount (optional)
        min_order_value: Minimum subtotal to be eligible
        start_date / end_date: Validity window
        usage_limit: Total uses allowed (None = unlimited)
        usage_count: Uses so far
        per_user_limit: Uses allowed per user (None = unlimited)
        status: Stored status (draft, active, disabled, expired)
        is_active: Master switch
    """

    id: int = Field(..., description="Voucher ID")
    code: str = Field(..., description="Voucher code")
    name: str = Field(..., description="Display name")
    description: Optional[str] = None

    discount_type: DiscountType = Field(..., description="percentage or fixed")
    discount_value: Decimal = Field(..., gt=0)
    max_discount_value: Optional[Decimal] = Field(None, ge=0)
    min_order_value: Decimal = Field(ZERO, ge=0)

    start_date: datetime
    end_date: datetime
    usage_limit: Optional[int] = Field(None, ge=1)
    usage_count: int = Field(0, ge=0)
    per_user_limit: Optional[int] = Field(None, ge=1)

    status: VoucherStatus = "draft"
    is_active: bool = True
    last_used_at: Optional[datetime] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def usage_limit_reached(self) -> bool:
        return self.usage_limit is not None and self.usage_count >= self.usage_limit

    def calculate_discount(self, subtotal: Decimal) -> Decimal:
        """
        Discount for a given order subtotal.

        percentage -> subtotal * value / 100, fixed -> value; then capped by
        max_discount_value and by the subtotal itself, rounded half-up to a
        whole currency unit and never negative.
        """
        subtotal = Decimal(subtotal)
        if subtotal <= 0:
            return ZERO

        if self.discount_type == "percentage":
            discount = subtotal * self.discount_value / Decimal(100)
        else:
            discount = Decimal(self.discount_value)

        if self.max_discount_value is not None and self.max_discount_value > 0:
            discount = min(discount, self.max_discount_value)

        discount = min(discount, subtotal)
        discount = discount.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return max(discount, ZERO)

    def runtime_status(self, now: Optional[datetime] = None) -> RuntimeStatus:
        """Effective status at `now`, combining the stored status with window and usage"""
        now = as_utc(now) or utcnow()

        if not self.is_active or self.status == "disabled":
            return "disabled"
        if self.status == "draft":
            return "draft"
        if now < as_utc(self.start_date):
            return "scheduled"
        if now > as_utc(self.end_date):
            return "expired"
        if self.usage_limit_reached:
            return "expired"
        return "active"

    def to_dict(self, now: Optional[datetime] = None) -> dict:
        data = self.model_dump()
        for field in ["discount_value", "max_discount_value", "min_order_value"]:
            if data.get(field) is not None:
                data[field] = float(data[field])
        data["runtime_status"] = self.runtime_status(now)
        return data


class VoucherCreate(BaseModel):
    """Schema for creating a voucher"""
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal = Field(..., gt=0)
    max_discount_value: Optional[Decimal] = Field(None, ge=0)
    min_order_value: Decimal = Field(ZERO, ge=0)
    start_date: datetime
    end_date: datetime
    usage_limit: Optional[int] = Field(None, ge=1)
    per_user_limit: Optional[int] = Field(None, ge=1)
    status: VoucherStatus = "draft"
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, value: str) -> str:
        return normalize_code(value)

    @model_validator(mode="after")
    def _check_rules(self):
        if self.discount_type == "percentage" and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        if as_utc(self.end_date) <= as_utc(self.start_date):
            raise ValueError("end_date must be after start_date")
        return self


class VoucherUpdate(PartialUpdate):
    """Schema for updating a voucher (all fields optional)"""
    NULLABLE = frozenset({"description", "max_discount_value", "usage_limit", "per_user_limit"})

    code: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = None
    description: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(None, gt=0)
    max_discount_value: Optional[Decimal] = Field(None, ge=0)
    min_order_value: Optional[Decimal] = Field(None, ge=0)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    usage_limit: Optional[int] = Field(None, ge=1)
    per_user_limit: Optional[int] = Field(None, ge=1)
    status: Optional[VoucherStatus] = None
    is_active: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def _normalize_code(cls, value: Optional[str]) -> Optional[str]:
        return normalize_code(value) if value is not None else None


class VoucherApply(BaseModel):
    code: str = ""
    subtotal: Decimal = ZERO
