"""
Inventory Domain Models

Warehouse stock items (jars) and their import/export movements.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, Literal
from datetime import datetime
from decimal import Decimal

from app.domain.base import PartialUpdate

Location = Literal["Kho A", "Kho B", "Kho C"]
InventoryCategory = Literal["Thường", "Cao cấp", "Premium"]
MovementType = Literal["import", "export"]


class InventoryItem(BaseModel):
    """
    Inventory item domain model

    Fields:
        quantity: Units on hand (never negative)
        unit: Unit label (default "Lọ", jar)
        net_weight: Grams per unit
        min_stock: Low-stock threshold
        price: Unit price
    """
    id: int
    name: str
    quantity: int = Field(0, ge=0)
    unit: str = "Lọ"
    net_weight: int = Field(165, ge=0)
    min_stock: int = Field(10, ge=0)
    price: Decimal = Field(Decimal("0"), ge=0)
    location: Location = "Kho A"
    category: InventoryCategory = "Thường"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_low_stock(self) -> bool:
        return self.quantity < self.min_stock

    @property
    def total_value(self) -> Decimal:
        return self.price * self.quantity

    @property
    def total_weight_kg(self) -> float:
        return round(self.quantity * self.net_weight / 1000, 1)

    def apply_movement(self, movement_type: str, amount: int) -> int:
        """Return the resulting quantity; raises ValueError when an export exceeds stock"""
        if movement_type == "export":
            if amount > self.quantity:
                raise ValueError("Insufficient stock")
            return self.quantity - amount
        return self.quantity + amount

    def to_dict(self) -> dict:
        data = self.model_dump()
        data["price"] = float(self.price)
        data["is_low_stock"] = self.is_low_stock
        data["total_value"] = float(self.total_value)
        data["total_weight_kg"] = self.total_weight_kg
        return data


class InventoryHistory(BaseModel):
    id: int
    inventory_id: int
    item_name: str
    type: MovementType
    amount: int = Field(..., ge=1)
    unit: Optional[str] = None
    partner: Optional[str] = None
    note: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return self.model_dump()


class InventoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    quantity: int = Field(0, ge=0)
    unit: str = "Lọ"
    net_weight: int = Field(165, ge=0)
    min_stock: int = Field(10, ge=0)
    price: Decimal = Field(Decimal("0"), ge=0)
    location: Location = "Kho A"
    category: InventoryCategory = "Thường"


class InventoryUpdate(PartialUpdate):
    name: Optional[str] = Field(None, min_length=1)
    quantity: Optional[int] = Field(None, ge=0)
    unit: Optional[str] = None
    net_weight: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    price: Optional[Decimal] = Field(None, ge=0)
    location: Optional[Location] = None
    category: Optional[InventoryCategory] = None


class StockAdjustment(BaseModel):
    type: MovementType
    amount: int = Field(..., ge=1)
    partner: Optional[str] = None
    note: Optional[str] = None
