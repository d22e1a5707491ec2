"""
Catalog Domain Models

Represents products, categories and brands of the store catalog.
This is the single source of truth for catalog data structure.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, ConfigDict, field_validator
from typing import Optional, List, Literal
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from app.core.clock import utcnow, as_utc
from app.domain.base import PartialUpdate

ProductStatus = Literal["draft", "active", "archived"]
StockStatus = Literal["in_stock", "low_stock", "out_of_stock"]

LOW_STOCK_THRESHOLD = 10


class Category(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    is_active: bool = True
    product_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return self.model_dump()


class Brand(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    is_active: bool = True
    product_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return self.model_dump()


class Product(BaseModel):
    """
    Product domain model - represents a product in our catalog

    Fields:
        id: Internal product ID (primary key)
        sku: Stock Keeping Unit (unique, upper-case)
        slug: URL slug (unique)
        price: Regular selling price
        compare_price: "Was" price shown crossed out
        cost_price: Purchase/cost price
        sale_price: Promotional price, used while on_sale and inside the sale window
        quantity: Units on hand
        track_quantity: When false stock is never checked
        allow_backorder: Sell even when quantity <= 0
        status: draft | active | archived
        published_at: First time the product became active
    """

    # Primary identification
    id: int = Field(..., description="Internal product ID")
    name: str = Field(..., description="Product name")
    slug: str = Field(..., description="URL slug")
    sku: str = Field(..., description="Stock Keeping Unit")
    description: Optional[str] = None
    short_description: Optional[str] = None

    # Pricing
    price: Decimal = Field(..., ge=0)
    compare_price: Optional[Decimal] = Field(None, ge=0)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    sale_price: Optional[Decimal] = Field(None, ge=0)
    on_sale: bool = False
    sale_start_date: Optional[datetime] = None
    sale_end_date: Optional[datetime] = None

    # Inventory
    quantity: int = 0
    track_quantity: bool = True
    allow_backorder: bool = False

    # Relations
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    brand_id: Optional[int] = None
    brand_name: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)

    # Status
    status: ProductStatus = "draft"
    is_visible: bool = True
    is_featured: bool = False
    published_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def is_sale_active(self, now: Optional[datetime] = None) -> bool:
        if not self.on_sale or self.sale_price is None:
            return False
        now = as_utc(now) or utcnow()
        if self.sale_start_date and now < as_utc(self.sale_start_date):
            return False
        if self.sale_end_date and now > as_utc(self.sale_end_date):
            return False
        return True

    def final_price(self, now: Optional[datetime] = None) -> Decimal:
        """Sale price while the sale is running, regular price otherwise"""
        if self.is_sale_active(now):
            return self.sale_price
        return self.price

    @property
    def is_in_stock(self) -> bool:
        return (not self.track_quantity) or self.quantity > 0 or self.allow_backorder

    @property
    def stock_status(self) -> StockStatus:
        if not self.track_quantity:
            return "in_stock"
        if self.quantity <= 0:
            return "in_stock" if self.allow_backorder else "out_of_stock"
        if self.quantity <= LOW_STOCK_THRESHOLD:
            return "low_stock"
        return "in_stock"

    def discount_percentage(self, now: Optional[datetime] = None) -> int:
        final = self.final_price(now)
        if not self.compare_price or self.compare_price <= final:
            return 0
        percent = (self.compare_price - final) / self.compare_price * 100
        return int(percent.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def can_fulfil(self, quantity: int) -> bool:
        """Whether `quantity` units can be sold right now"""
        if not self.track_quantity or self.allow_backorder:
            return True
        return self.quantity >= quantity

    def to_dict(self) -> dict:
        """
        Convert to dictionary with computed fields

        Returns dict with all fields plus computed properties
        """
        data = self.model_dump()

        data['final_price'] = float(self.final_price())
        data['is_in_stock'] = self.is_in_stock
        data['stock_status'] = self.stock_status
        data['discount_percentage'] = self.discount_percentage()

        # Convert Decimal to float for JSON compatibility
        for field in ['price', 'compare_price', 'cost_price', 'sale_price']:
            if data.get(field) is not None:
                data[field] = float(data[field])

        return data


class ProductCreate(BaseModel):
    """Schema for creating a new product"""
    name: str = Field(..., min_length=1)
    slug: Optional[str] = None
    sku: str = Field(..., min_length=1)
    description: Optional[str] = None
    short_description: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    compare_price: Optional[Decimal] = Field(None, ge=0)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    sale_price: Optional[Decimal] = Field(None, ge=0)
    on_sale: bool = False
    sale_start_date: Optional[datetime] = None
    sale_end_date: Optional[datetime] = None
    quantity: int = 0
    track_quantity: bool = True
    allow_backorder: bool = False
    category_id: Optional[int] = None
    brand_id: Optional[int] = None
    tags: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    status: ProductStatus = "draft"
    is_visible: bool = True
    is_featured: bool = False

    @field_validator("sku")
    @classmethod
    def _upper_sku(cls, value: str) -> str:
        return value.strip().upper()


class ProductUpdate(PartialUpdate):
    """Schema for updating an existing product"""
    NULLABLE = frozenset({
        "description", "short_description", "compare_price", "cost_price", "sale_price",
        "sale_start_date", "sale_end_date", "category_id", "brand_id",
    })

    name: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = None
    sku: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    short_description: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    compare_price: Optional[Decimal] = Field(None, ge=0)
    cost_price: Optional[Decimal] = Field(None, ge=0)
    sale_price: Optional[Decimal] = Field(None, ge=0)
    on_sale: Optional[bool] = None
    sale_start_date: Optional[datetime] = None
    sale_end_date: Optional[datetime] = None
    quantity: Optional[int] = None
    track_quantity: Optional[bool] = None
    allow_backorder: Optional[bool] = None
    category_id: Optional[int] = None
    brand_id: Optional[int] = None
    tags: Optional[List[str]] = None
    images: Optional[List[str]] = None
    status: Optional[ProductStatus] = None
    is_visible: Optional[bool] = None
    is_featured: Optional[bool] = None

    @field_validator("sku")
    @classmethod
    def _upper_sku(cls, value: Optional[str]) -> Optional[str]:
        return value.strip().upper() if value else value


class StockUpdate(BaseModel):
    quantity: int = Field(..., ge=0)
    operation: Literal["set", "add", "subtract"] = "set"


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    is_active: bool = True


class CategoryUpdate(PartialUpdate):
    NULLABLE = frozenset({"description"})

    name: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    is_active: Optional[bool] = None


class BrandCreate(BaseModel):
    name: str = Field(..., min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    is_active: bool = True


class BrandUpdate(PartialUpdate):
    NULLABLE = frozenset({"description", "logo", "website"})

    name: Optional[str] = Field(None, min_length=1)
    slug: Optional[str] = None
    description: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    is_active: Optional[bool] = None
