"""
Modelos del catálogo: categorías, marcas y productos
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, DECIMAL, ForeignKey
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.sql import func
from app.core.database import Base


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Brand(Base):
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    description = Column(Text)
    logo = Column(String(500))
    website = Column(String(500))
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Product(Base):
    """
    Producto del catálogo - precios, stock y visibilidad
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)

    # Identificación
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    sku = Column(String(100), nullable=False, unique=True, index=True)
    description = Column(Text)
    short_description = Column(String(500))

    # Precios
    price = Column(DECIMAL(14, 2), nullable=False, default=0)
    compare_price = Column(DECIMAL(14, 2))
    cost_price = Column(DECIMAL(14, 2))
    sale_price = Column(DECIMAL(14, 2))
    on_sale = Column(Boolean, nullable=False, default=False)
    sale_start_date = Column(DateTime(timezone=True))
    sale_end_date = Column(DateTime(timezone=True))

    # Inventario
    quantity = Column(Integer, nullable=False, default=0)
    track_quantity = Column(Boolean, nullable=False, default=True)
    allow_backorder = Column(Boolean, nullable=False, default=False)

    # Relaciones
    category_id = Column(Integer, ForeignKey("categories.id"), index=True)
    brand_id = Column(Integer, ForeignKey("brands.id"), index=True)

    tags = Column(ARRAY(String), nullable=False, server_default="{}")
    images = Column(ARRAY(String), nullable=False, server_default="{}")

    # Estado
    status = Column(String(20), nullable=False, default="draft", index=True)
    is_visible = Column(Boolean, nullable=False, default=True)
    is_featured = Column(Boolean, nullable=False, default=False, index=True)
    published_at = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
