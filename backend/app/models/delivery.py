"""
Modelos de despacho: órdenes de entrega con sus items
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, DECIMAL, ForeignKey
from sqlalchemy.sql import func
from app.core.database import Base


class DeliveryOrder(Base):
    __tablename__ = "delivery_orders"

    id = Column(Integer, primary_key=True, index=True)
    order_code = Column(String(50), nullable=False, unique=True, index=True)
    buyer_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    buyer_name = Column(String(255))
    delivery_date = Column(DateTime(timezone=True), nullable=False, index=True)

    amount = Column(DECIMAL(14, 2), nullable=False, default=0)

    # Flags de seguimiento
    is_invoice = Column(Boolean, nullable=False, default=False)
    is_debt = Column(Boolean, nullable=False, default=False)
    is_shipped = Column(Boolean, nullable=False, default=False)

    proof_image = Column(String(500))
    note = Column(Text)
    status = Column(String(20), nullable=False, default="draft", index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class DeliveryOrderItem(Base):
    __tablename__ = "delivery_order_items"

    id = Column(Integer, primary_key=True, index=True)
    delivery_order_id = Column(Integer, ForeignKey("delivery_orders.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"))
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    price = Column(DECIMAL(14, 2), nullable=False, default=0)
    total = Column(DECIMAL(14, 2), nullable=False, default=0)
