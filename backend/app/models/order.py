"""
Modelos relacionados con órdenes/pedidos
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, DECIMAL, ForeignKey
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from app.core.database import Base


class Order(Base):
    """
    Tabla principal de órdenes (clientes registrados e invitados)
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(50), nullable=False, unique=True, index=True)

    # Cliente (user_id NULL = invitado)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), index=True)
    guest_email = Column(String(255))
    guest_name = Column(String(255))
    phone = Column(String(50))
    shipping_address = Column(JSONB)

    # Montos
    subtotal = Column(DECIMAL(14, 2), nullable=False, default=0)
    discount_amount = Column(DECIMAL(14, 2), nullable=False, default=0)
    shipping_fee = Column(DECIMAL(14, 2), nullable=False, default=0)
    total = Column(DECIMAL(14, 2), nullable=False)
    voucher_code = Column(String(50))

    # Estados
    status = Column(String(20), nullable=False, default="pending", index=True)
    payment_method = Column(String(30), nullable=False, default="cod")
    payment_status = Column(String(20), nullable=False, default="pending", index=True)

    notes = Column(Text)
    cancelled_at = Column(DateTime(timezone=True))
    cancel_reason = Column(Text)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class OrderItem(Base):
    """
    Items/productos de cada orden (precio congelado al momento de compra)
    """
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), index=True)
    product_name = Column(String(255), nullable=False)
    sku = Column(String(100))
    quantity = Column(Integer, nullable=False)
    unit_price = Column(DECIMAL(14, 2), nullable=False)
    total = Column(DECIMAL(14, 2), nullable=False)


class OrderStatusHistory(Base):
    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), index=True, nullable=False)
    status = Column(String(20), nullable=False)
    note = Column(Text)
    changed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
