"""
Modelos de vouchers (códigos de descuento) y su uso por usuario
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, DECIMAL, ForeignKey
from sqlalchemy.sql import func
from app.core.database import Base


class Voucher(Base):
    __tablename__ = "vouchers"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)

    # Descuento
    discount_type = Column(String(20), nullable=False)  # percentage | fixed
    discount_value = Column(DECIMAL(14, 2), nullable=False)
    max_discount_value = Column(DECIMAL(14, 2))
    min_order_value = Column(DECIMAL(14, 2), nullable=False, default=0)

    # Vigencia y límites
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    usage_limit = Column(Integer)
    usage_count = Column(Integer, nullable=False, default=0)
    per_user_limit = Column(Integer)

    status = Column(String(20), nullable=False, default="draft", index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_used_at = Column(DateTime(timezone=True))
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class VoucherUserUsage(Base):
    __tablename__ = "voucher_user_usages"

    voucher_id = Column(Integer, ForeignKey("vouchers.id", ondelete="CASCADE"), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    count = Column(Integer, nullable=False, default=0)
    last_used_at = Column(DateTime(timezone=True))
