"""
Modelos de bodega: items de inventario y movimientos (importación/exportación)
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, DECIMAL, ForeignKey
from sqlalchemy.sql import func
from app.core.database import Base


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    quantity = Column(Integer, nullable=False, default=0)
    unit = Column(String(30), nullable=False, default="Lọ")
    net_weight = Column(Integer, nullable=False, default=165)  # gramos por unidad
    min_stock = Column(Integer, nullable=False, default=10)
    price = Column(DECIMAL(14, 2), nullable=False, default=0)
    location = Column(String(20), nullable=False, default="Kho A", index=True)
    category = Column(String(20), nullable=False, default="Thường", index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class InventoryHistory(Base):
    __tablename__ = "inventory_history"

    id = Column(Integer, primary_key=True, index=True)
    inventory_id = Column(Integer, ForeignKey("inventory_items.id", ondelete="CASCADE"), index=True, nullable=False)
    item_name = Column(String(255), nullable=False)
    type = Column(String(10), nullable=False, index=True)  # import | export
    amount = Column(Integer, nullable=False)
    unit = Column(String(30))
    partner = Column(String(255))
    note = Column(Text)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
