"""
Modelos de facturación: facturas (invoices) y deudas (debts) de clientes
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, DECIMAL, ForeignKey
from sqlalchemy.sql import func
from app.core.database import Base


class Invoice(Base):
    """
    Factura que agrupa una o más órdenes de un cliente
    """
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    invoice_number = Column(String(100), index=True)
    invoice_date = Column(DateTime(timezone=True))
    invoice_file = Column(String(500))
    invoice_vat = Column(String(500))

    status = Column(String(20), nullable=False, default="pending", index=True)
    deadline = Column(DateTime(timezone=True), nullable=False, index=True)
    reminded_at = Column(DateTime(timezone=True))
    issued_at = Column(DateTime(timezone=True))

    total_amount = Column(DECIMAL(14, 2), nullable=False, default=0)
    notes = Column(Text)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class InvoiceOrder(Base):
    __tablename__ = "invoice_orders"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), index=True, nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id"), index=True, nullable=False)
    order_number = Column(String(50))
    amount = Column(DECIMAL(14, 2), nullable=False, default=0)
    order_date = Column(DateTime(timezone=True))


class InvoiceHistory(Base):
    __tablename__ = "invoice_history"

    id = Column(Integer, primary_key=True, index=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id", ondelete="CASCADE"), index=True, nullable=False)
    action = Column(String(30), nullable=False)
    note = Column(Text)
    performed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Debt(Base):
    """
    Deuda de un cliente - agrega items por orden con vencimiento propio
    """
    __tablename__ = "debts"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    total_amount = Column(DECIMAL(14, 2), nullable=False, default=0)
    paid_amount = Column(DECIMAL(14, 2), nullable=False, default=0)
    remaining_amount = Column(DECIMAL(14, 2), nullable=False, default=0)

    status = Column(String(20), nullable=False, default="pending", index=True)
    notes = Column(Text)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class DebtItem(Base):
    __tablename__ = "debt_items"

    id = Column(Integer, primary_key=True, index=True)
    debt_id = Column(Integer, ForeignKey("debts.id", ondelete="CASCADE"), index=True, nullable=False)
    order_id = Column(Integer, ForeignKey("orders.id"), index=True, nullable=False)
    order_number = Column(String(50))
    amount = Column(DECIMAL(14, 2), nullable=False)
    description = Column(Text)
    status = Column(String(20), nullable=False, default="pending")
    due_date = Column(DateTime(timezone=True), nullable=False)
    paid_at = Column(DateTime(timezone=True))
    payment_proof = Column(String(500))


class DebtHistory(Base):
    __tablename__ = "debt_history"

    id = Column(Integer, primary_key=True, index=True)
    debt_id = Column(Integer, ForeignKey("debts.id", ondelete="CASCADE"), index=True, nullable=False)
    action = Column(String(30), nullable=False)
    amount = Column(DECIMAL(14, 2))
    note = Column(Text)
    performed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
