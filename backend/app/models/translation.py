"""
Modelo de traducciones por clave completa (base_variant_locale)
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.sql import func
from app.core.database import Base


class Translation(Base):
    __tablename__ = "translations"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(255), nullable=False, unique=True, index=True)
    base_key = Column(String(255), nullable=False, index=True)
    locale = Column(String(5), nullable=False, index=True)
    variant = Column(String(10))  # short | long
    value = Column(Text, nullable=False)
    category = Column(String(30), nullable=False, default="ui", index=True)
    description = Column(Text)
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
