"""
Modelos de contenido administrable: portada, noticias, actividades y publicidad
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.sql import func
from app.core.database import Base


class HomepageSettings(Base):
    __tablename__ = "homepage_settings"

    id = Column(Integer, primary_key=True, index=True)
    status = Column(String(20), nullable=False, default="draft", index=True)
    version = Column(Integer, nullable=False, default=1)
    settings = Column(JSONB, nullable=False)
    published_at = Column(DateTime(timezone=True))
    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class News(Base):
    __tablename__ = "news"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True, index=True)
    excerpt = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    cover_image = Column(String(500))
    category = Column(String(100))
    tags = Column(ARRAY(String), nullable=False, server_default="{}")
    author_name = Column(String(255))
    author_role = Column(String(255))
    read_time = Column(String(50))
    locale = Column(String(5), nullable=False, default="vi", index=True)
    status = Column(String(20), nullable=False, default="draft", index=True)
    is_featured = Column(Boolean, nullable=False, default=False)
    views = Column(Integer, nullable=False, default=0)
    published_at = Column(DateTime(timezone=True))
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Activity(Base):
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    short_description = Column(String(500))
    content = Column(Text, nullable=False)
    image_url = Column(String(500))
    gallery = Column(ARRAY(String), nullable=False, server_default="{}")
    activity_date = Column(DateTime(timezone=True))
    location = Column(String(200))
    published = Column(Boolean, nullable=False, default=False, index=True)
    display_order = Column(Integer, nullable=False, default=0)
    tags = Column(ARRAY(String), nullable=False, server_default="{}")
    seo = Column(JSONB)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Advertisement(Base):
    __tablename__ = "advertisements"

    id = Column(Integer, primary_key=True, index=True)
    enabled = Column(Boolean, nullable=False, default=True, index=True)
    title = Column(String(255))
    content = Column(Text, nullable=False)
    image_url = Column(String(500))
    link = Column(String(500))
    link_text = Column(String(100), nullable=False, default="Xem thêm")

    # Presentación del modal
    delay_time = Column(Integer, nullable=False, default=0)
    width = Column(String(20), nullable=False, default="auto")
    height = Column(String(20), nullable=False, default="auto")
    max_width = Column(String(20), nullable=False, default="90vw")
    max_height = Column(String(20), nullable=False, default="90vh")
    position = Column(String(10), nullable=False, default="center")
    show_close_button = Column(Boolean, nullable=False, default=True)
    close_on_click_outside = Column(Boolean, nullable=False, default=True)
    close_on_escape = Column(Boolean, nullable=False, default=True)
    auto_close_time = Column(Integer, nullable=False, default=0)

    priority = Column(Integer, nullable=False, default=0)
    start_date = Column(DateTime(timezone=True))
    end_date = Column(DateTime(timezone=True))
    # {"roles": [...], "locales": [...]}
    target_audience = Column(JSONB)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
