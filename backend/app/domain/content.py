"""
Content Domain Models

Homepage settings, news articles, activities and pop-up advertisements
managed from the admin panel.

Author: TM3
Date: 2025-10-17
"""
import copy
from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Literal, Dict, Any
from datetime import datetime

from app.core.clock import utcnow, as_utc
from app.domain.base import PartialUpdate

PublishStatus = Literal["draft", "published"]
AdPosition = Literal["center", "top", "bottom", "left", "right"]


# =============================================================================
# Homepage settings
# =============================================================================

def default_homepage_settings() -> Dict[str, Any]:
    """Sections used when no homepage document exists yet"""
    return {
        "typography": {
            "heading_font": "Playfair Display",
            "body_font": "Be Vietnam Pro",
            "google_font_url": None,
            "base_font_size": 16,
            "heading_sizes": {"h1": 48, "h2": 36, "h3": 24, "h4": 20},
        },
        "colors": {
            "primary": "#e11d48",
            "secondary": "#f43f5e",
            "accent": "#fda4af",
            "background": "#ffffff",
            "text": "#1e293b",
        },
        "hero": {"slides": []},
        "marquee": {"items": [], "enabled": True},
        "featured_products": {
            "product_ids": [],
            "title": "Sản Phẩm Nổi Bật",
            "subtitle": "Những sáng tạo độc đáo từ LALA-LYCHEE",
            "enabled": True,
        },
        "about": {
            "title": "",
            "content": "",
            "image_url": None,
            "founder_name": None,
            "founder_title": None,
            "founder_quote": None,
            "enabled": True,
        },
        "social_proof": {"testimonials": [], "enabled": True},
        "collection": {"title": "", "description": "", "image_url": None, "enabled": True},
        "craft": {"title": "", "description": "", "images": [], "enabled": True},
        "map": {"enabled": True, "latitude": None, "longitude": None},
        "seo": {"title": None, "description": None, "keywords": []},
    }


def deep_merge(base: Dict[str, Any], updates: Dict[str, Any]) -> Dict[str, Any]:
    """Merge nested dicts; lists and scalars in `updates` replace those in `base`"""
    merged = copy.deepcopy(base)
    for key, value in (updates or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class HomepageSettings(BaseModel):
    id: Optional[int] = None
    status: PublishStatus = "draft"
    version: int = 1
    settings: Dict[str, Any] = Field(default_factory=default_homepage_settings)
    published_at: Optional[datetime] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return self.model_dump()


class HomepageUpdate(BaseModel):
    settings: Dict[str, Any] = Field(default_factory=dict)
    status: PublishStatus = "draft"


# =============================================================================
# News
# =============================================================================

class News(BaseModel):
    id: int
    title: str
    slug: str
    excerpt: str
    content: Optional[str] = None
    cover_image: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    author_name: Optional[str] = None
    author_role: Optional[str] = None
    read_time: Optional[str] = None
    locale: str = "vi"
    status: PublishStatus = "draft"
    is_featured: bool = False
    views: int = 0
    published_at: Optional[datetime] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return self.model_dump()


class NewsCreate(BaseModel):
    title: Optional[str] = None
    slug: Optional[str] = None
    excerpt: Optional[str] = None
    content: Optional[str] = None
    cover_image: Optional[str] = None
    category: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    author_name: Optional[str] = None
    author_role: Optional[str] = None
    read_time: Optional[str] = None
    locale: str = "vi"
    status: PublishStatus = "draft"
    is_featured: bool = False


class NewsUpdate(PartialUpdate):
    NULLABLE = frozenset({"cover_image", "category", "author_name", "author_role", "read_time"})

    title: Optional[str] = None
    slug: Optional[str] = None
    excerpt: Optional[str] = None
    content: Optional[str] = None
    cover_image: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    author_name: Optional[str] = None
    author_role: Optional[str] = None
    read_time: Optional[str] = None
    locale: Optional[str] = None
    status: Optional[PublishStatus] = None
    is_featured: Optional[bool] = None


# =============================================================================
# Activities
# =============================================================================

class Activity(BaseModel):
    id: int
    title: str
    short_description: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    gallery: List[str] = Field(default_factory=list)
    activity_date: Optional[datetime] = None
    location: Optional[str] = None
    published: bool = False
    display_order: int = 0
    tags: List[str] = Field(default_factory=list)
    seo: Optional[Dict[str, Any]] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return self.model_dump()


class ActivityCreate(BaseModel):
    title: Optional[str] = Field(None, max_length=200)
    short_description: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = None
    image_url: Optional[str] = None
    gallery: List[str] = Field(default_factory=list)
    activity_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=200)
    published: bool = False
    display_order: int = 0
    tags: List[str] = Field(default_factory=list)
    seo: Optional[Dict[str, Any]] = None


class ActivityUpdate(PartialUpdate):
    NULLABLE = frozenset({"short_description", "image_url", "activity_date", "location", "seo"})

    title: Optional[str] = Field(None, max_length=200)
    short_description: Optional[str] = Field(None, max_length=500)
    content: Optional[str] = None
    image_url: Optional[str] = None
    gallery: Optional[List[str]] = None
    activity_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=200)
    published: Optional[bool] = None
    display_order: Optional[int] = None
    tags: Optional[List[str]] = None
    seo: Optional[Dict[str, Any]] = None


# =============================================================================
# Advertisements
# =============================================================================

class TargetAudience(BaseModel):
    roles: List[str] = Field(default_factory=list)
    locales: List[str] = Field(default_factory=list)


class Advertisement(BaseModel):
    """
    Pop-up advertisement shown on the storefront

    An ad is live when enabled and `now` falls inside its optional
    start/end window; target_audience narrows it by role and locale.
    """
    id: int
    enabled: bool = True
    title: Optional[str] = None
    content: str
    image_url: Optional[str] = None
    link: Optional[str] = None
    link_text: str = "Xem thêm"
    delay_time: int = Field(0, ge=0)
    width: str = "auto"
    height: str = "auto"
    max_width: str = "90vw"
    max_height: str = "90vh"
    position: AdPosition = "center"
    show_close_button: bool = True
    close_on_click_outside: bool = True
    close_on_escape: bool = True
    auto_close_time: int = Field(0, ge=0)
    priority: int = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    target_audience: Optional[TargetAudience] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_live(self, now: Optional[datetime] = None) -> bool:
        now = as_utc(now) or utcnow()
        if not self.enabled:
            return False
        if self.start_date and as_utc(self.start_date) > now:
            return False
        if self.end_date and as_utc(self.end_date) < now:
            return False
        return True

    def matches_role(self, role: Optional[str]) -> bool:
        roles = self.target_audience.roles if self.target_audience else []
        if not roles:
            return True
        if not role:
            return False
        return role.lower() in {r.lower() for r in roles}

    def matches_locale(self, locale: Optional[str]) -> bool:
        locales = self.target_audience.locales if self.target_audience else []
        if not locales:
            return True
        return bool(locale) and locale.lower() in {loc.lower() for loc in locales}

    def to_dict(self) -> dict:
        return self.model_dump()


class AdvertisementCreate(BaseModel):
    enabled: bool = True
    title: Optional[str] = None
    content: str = Field(..., min_length=1)
    image_url: Optional[str] = None
    link: Optional[str] = None
    link_text: str = "Xem thêm"
    delay_time: int = Field(0, ge=0)
    width: str = "auto"
    height: str = "auto"
    max_width: str = "90vw"
    max_height: str = "90vh"
    position: AdPosition = "center"
    show_close_button: bool = True
    close_on_click_outside: bool = True
    close_on_escape: bool = True
    auto_close_time: int = Field(0, ge=0)
    priority: int = 0
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    target_audience: Optional[TargetAudience] = None

    @model_validator(mode="after")
    def _check_window(self):
        if self.start_date and self.end_date and as_utc(self.end_date) < as_utc(self.start_date):
            raise ValueError("end_date must not be before start_date")
        return self


class AdvertisementUpdate(PartialUpdate):
    NULLABLE = frozenset({"title", "image_url", "link", "start_date", "end_date", "target_audience"})

    enabled: Optional[bool] = None
    title: Optional[str] = None
    content: Optional[str] = Field(None, min_length=1)
    image_url: Optional[str] = None
    link: Optional[str] = None
    link_text: Optional[str] = None
    delay_time: Optional[int] = Field(None, ge=0)
    width: Optional[str] = None
    height: Optional[str] = None
    max_width: Optional[str] = None
    max_height: Optional[str] = None
    position: Optional[AdPosition] = None
    show_close_button: Optional[bool] = None
    close_on_click_outside: Optional[bool] = None
    close_on_escape: Optional[bool] = None
    auto_close_time: Optional[int] = Field(None, ge=0)
    priority: Optional[int] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    target_audience: Optional[TargetAudience] = None
