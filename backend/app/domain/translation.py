"""
Translation Domain Models and key grammar

Keys look like `{base}_{locale}` or `{base}_{variant}_{locale}`, e.g.
`product_title_en` or `product_title_short_vn`.

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal, NamedTuple
from datetime import datetime

SUPPORTED_LOCALES = (
    "vn", "en", "ja", "ar", "br", "cl", "co", "id", "mx", "my", "ph", "pl", "sg", "th",
)
FALLBACK_LOCALES = ("vn", "en")
VARIANTS = ("short", "long")
CATEGORIES = (
    "product", "category", "brand", "ui", "error", "success", "validation",
    "email", "notification", "selling_point", "message",
)

TranslationCategory = Literal[
    "product", "category", "brand", "ui", "error", "success", "validation",
    "email", "notification", "selling_point", "message",
]


class ParsedKey(NamedTuple):
    base_key: str
    locale: Optional[str]
    variant: Optional[str]


def parse_key(key: str) -> ParsedKey:
    """
    Split a full key into (base_key, locale, variant).

    parse_key("title_short_en") -> ("title", "en", "short")
    parse_key("title_en")       -> ("title", "en", None)
    parse_key("title")          -> ("title", None, None)
    """
    key = (key or "").strip()
    parts = key.split("_")
    if len(parts) >= 2 and parts[-1] in SUPPORTED_LOCALES:
        locale = parts[-1]
        if len(parts) >= 3 and parts[-2] in VARIANTS:
            return ParsedKey("_".join(parts[:-2]), locale, parts[-2])
        return ParsedKey("_".join(parts[:-1]), locale, None)
    return ParsedKey(key, None, None)


def build_key(base_key: str, locale: str, variant: Optional[str] = None) -> str:
    if variant:
        return f"{base_key}_{variant}_{locale}"
    return f"{base_key}_{locale}"


def resolve_candidates(base_key: str, locale: str, variant: Optional[str] = None) -> List[str]:
    """
    Lookup order for a translation:
    requested locale (variant first), then each fallback locale (variant first),
    then the bare base key.
    """
    candidates: List[str] = []

    def add(candidate: str):
        if candidate not in candidates:
            candidates.append(candidate)

    for loc in (locale, *FALLBACK_LOCALES):
        if variant:
            add(build_key(base_key, loc, variant))
        add(build_key(base_key, loc))
    add(base_key)
    return candidates


class Translation(BaseModel):
    id: Optional[int] = None
    key: str
    base_key: str
    locale: str
    variant: Optional[str] = None
    value: str
    category: TranslationCategory = "ui"
    description: Optional[str] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return self.model_dump()


class TranslationUpsert(BaseModel):
    key: str = Field(..., min_length=1)
    value: str
    category: TranslationCategory = "ui"
    description: Optional[str] = None

    @field_validator("key")
    @classmethod
    def _strip_key(cls, value: str) -> str:
        return value.strip()


class TranslationBulkRequest(BaseModel):
    locale: str
    keys: List[str] = Field(default_factory=list)
    variant: Optional[str] = None


class TranslationImport(BaseModel):
    items: List[dict] = Field(default_factory=list)
