"""
Translation Service - locale maps, key resolution with fallbacks, admin upserts

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from app.core.cache import get_cache
from app.core.config import settings
from app.core.exceptions import AppError, NotFoundError, ValidationError
from app.domain.translation import (
    SUPPORTED_LOCALES,
    Translation,
    TranslationUpsert,
    parse_key,
    resolve_candidates,
)
from app.repositories.translation_repository import TranslationRepository

logger = logging.getLogger(__name__)

CACHE_PREFIX = "translations:"


def check_locale(locale: str) -> str:
    locale = (locale or "").strip().lower()
    if locale not in SUPPORTED_LOCALES:
        raise ValidationError(f"Unsupported locale: {locale}")
    return locale


class TranslationService:
    """Business logic for translations"""

    def __init__(self, repo: Optional[TranslationRepository] = None, cache=None):
        self.repo = repo or TranslationRepository()
        self.cache = cache or get_cache()

    def _invalidate(self):
        self.cache.delete_prefix(CACHE_PREFIX)

    def get_locale_map(self, locale: str) -> Dict[str, str]:
        """All values of a locale keyed by base_key (plus _variant when present)"""
        locale = check_locale(locale)
        key = f"{CACHE_PREFIX}locale:{locale}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        result = {}
        for translation in self.repo.find_by_locale(locale):
            map_key = translation.base_key
            if translation.variant:
                map_key = f"{map_key}_{translation.variant}"
            result[map_key] = translation.value

        self.cache.set(key, result, settings.TRANSLATION_CACHE_TTL)
        return result

    def resolve(self, base_key: str, locale: str, variant: Optional[str] = None) -> str:
        """
        Best value for a key, walking the fallback chain.

        Falls back to the base key itself when nothing matches.
        """
        return self.resolve_many([base_key], locale, variant)[base_key]

    def resolve_many(self, base_keys: List[str], locale: str, variant: Optional[str] = None) -> Dict[str, str]:
        locale = check_locale(locale)
        candidates_by_key = {
            base_key: resolve_candidates(base_key, locale, variant) for base_key in base_keys
        }
        all_candidates = sorted({c for candidates in candidates_by_key.values() for c in candidates})
        values = self.repo.find_values(all_candidates)

        resolved = {}
        for base_key, candidates in candidates_by_key.items():
            resolved[base_key] = next((values[c] for c in candidates if c in values), base_key)
        return resolved

    def get_by_base_key(self, base_key: str) -> List[Translation]:
        return self.repo.find_by_base_key(base_key)

    def list_translations(self, locale: Optional[str], category: Optional[str], search: Optional[str],
                          limit: int, offset: int) -> Tuple[List[Translation], int]:
        return self.repo.find_all(locale=locale, category=category, search=search, limit=limit, offset=offset)

    def upsert(self, payload: TranslationUpsert, user_id: Optional[int] = None) -> Translation:
        parsed = parse_key(payload.key)
        if parsed.locale is None or not parsed.base_key:
            raise ValidationError(
                f"Key {payload.key} must end with a locale suffix ({', '.join(SUPPORTED_LOCALES)})"
            )

        translation = self.repo.upsert(Translation(
            key=payload.key,
            base_key=parsed.base_key,
            locale=parsed.locale,
            variant=parsed.variant,
            value=payload.value,
            category=payload.category,
            description=payload.description,
            updated_by=user_id,
        ))
        self._invalidate()
        return translation

    def delete(self, key: str) -> None:
        if not self.repo.delete(key):
            raise NotFoundError("Translation", message=f"Translation {key} not found")
        self._invalidate()

    def bulk_import(self, items: List[dict], user_id: Optional[int] = None) -> Dict:
        """
        Upsert many translations; invalid rows are reported, not fatal.

        Returns:
            {"success": n, "failed": n, "errors": [{"key", "error"}]}
        """
        success, errors = 0, []
        for raw in items:
            key = raw.get("key") if isinstance(raw, dict) else None
            try:
                self.upsert(TranslationUpsert(**raw), user_id)
                success += 1
            except (PydanticValidationError, AppError, TypeError) as e:
                message = e.message if isinstance(e, AppError) else str(e)
                errors.append({"key": key, "error": message})

        logger.info(f"Translation import: {success} ok, {len(errors)} failed")
        return {"success": success, "failed": len(errors), "errors": errors}
