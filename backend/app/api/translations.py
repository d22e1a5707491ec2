"""
Translation API endpoints
- Public: locale maps and key resolution with fallbacks
- Admin and translator: list, upsert, delete and bulk import

Author: TM3
Date: 2025-10-17
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.core.auth import TokenUser, require_translator
from app.core.responses import Pagination, paginated_response, success_response
from app.domain.translation import TranslationBulkRequest, TranslationImport, TranslationUpsert
from app.services.translation_service import TranslationService

router = APIRouter()


def get_translation_service() -> TranslationService:
    return TranslationService()


# =============================================================================
# Admin and translator
# =============================================================================

@router.get("/admin/list", dependencies=[Depends(require_translator)])
async def list_translations(
    locale: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Key or value"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    service: TranslationService = Depends(get_translation_service),
):
    pagination = Pagination.from_params(page, limit)
    translations, total = service.list_translations(
        locale, category, search, pagination.limit, pagination.offset,
    )
    return paginated_response(translations, pagination, total)


@router.put("")
async def upsert_translation(
    payload: TranslationUpsert,
    current_user: TokenUser = Depends(require_translator),
    service: TranslationService = Depends(get_translation_service),
):
    return success_response(service.upsert(payload, current_user.id), "Translation saved")


@router.post("/import")
async def import_translations(
    payload: TranslationImport,
    current_user: TokenUser = Depends(require_translator),
    service: TranslationService = Depends(get_translation_service),
):
    result = service.bulk_import(payload.items, current_user.id)
    return success_response(result, f"Imported {result['success']} translations")


@router.delete("/{key}", dependencies=[Depends(require_translator)])
async def delete_translation(key: str, service: TranslationService = Depends(get_translation_service)):
    service.delete(key)
    return success_response(message="Translation deleted")


# =============================================================================
# Public
# =============================================================================

@router.post("/bulk")
async def resolve_bulk(payload: TranslationBulkRequest,
                       service: TranslationService = Depends(get_translation_service)):
    return success_response(service.resolve_many(payload.keys, payload.locale, payload.variant))


@router.get("/base/{base_key}")
async def get_by_base_key(base_key: str, service: TranslationService = Depends(get_translation_service)):
    """Every locale and variant stored for a base key"""
    return success_response(service.get_by_base_key(base_key))


@router.get("/{locale}")
async def get_locale(locale: str, service: TranslationService = Depends(get_translation_service)):
    return success_response(service.get_locale_map(locale))


@router.get("/{locale}/{base_key}")
async def resolve_key(
    locale: str,
    base_key: str,
    variant: Optional[str] = Query(None, pattern="^(short|long)$"),
    service: TranslationService = Depends(get_translation_service),
):
    value = service.resolve(base_key, locale, variant)
    return success_response({"key": base_key, "locale": locale, "variant": variant, "value": value})
