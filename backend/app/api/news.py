"""
News API endpoints

Author: TM3
Date: 2025-10-17
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.core.auth import TokenUser, require_admin
from app.core.responses import Pagination, paginated_response, success_response
from app.domain.content import NewsCreate, NewsUpdate
from app.services.content_service import NewsService

router = APIRouter()


def get_news_service() -> NewsService:
    return NewsService()


# =============================================================================
# Admin
# =============================================================================

@router.get("/admin/list", dependencies=[Depends(require_admin)])
async def admin_list_news(
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(draft|published)$"),
    locale: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    service: NewsService = Depends(get_news_service),
):
    pagination = Pagination.from_params(page, limit)
    items, total = service.list_all(status_filter, locale, search, pagination.limit, pagination.offset)
    return paginated_response(items, pagination, total)


@router.get("/admin/{news_id}", dependencies=[Depends(require_admin)])
async def admin_get_news(news_id: int, service: NewsService = Depends(get_news_service)):
    return success_response(service.get_news(news_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_news(
    payload: NewsCreate,
    current_user: TokenUser = Depends(require_admin),
    service: NewsService = Depends(get_news_service),
):
    return success_response(service.create_news(payload, current_user.id), "News created")


@router.put("/{news_id}", dependencies=[Depends(require_admin)])
async def update_news(news_id: int, payload: NewsUpdate, service: NewsService = Depends(get_news_service)):
    return success_response(service.update_news(news_id, payload), "News updated")


@router.delete("/{news_id}", dependencies=[Depends(require_admin)])
async def delete_news(news_id: int, service: NewsService = Depends(get_news_service)):
    service.delete_news(news_id)
    return success_response(message="News deleted")


# =============================================================================
# Public
# =============================================================================

@router.get("")
async def list_news(
    locale: str = Query("vi"),
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1),
    service: NewsService = Depends(get_news_service),
):
    """Published news, featured first"""
    pagination = Pagination.from_params(page, limit)
    items, total = service.list_published(locale, category, search, pagination.limit, pagination.offset)
    return paginated_response(items, pagination, total)


@router.get("/{slug}")
async def get_news_by_slug(slug: str, service: NewsService = Depends(get_news_service)):
    return success_response(service.get_published_by_slug(slug))
