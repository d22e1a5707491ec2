"""
Advertisement API endpoints
- Public: the popup ad to show the current visitor
- Admin: CRUD and enable toggle

Author: TM3
Date: 2025-10-17
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Query, status

from app.core.auth import TokenUser, get_current_user_optional, require_admin
from app.core.responses import Pagination, paginated_response, success_response
from app.domain.content import AdvertisementCreate, AdvertisementUpdate
from app.services.content_service import AdvertisementService, primary_language

router = APIRouter()


def get_advertisement_service() -> AdvertisementService:
    return AdvertisementService()


@router.get("/active")
async def active_advertisement(
    accept_language: Optional[str] = Header(None),
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    service: AdvertisementService = Depends(get_advertisement_service),
):
    """Highest priority live ad for the caller's role and language, or null"""
    ad = service.get_active(user.role if user else None, primary_language(accept_language))
    return success_response(ad)


@router.get("", dependencies=[Depends(require_admin)])
async def list_advertisements(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    service: AdvertisementService = Depends(get_advertisement_service),
):
    pagination = Pagination.from_params(page, limit)
    ads, total = service.list_ads(pagination.limit, pagination.offset)
    return paginated_response(ads, pagination, total)


@router.get("/{ad_id}", dependencies=[Depends(require_admin)])
async def get_advertisement(ad_id: int, service: AdvertisementService = Depends(get_advertisement_service)):
    return success_response(service.get_ad(ad_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_advertisement(
    payload: AdvertisementCreate,
    current_user: TokenUser = Depends(require_admin),
    service: AdvertisementService = Depends(get_advertisement_service),
):
    return success_response(service.create_ad(payload, current_user.id), "Advertisement created")


@router.put("/{ad_id}", dependencies=[Depends(require_admin)])
async def update_advertisement(ad_id: int, payload: AdvertisementUpdate,
                               service: AdvertisementService = Depends(get_advertisement_service)):
    return success_response(service.update_ad(ad_id, payload), "Advertisement updated")


@router.patch("/{ad_id}/toggle", dependencies=[Depends(require_admin)])
async def toggle_advertisement(ad_id: int, service: AdvertisementService = Depends(get_advertisement_service)):
    ad = service.toggle(ad_id)
    return success_response(ad, "Advertisement enabled" if ad.enabled else "Advertisement disabled")


@router.delete("/{ad_id}", dependencies=[Depends(require_admin)])
async def delete_advertisement(ad_id: int, service: AdvertisementService = Depends(get_advertisement_service)):
    service.delete_ad(ad_id)
    return success_response(message="Advertisement deleted")
