"""
Homepage settings API endpoints

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, Depends

from app.core.auth import TokenUser, require_admin
from app.core.responses import success_response
from app.domain.content import HomepageUpdate
from app.services.content_service import HomepageService

router = APIRouter()


def get_homepage_service() -> HomepageService:
    return HomepageService()


@router.get("")
async def get_homepage(service: HomepageService = Depends(get_homepage_service)):
    """Latest published settings (cached)"""
    return success_response(service.get_published())


@router.get("/draft")
async def get_homepage_draft(
    current_user: TokenUser = Depends(require_admin),
    service: HomepageService = Depends(get_homepage_service),
):
    return success_response(service.get_draft(current_user.id))


@router.put("")
async def update_homepage(
    payload: HomepageUpdate,
    current_user: TokenUser = Depends(require_admin),
    service: HomepageService = Depends(get_homepage_service),
):
    settings_doc = service.update(payload, current_user.id)
    message = "Homepage published" if payload.status == "published" else "Draft saved"
    return success_response(settings_doc, message)
