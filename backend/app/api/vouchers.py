"""
Voucher API endpoints
- Public preview of a code against a subtotal (rate limited)
- Admin CRUD with runtime-aware status filters

Author: TM3
Date: 2025-10-17
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.core.auth import TokenUser, get_current_user_optional, require_admin
from app.core.rate_limit import rate_limit
from app.core.responses import Pagination, paginated_response, success_response
from app.domain.voucher import VoucherApply, VoucherCreate, VoucherUpdate
from app.services.voucher_service import VoucherService

router = APIRouter()

VOUCHER_APPLY_LIMIT = 30


def get_voucher_service() -> VoucherService:
    return VoucherService()


@router.post("/apply", dependencies=[Depends(rate_limit(VOUCHER_APPLY_LIMIT, 60))])
async def apply_voucher(
    payload: VoucherApply,
    user: Optional[TokenUser] = Depends(get_current_user_optional),
    service: VoucherService = Depends(get_voucher_service),
):
    """
    Preview a voucher without consuming it.

    Returns:
        {voucher, discount, final_amount, runtime_status}
    """
    result = service.preview(payload.code, payload.subtotal, user.id if user else None)
    return success_response(result, "Voucher applied")


@router.get("", dependencies=[Depends(require_admin)])
async def list_vouchers(
    search: Optional[str] = Query(None, description="Search by code or name"),
    status_filter: str = Query("all", alias="status", pattern="^(all|disabled|draft|scheduled|active|expired)$"),
    is_active: Optional[bool] = Query(None),
    sort: str = Query("latest", pattern="^(latest|usage)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    service: VoucherService = Depends(get_voucher_service),
):
    pagination = Pagination.from_params(page, limit, max_limit=100)
    vouchers, total = service.list_vouchers(
        search, status_filter, is_active, sort, pagination.limit, pagination.offset,
    )
    return paginated_response(vouchers, pagination, total)


@router.get("/{voucher_id}", dependencies=[Depends(require_admin)])
async def get_voucher(voucher_id: int, service: VoucherService = Depends(get_voucher_service)):
    return success_response(service.get_voucher(voucher_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_voucher(
    payload: VoucherCreate,
    current_user: TokenUser = Depends(require_admin),
    service: VoucherService = Depends(get_voucher_service),
):
    return success_response(service.create_voucher(payload, created_by=current_user.id), "Voucher created")


@router.put("/{voucher_id}", dependencies=[Depends(require_admin)])
async def update_voucher(voucher_id: int, payload: VoucherUpdate,
                         service: VoucherService = Depends(get_voucher_service)):
    return success_response(service.update_voucher(voucher_id, payload), "Voucher updated")


@router.delete("/{voucher_id}", dependencies=[Depends(require_admin)])
async def delete_voucher(voucher_id: int, service: VoucherService = Depends(get_voucher_service)):
    service.delete_voucher(voucher_id)
    return success_response(message="Voucher deleted")
