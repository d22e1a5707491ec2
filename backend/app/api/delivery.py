"""
Delivery tracking API endpoints (staff)

Author: TM3
Date: 2025-10-17
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.core.auth import TokenUser, require_staff
from app.core.responses import Pagination, paginated_response, success_response
from app.core.storage import save_upload
from app.domain.delivery import DeliveryCreate, DeliveryUpdate
from app.services.delivery_service import DeliveryService

router = APIRouter(dependencies=[Depends(require_staff)])


def get_delivery_service() -> DeliveryService:
    return DeliveryService()


@router.get("/new")
async def new_delivery_code(service: DeliveryService = Depends(get_delivery_service)):
    """Unused order code for the delivery form (LALC{MM}{YY}-{NNNN})"""
    return success_response({"order_code": service.new_code()})


@router.get("")
async def list_deliveries(
    search: Optional[str] = Query(None, description="Order code or buyer name"),
    buyer_name: Optional[str] = Query(None),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    is_shipped: Optional[bool] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    service: DeliveryService = Depends(get_delivery_service),
):
    pagination = Pagination.from_params(page, limit)
    deliveries, total = service.list_deliveries(
        search=search, buyer_name=buyer_name, date_from=date_from, date_to=date_to,
        is_shipped=is_shipped, status=status_filter,
        limit=pagination.limit, offset=pagination.offset,
    )
    return paginated_response(deliveries, pagination, total)


@router.get("/code/{order_code}")
async def get_delivery_by_code(order_code: str, service: DeliveryService = Depends(get_delivery_service)):
    return success_response(service.get_by_code(order_code))


@router.get("/{delivery_id}")
async def get_delivery(delivery_id: int, service: DeliveryService = Depends(get_delivery_service)):
    return success_response(service.get_delivery(delivery_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_delivery(
    payload: DeliveryCreate,
    current_user: TokenUser = Depends(require_staff),
    service: DeliveryService = Depends(get_delivery_service),
):
    return success_response(service.create_delivery(payload, current_user.id), "Delivery order created")


@router.put("/{delivery_id}")
async def update_delivery(delivery_id: int, payload: DeliveryUpdate,
                          service: DeliveryService = Depends(get_delivery_service)):
    return success_response(service.update_delivery(delivery_id, payload), "Delivery order updated")


@router.post("/{delivery_id}/proof")
async def upload_delivery_proof(
    delivery_id: int,
    file: UploadFile = File(...),
    service: DeliveryService = Depends(get_delivery_service),
):
    service.get_delivery(delivery_id)
    stored = save_upload(file, folder="proofs")
    return success_response(service.attach_proof(delivery_id, stored["url"]), "Proof uploaded")


@router.get("/{delivery_id}/proof")
async def get_delivery_proof(delivery_id: int, service: DeliveryService = Depends(get_delivery_service)):
    return success_response({"proof_image": service.get_proof(delivery_id)})


@router.delete("/{delivery_id}")
async def delete_delivery(delivery_id: int, service: DeliveryService = Depends(get_delivery_service)):
    service.delete_delivery(delivery_id)
    return success_response(message="Delivery order deleted")
