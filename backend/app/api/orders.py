"""
Orders API Endpoints
Checkout (guest and authenticated), customer order views and staff order management

Author: TM3
Date: 2025-10-17
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.core.auth import TokenUser, get_current_user, require_admin, require_staff
from app.core.responses import Pagination, paginated_response, success_response
from app.domain.order import OrderCancel, OrderCreate, OrderStatusUpdate
from app.services.order_service import OrderService

router = APIRouter()


def get_order_service() -> OrderService:
    return OrderService()


@router.post("/guest", status_code=status.HTTP_201_CREATED)
async def create_guest_order(payload: OrderCreate, service: OrderService = Depends(get_order_service)):
    """Guest checkout: guest_email and guest_name are required"""
    order = service.create_order(payload, user=None)
    return success_response(order, "Order created successfully")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    payload: OrderCreate,
    current_user: TokenUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    order = service.create_order(payload, user=current_user)
    return success_response(order, "Order created successfully")


@router.get("")
async def my_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    current_user: TokenUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    pagination = Pagination.from_params(page, limit)
    orders, total = service.list_my_orders(current_user, status_filter, pagination.limit, pagination.offset)
    return paginated_response(orders, pagination, total)


@router.get("/admin/all", dependencies=[Depends(require_staff)])
async def all_orders(
    status_filter: Optional[str] = Query(None, alias="status"),
    payment_status: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Order number, guest email or guest name"),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    service: OrderService = Depends(get_order_service),
):
    pagination = Pagination.from_params(page, limit)
    orders, total = service.list_all_orders(
        status=status_filter, payment_status=payment_status, search=search,
        date_from=date_from, date_to=date_to,
        limit=pagination.limit, offset=pagination.offset,
    )
    return paginated_response(orders, pagination, total)


@router.get("/{order_id}")
async def get_order(
    order_id: int,
    current_user: TokenUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return success_response(service.get_order(order_id, current_user))


@router.get("/{order_id}/tracking")
async def track_order(
    order_id: int,
    current_user: TokenUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    return success_response(service.tracking(order_id, current_user))


@router.put("/{order_id}/cancel")
async def cancel_order(
    order_id: int,
    payload: Optional[OrderCancel] = None,
    current_user: TokenUser = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
):
    order = service.cancel_order(order_id, current_user, payload.reason if payload else None)
    return success_response(order, "Order cancelled")


@router.put("/{order_id}/status")
async def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    current_user: TokenUser = Depends(require_staff),
    service: OrderService = Depends(get_order_service),
):
    order = service.update_status(order_id, payload, current_user)
    return success_response(order, f"Order status updated to {payload.status}")


@router.get("/{order_id}/history", dependencies=[Depends(require_admin)])
async def order_history(order_id: int, service: OrderService = Depends(get_order_service)):
    return success_response(service.get_history(order_id))


@router.delete("/{order_id}", dependencies=[Depends(require_staff)])
async def delete_order(order_id: int, service: OrderService = Depends(get_order_service)):
    service.delete_order(order_id)
    return success_response(message="Order deleted")
