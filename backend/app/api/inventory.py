"""
Inventory API Endpoints
Warehouse stock of jars: items, stats, import/export movements and their history

Author: TM3
Date: 2025-10-17
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.core.auth import TokenUser, require_staff
from app.core.responses import Pagination, paginated_response, success_response
from app.domain.inventory import InventoryCreate, InventoryUpdate, StockAdjustment
from app.services.inventory_service import InventoryService

router = APIRouter(dependencies=[Depends(require_staff)])


def get_inventory_service() -> InventoryService:
    return InventoryService()


@router.get("")
async def list_inventory(
    search: Optional[str] = Query(None, description="Search by item name"),
    location: Optional[str] = Query(None, description="Kho A, Kho B or Kho C"),
    category: Optional[str] = Query(None),
    low_stock: Optional[bool] = Query(None, description="Only items below their minimum stock"),
    premium: Optional[bool] = Query(None, description="Only Premium items"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    service: InventoryService = Depends(get_inventory_service),
):
    pagination = Pagination.from_params(page, limit)
    result = service.list_items(
        search=search, location=location, category=category,
        low_stock=low_stock, premium=premium,
        limit=pagination.limit, offset=pagination.offset,
    )
    return paginated_response(result["items"], pagination, result["total"])


@router.get("/stats")
async def inventory_stats(service: InventoryService = Depends(get_inventory_service)):
    """
    Get inventory statistics

    Returns:
    - total_items, total_jars
    - total_value, total_weight_kg
    - low_stock count
    """
    return success_response(service.get_stats())


@router.get("/history")
async def inventory_history(
    inventory_id: Optional[int] = Query(None),
    movement_type: Optional[str] = Query(None, alias="type", pattern="^(import|export)$"),
    date_from: Optional[datetime] = Query(None),
    date_to: Optional[datetime] = Query(None),
    search: Optional[str] = Query(None, description="Item name, partner or note"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    service: InventoryService = Depends(get_inventory_service),
):
    pagination = Pagination.from_params(page, limit)
    history, total = service.list_history(
        inventory_id=inventory_id, movement_type=movement_type,
        date_from=date_from, date_to=date_to, search=search,
        limit=pagination.limit, offset=pagination.offset,
    )
    return paginated_response(history, pagination, total)


@router.get("/{item_id}")
async def get_inventory_item(item_id: int, service: InventoryService = Depends(get_inventory_service)):
    return success_response(service.get_item(item_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_inventory_item(payload: InventoryCreate,
                                service: InventoryService = Depends(get_inventory_service)):
    return success_response(service.create_item(payload), "Inventory item created")


@router.put("/{item_id}")
async def update_inventory_item(item_id: int, payload: InventoryUpdate,
                                service: InventoryService = Depends(get_inventory_service)):
    return success_response(service.update_item(item_id, payload), "Inventory item updated")


@router.delete("/{item_id}")
async def delete_inventory_item(item_id: int, service: InventoryService = Depends(get_inventory_service)):
    service.delete_item(item_id)
    return success_response(message="Inventory item deleted")


@router.post("/{item_id}/adjust")
async def adjust_stock(
    item_id: int,
    payload: StockAdjustment,
    current_user: TokenUser = Depends(require_staff),
    service: InventoryService = Depends(get_inventory_service),
):
    item, history = service.adjust_stock(item_id, payload, current_user.id)
    return success_response({"item": item, "history": history}, "Stock adjusted")
