"""
Service for warehouse inventory (jars in stock) and its movements.

List and stats reads are cached; every write clears the inventory prefix.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from app.core.cache import get_cache
from app.core.exceptions import NotFoundError, ValidationError
from app.domain.inventory import (
    InventoryItem, InventoryHistory, InventoryCreate, InventoryUpdate, StockAdjustment,
)
from app.repositories.inventory_repository import InventoryRepository

logger = logging.getLogger(__name__)

CACHE_PREFIX = "inventory:"
INVENTORY_CACHE_TTL = 120


class InventoryService:
    """Service for inventory business logic"""

    def __init__(self, repo: Optional[InventoryRepository] = None, cache=None):
        self.repo = repo or InventoryRepository()
        self.cache = cache or get_cache()

    def _invalidate(self):
        self.cache.delete_prefix(CACHE_PREFIX)

    def list_items(self, search: Optional[str] = None, location: Optional[str] = None,
                   category: Optional[str] = None, low_stock: Optional[bool] = None,
                   premium: Optional[bool] = None, limit: int = 20, offset: int = 0) -> Dict:
        """
        Cached page of inventory items

        Returns:
            {"items": [...], "total": n}
        """
        key = f"{CACHE_PREFIX}list:{search}:{location}:{category}:{low_stock}:{premium}:{limit}:{offset}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        items, total = self.repo.find_all(
            search=search, location=location, category=category,
            low_stock=low_stock, premium=premium, limit=limit, offset=offset,
        )
        result = {"items": [item.to_dict() for item in items], "total": total}
        self.cache.set(key, result, INVENTORY_CACHE_TTL)
        return result

    def get_stats(self) -> Dict:
        key = f"{CACHE_PREFIX}stats"
        cached = self.cache.get(key)
        if cached is not None:
            return cached
        stats = self.repo.get_stats()
        self.cache.set(key, stats, INVENTORY_CACHE_TTL)
        return stats

    def get_item(self, item_id: int) -> InventoryItem:
        item = self.repo.find_by_id(item_id)
        if not item:
            raise NotFoundError("Inventory item", item_id)
        return item

    def create_item(self, payload: InventoryCreate) -> InventoryItem:
        item = self.repo.create(payload.model_dump())
        self._invalidate()
        logger.info(f"Created inventory item {item.id} ({item.name})")
        return item

    def update_item(self, item_id: int, payload: InventoryUpdate) -> InventoryItem:
        item = self.repo.update(item_id, payload.model_dump(exclude_unset=True))
        if not item:
            raise NotFoundError("Inventory item", item_id)
        self._invalidate()
        return item

    def delete_item(self, item_id: int) -> None:
        if not self.repo.delete(item_id):
            raise NotFoundError("Inventory item", item_id)
        self._invalidate()
        logger.info(f"Deleted inventory item {item_id} and its history")

    def adjust_stock(self, item_id: int, payload: StockAdjustment,
                     user_id: Optional[int] = None) -> Tuple[InventoryItem, InventoryHistory]:
        """Import or export jars; an export larger than the stock is rejected"""
        item = self.get_item(item_id)
        try:
            item.apply_movement(payload.type, payload.amount)
        except ValueError as e:
            raise ValidationError(str(e))

        delta = -payload.amount if payload.type == "export" else payload.amount
        updated, history = self.repo.adjust(
            item, delta, payload.type, payload.amount,
            partner=payload.partner, note=payload.note, created_by=user_id,
        )
        self._invalidate()
        logger.info(f"Inventory {item.name}: {payload.type} {payload.amount} (now {updated.quantity})")
        return updated, history

    def list_history(self, inventory_id: Optional[int] = None, movement_type: Optional[str] = None,
                     date_from: Optional[datetime] = None, date_to: Optional[datetime] = None,
                     search: Optional[str] = None, limit: int = 20,
                     offset: int = 0) -> Tuple[List[InventoryHistory], int]:
        return self.repo.find_history(
            inventory_id=inventory_id, movement_type=movement_type,
            date_from=date_from, date_to=date_to, search=search,
            limit=limit, offset=offset,
        )
