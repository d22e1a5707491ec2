"""
Delivery Service - delivery slips with their items and proof of delivery

Author: TM3
Date: 2025-10-17
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from app.core.exceptions import AppError, ConflictError, NotFoundError, ValidationError
from app.domain.delivery import DeliveryOrder, DeliveryCreate, DeliveryUpdate, generate_delivery_code
from app.repositories.delivery_repository import DeliveryRepository

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 20


class DeliveryService:
    """Business logic for delivery orders"""

    def __init__(self, repo: Optional[DeliveryRepository] = None):
        self.repo = repo or DeliveryRepository()

    def new_code(self) -> str:
        """An order code not used by any delivery order yet"""
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_delivery_code()
            if not self.repo.code_exists(code):
                return code
        raise AppError("Could not generate a free delivery code, please retry", 500)

    def get_delivery(self, delivery_id: int) -> DeliveryOrder:
        delivery = self.repo.find_by_id(delivery_id)
        if not delivery:
            raise NotFoundError("Delivery order", delivery_id)
        return delivery

    def get_by_code(self, order_code: str) -> DeliveryOrder:
        delivery = self.repo.find_by_code(order_code)
        if not delivery:
            raise NotFoundError("Delivery order", message="Delivery order not found")
        return delivery

    def list_deliveries(
        self,
        search: Optional[str] = None,
        buyer_name: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
        is_shipped: Optional[bool] = None,
        status: Optional[str] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[DeliveryOrder], int]:
        return self.repo.find_all(
            search=search, buyer_name=buyer_name, date_from=date_from, date_to=date_to,
            is_shipped=is_shipped, status=status, limit=limit, offset=offset,
        )

    def create_delivery(self, payload: DeliveryCreate, user_id: Optional[int] = None) -> DeliveryOrder:
        buyer_name = (payload.buyer_name or "").strip()
        if not payload.order_code or not buyer_name or not payload.delivery_date or not payload.items:
            raise ValidationError("Missing required fields: order_code, buyer_name, delivery_date, items")
        if not payload.proof_image:
            raise ValidationError("Proof image is required")
        if self.repo.code_exists(payload.order_code):
            raise ConflictError("Order code already exists")

        delivery = DeliveryOrder(
            **payload.model_dump(exclude={"buyer_name"}),
            buyer_name=buyer_name,
            status="completed",
            created_by=user_id,
        )
        delivery_id = self.repo.create(delivery)
        logger.info(f"Created delivery order {delivery.order_code} ({delivery.amount})")
        return self.get_delivery(delivery_id)

    def update_delivery(self, delivery_id: int, payload: DeliveryUpdate) -> DeliveryOrder:
        delivery = self.get_delivery(delivery_id)
        fields = payload.model_dump(exclude_unset=True, exclude={"items"})

        if fields.get("buyer_name") is not None:
            fields["buyer_name"] = fields["buyer_name"].strip()
        for field, value in fields.items():
            setattr(delivery, field, value)

        if payload.items is not None:
            try:
                delivery.merge_items(payload.items)
            except ValueError as e:
                raise ValidationError(f"Invalid items: {e}")

        if delivery.status == "completed" and not (delivery.buyer_name or "").strip():
            raise ValidationError("buyer_name is required when status is completed")

        self.repo.save(delivery)
        return self.get_delivery(delivery_id)

    def attach_proof(self, delivery_id: int, url: str) -> DeliveryOrder:
        if not self.repo.set_proof(delivery_id, url):
            raise NotFoundError("Delivery order", delivery_id)
        return self.get_delivery(delivery_id)

    def get_proof(self, delivery_id: int) -> str:
        delivery = self.get_delivery(delivery_id)
        if not delivery.proof_image:
            raise NotFoundError("Proof image", message="No proof image for this delivery order")
        return delivery.proof_image

    def delete_delivery(self, delivery_id: int) -> None:
        if not self.repo.delete(delivery_id):
            raise NotFoundError("Delivery order", delivery_id)
        logger.info(f"Deleted delivery order {delivery_id}")
