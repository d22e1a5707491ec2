"""
Voucher Service - discount code eligibility and administration

The discount arithmetic and runtime status live on the Voucher domain
model; this service adds the lookups (code, per-user usage) and turns
rule failures into AppErrors.

Author: TM3
Date: 2025-10-17
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from app.core.clock import as_utc
from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.domain.voucher import Voucher, VoucherCreate, VoucherUpdate, normalize_code
from app.repositories.voucher_repository import VoucherRepository

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    "draft": "Voucher is not available yet",
    "disabled": "Voucher has been disabled",
    "scheduled": "Voucher is not active yet",
    "expired": "Voucher has expired",
}


class VoucherService:
    """Business logic for vouchers"""

    def __init__(self, repo: Optional[VoucherRepository] = None):
        self.repo = repo or VoucherRepository()

    def preview(self, code: Optional[str], subtotal, user_id: Optional[int] = None) -> Dict:
        """
        Validate a code against an order subtotal without consuming it.

        Returns:
            {voucher, discount, final_amount, runtime_status}

        Raises:
            ValidationError / NotFoundError describing why the voucher cannot be used
        """
        code = normalize_code(code)
        if not code:
            raise ValidationError("Voucher code is required")

        subtotal = Decimal(str(subtotal or 0))
        if subtotal <= 0:
            raise ValidationError("Order subtotal must be greater than 0")

        voucher = self.repo.find_by_code(code)
        if not voucher:
            raise NotFoundError("Voucher", message="Voucher not found")

        runtime_status = voucher.runtime_status()
        if runtime_status != "active":
            raise ValidationError(STATUS_MESSAGES[runtime_status])

        if subtotal < voucher.min_order_value:
            raise ValidationError(
                f"Order must be at least {voucher.min_order_value:,.0f} to use this voucher"
            )

        if voucher.per_user_limit and user_id is not None:
            used = self.repo.get_user_usage_count(voucher.id, user_id)
            if used >= voucher.per_user_limit:
                raise ValidationError("You have reached the usage limit for this voucher")

        discount = voucher.calculate_discount(subtotal)
        if discount <= 0:
            raise ValidationError("Voucher does not apply to this order")

        return {
            "voucher": voucher,
            "discount": discount,
            "final_amount": max(subtotal - discount, Decimal("0")),
            "runtime_status": runtime_status,
        }

    def increment_usage(self, voucher_id: int, user_id: Optional[int] = None) -> Optional[Voucher]:
        voucher = self.repo.find_by_id(voucher_id)
        if not voucher:
            raise NotFoundError("Voucher", voucher_id)

        updated = self.repo.increment_usage(
            voucher_id,
            user_id=user_id,
            track_user=bool(voucher.per_user_limit) and user_id is not None,
        )
        if updated and updated.usage_limit_reached:
            logger.info(f"Voucher {updated.code} reached its usage limit and was expired")
        return updated

    # =========================================================================
    # Admin
    # =========================================================================

    def list_vouchers(self, search: Optional[str], status: Optional[str], is_active: Optional[bool],
                      sort: str, limit: int, offset: int) -> Tuple[List[Voucher], int]:
        if status == "all":
            status = None
        return self.repo.find_all(
            search=search, status=status, is_active=is_active,
            sort=sort, limit=limit, offset=offset,
        )

    def get_voucher(self, voucher_id: int) -> Voucher:
        voucher = self.repo.find_by_id(voucher_id)
        if not voucher:
            raise NotFoundError("Voucher", voucher_id)
        return voucher

    def create_voucher(self, payload: VoucherCreate, created_by: Optional[int] = None) -> Voucher:
        if self.repo.code_exists(payload.code):
            raise ConflictError(f"Voucher code {payload.code} already exists")
        voucher = self.repo.create(payload.model_dump(), created_by=created_by)
        logger.info(f"Created voucher {voucher.code}")
        return voucher

    def update_voucher(self, voucher_id: int, payload: VoucherUpdate) -> Voucher:
        current = self.get_voucher(voucher_id)
        fields = payload.model_dump(exclude_unset=True)

        if fields.get("code") and fields["code"] != current.code and self.repo.code_exists(
            fields["code"], exclude_id=voucher_id
        ):
            raise ConflictError(f"Voucher code {fields['code']} already exists")

        # Rules that span fields are checked against the merged result
        discount_type = fields.get("discount_type", current.discount_type)
        discount_value = fields.get("discount_value", current.discount_value)
        if discount_type == "percentage" and discount_value > 100:
            raise ValidationError("Percentage discount cannot exceed 100")
        start_date = fields.get("start_date") or current.start_date
        end_date = fields.get("end_date") or current.end_date
        if as_utc(end_date) <= as_utc(start_date):
            raise ValidationError("end_date must be after start_date")

        voucher = self.repo.update(voucher_id, fields)
        logger.info(f"Updated voucher {voucher_id}")
        return voucher

    def delete_voucher(self, voucher_id: int) -> None:
        if not self.repo.delete(voucher_id):
            raise NotFoundError("Voucher", voucher_id)
        logger.info(f"Deleted voucher {voucher_id}")
