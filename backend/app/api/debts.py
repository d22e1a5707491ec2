"""
Debt API endpoints (staff)
Customer debts per order with payments and proofs

Author: TM3
Date: 2025-10-17
"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.core.auth import TokenUser, require_staff
from app.core.responses import Pagination, paginated_response, success_response
from app.core.storage import save_upload
from app.domain.debt import DebtCreate, DebtPayment, DebtUpdate
from app.services.debt_service import DebtService

router = APIRouter(dependencies=[Depends(require_staff)])


def get_debt_service() -> DebtService:
    return DebtService()


@router.get("")
async def list_debts(
    customer_id: Optional[int] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Order number"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    service: DebtService = Depends(get_debt_service),
):
    pagination = Pagination.from_params(page, limit)
    debts, total, summary = service.list_debts(
        customer_id, status_filter, search, pagination.limit, pagination.offset,
    )
    return paginated_response(debts, pagination, total, summary=summary)


@router.get("/customer/{customer_id}")
async def customer_debts(customer_id: int, service: DebtService = Depends(get_debt_service)):
    return success_response(service.customer_debts(customer_id))


@router.get("/{debt_id}")
async def get_debt(debt_id: int, service: DebtService = Depends(get_debt_service)):
    return success_response(service.get_debt(debt_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_debt(
    payload: DebtCreate,
    current_user: TokenUser = Depends(require_staff),
    service: DebtService = Depends(get_debt_service),
):
    return success_response(service.create_debt(payload, current_user.id), "Debt recorded")


@router.put("/{debt_id}")
async def update_debt(
    debt_id: int,
    payload: DebtUpdate,
    current_user: TokenUser = Depends(require_staff),
    service: DebtService = Depends(get_debt_service),
):
    return success_response(service.update_debt(debt_id, payload, current_user.id), "Debt updated")


@router.post("/{debt_id}/pay")
async def pay_debt(
    debt_id: int,
    payload: Optional[DebtPayment] = None,
    current_user: TokenUser = Depends(require_staff),
    service: DebtService = Depends(get_debt_service),
):
    """Mark one item (item_id) or every unpaid item as paid"""
    debt = service.mark_paid(debt_id, payload or DebtPayment(), current_user.id)
    return success_response(debt, "Payment recorded")


@router.post("/{debt_id}/items/{item_id}/proof")
async def upload_payment_proof(
    debt_id: int,
    item_id: int,
    file: UploadFile = File(...),
    service: DebtService = Depends(get_debt_service),
):
    service.get_debt(debt_id)
    stored = save_upload(file, folder="debts", allow_documents=True)
    return success_response(service.attach_proof(debt_id, item_id, stored["url"]), "Payment proof uploaded")


@router.delete("/{debt_id}")
async def delete_debt(debt_id: int, service: DebtService = Depends(get_debt_service)):
    service.delete_debt(debt_id)
    return success_response(message="Debt deleted")
