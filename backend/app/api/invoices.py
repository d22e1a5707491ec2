"""
Invoice API endpoints (staff)
Invoice reminders over customer orders: remind, issue, attach files

Author: TM3
Date: 2025-10-17
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.core.auth import TokenUser, require_staff
from app.core.responses import Pagination, paginated_response, success_response
from app.core.storage import save_upload
from app.domain.invoice import InvoiceCreate, InvoiceIssue, InvoiceRemind, InvoiceUpdate
from app.services.invoice_service import InvoiceService

router = APIRouter(dependencies=[Depends(require_staff)])


def get_invoice_service() -> InvoiceService:
    return InvoiceService()


@router.get("")
async def list_invoices(
    customer_id: Optional[int] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Invoice number or order number"),
    deadline_from: Optional[datetime] = Query(None),
    deadline_to: Optional[datetime] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    service: InvoiceService = Depends(get_invoice_service),
):
    """Invoices sorted by deadline, with amount and status totals for the filter"""
    pagination = Pagination.from_params(page, limit)
    invoices, total, summary = service.list_invoices(
        customer_id=customer_id, status=status_filter, search=search,
        deadline_from=deadline_from, deadline_to=deadline_to,
        limit=pagination.limit, offset=pagination.offset,
    )
    return paginated_response(invoices, pagination, total, summary=summary)


@router.get("/{invoice_id}")
async def get_invoice(invoice_id: int, service: InvoiceService = Depends(get_invoice_service)):
    return success_response(service.get_invoice(invoice_id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_invoice(
    payload: InvoiceCreate,
    current_user: TokenUser = Depends(require_staff),
    service: InvoiceService = Depends(get_invoice_service),
):
    return success_response(service.create_invoice(payload, current_user.id), "Invoice created")


@router.put("/{invoice_id}")
async def update_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    current_user: TokenUser = Depends(require_staff),
    service: InvoiceService = Depends(get_invoice_service),
):
    return success_response(service.update_invoice(invoice_id, payload, current_user.id), "Invoice updated")


@router.post("/{invoice_id}/remind")
async def remind_invoice(
    invoice_id: int,
    payload: Optional[InvoiceRemind] = None,
    current_user: TokenUser = Depends(require_staff),
    service: InvoiceService = Depends(get_invoice_service),
):
    invoice = service.remind(invoice_id, payload or InvoiceRemind(), current_user.id)
    return success_response(invoice, "Reminder recorded")


@router.post("/{invoice_id}/issue")
async def issue_invoice(
    invoice_id: int,
    payload: Optional[InvoiceIssue] = None,
    current_user: TokenUser = Depends(require_staff),
    service: InvoiceService = Depends(get_invoice_service),
):
    invoice = service.issue(invoice_id, payload or InvoiceIssue(), current_user.id)
    return success_response(invoice, "Invoice issued")


@router.post("/{invoice_id}/upload")
async def upload_invoice_file(
    invoice_id: int,
    file: UploadFile = File(...),
    file_type: str = Query("invoice", alias="type", pattern="^(invoice|vat)$"),
    current_user: TokenUser = Depends(require_staff),
    service: InvoiceService = Depends(get_invoice_service),
):
    service.get_invoice(invoice_id)
    stored = save_upload(file, folder="invoices", allow_documents=True)
    invoice = service.attach_file(invoice_id, stored["url"], file_type, current_user.id)
    return success_response(invoice, "File uploaded")


@router.delete("/{invoice_id}")
async def delete_invoice(invoice_id: int, service: InvoiceService = Depends(get_invoice_service)):
    service.delete_invoice(invoice_id)
    return success_response(message="Invoice deleted")
