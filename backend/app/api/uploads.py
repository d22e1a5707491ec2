"""
Upload API endpoint (staff)
Stores images on local disk and returns their public URL

Author: TM3
Date: 2025-10-17
"""
from fastapi import APIRouter, Depends, File, Query, UploadFile, status

from app.core.auth import require_staff
from app.core.responses import success_response
from app.core.storage import save_upload

router = APIRouter(dependencies=[Depends(require_staff)])


@router.post("/image", status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: UploadFile = File(...),
    folder: str = Query("images", description="images, proofs, invoices, debts, news, activities, advertisements"),
):
    """
    Upload one image.

    Returns:
        {url, filename, size}
    """
    return success_response(save_upload(file, folder=folder), "File uploaded")
