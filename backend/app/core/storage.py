"""
Local file storage for uploaded proofs, invoices and images
"""
import logging
import os
import uuid
from pathlib import Path
from typing import Dict, Optional

from fastapi import UploadFile

from app.core.config import settings
from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
DOCUMENT_EXTENSIONS = {".pdf"}
ALLOWED_FOLDERS = {"images", "proofs", "invoices", "debts", "news", "activities", "advertisements"}


def _safe_folder(folder: str) -> str:
    folder = (folder or "images").strip().lower()
    if folder not in ALLOWED_FOLDERS:
        raise ValidationError(f"Invalid upload folder: {folder}")
    return folder


def save_upload(file: UploadFile, folder: str = "images", allow_documents: bool = False) -> Dict:
    """
    Validate and store an uploaded file on disk.

    Returns:
        {"url", "filename", "size"}
    """
    if file is None or not file.filename:
        raise ValidationError("No file uploaded")

    folder = _safe_folder(folder)
    extension = Path(file.filename).suffix.lower()
    allowed = IMAGE_EXTENSIONS | (DOCUMENT_EXTENSIONS if allow_documents else set())
    if extension not in allowed:
        raise ValidationError(f"File type {extension or 'unknown'} is not allowed")

    content = file.file.read()
    max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
    if len(content) > max_bytes:
        raise ValidationError(f"File exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit")
    if not content:
        raise ValidationError("Uploaded file is empty")

    target_dir = Path(settings.UPLOAD_DIR) / folder
    target_dir.mkdir(parents=True, exist_ok=True)

    filename = f"{uuid.uuid4().hex}{extension}"
    with open(target_dir / filename, "wb") as out:
        out.write(content)

    url = f"{settings.UPLOAD_BASE_URL.rstrip('/')}/{folder}/{filename}"
    logger.info(f"Stored upload {file.filename} as {url} ({len(content)} bytes)")
    return {"url": url, "filename": filename, "size": len(content)}


def delete_upload(url: Optional[str]) -> bool:
    """Remove a previously stored file given its public URL"""
    if not url or not url.startswith(settings.UPLOAD_BASE_URL):
        return False
    relative = url[len(settings.UPLOAD_BASE_URL):].lstrip("/")
    path = Path(settings.UPLOAD_DIR) / relative
    if path.is_file():
        os.remove(path)
        return True
    return False
