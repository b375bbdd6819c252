from __future__ import annotations

import logging
import re
import secrets
import time
from datetime import timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from form_builder_service.config import get_settings
from form_builder_service.errors import BadRequest, NotFound
from form_builder_service.timeutil import iso, utcnow

logger = logging.getLogger(__name__)

HARD_MAX_MB = 10
URL_PREFIX = "/api/uploads/files"

_IMAGES = ["image/jpeg", "image/png", "image/gif", "image/webp", "image/svg+xml"]
ACCEPTED_TYPES: Dict[str, List[str]] = {
    "images": _IMAGES,
    "documents": [
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "text/plain",
        "text/csv",
    ],
    "pdf": ["application/pdf"],
    "pdf_image": ["application/pdf", *_IMAGES],
    # empty list accepts everything
    "all": [],
}

_SEGMENT = re.compile(r"^[A-Za-z0-9_-]{1,128}$")


def upload_root() -> Path:
    return Path(get_settings().upload_dir).resolve()


def _segment(value: str, name: str) -> str:
    v = str(value or "").strip()
    if not _SEGMENT.match(v):
        raise BadRequest(f"Invalid {name}")
    return v


def check_file(*, size: int, content_type: str, accepted: str, max_size_mb: Optional[int]) -> None:
    requested = max_size_mb if max_size_mb and max_size_mb > 0 else HARD_MAX_MB
    limit = min(requested, HARD_MAX_MB) * 1024 * 1024
    if size > limit:
        raise BadRequest(f"File size exceeds maximum of {min(requested, HARD_MAX_MB)}MB")
    allowed = ACCEPTED_TYPES.get(accepted or "all", [])
    if allowed and content_type not in allowed:
        raise BadRequest(f"File type {content_type} is not accepted")


def save_upload(
    *,
    data: bytes,
    original_name: str,
    content_type: str,
    form_id: str,
    submission_id: str,
    field_id: str,
    accepted: str = "all",
    max_size_mb: Optional[int] = None,
) -> Dict[str, Any]:
    form_seg = _segment(form_id, "formId")
    sub_seg = _segment(submission_id, "submissionId")
    field_seg = _segment(field_id, "fieldId")
    check_file(size=len(data), content_type=content_type, accepted=accepted, max_size_mb=max_size_mb)

    stamp = int(time.time() * 1000)
    ext = Path(original_name or "").suffix.lstrip(".")
    ext = re.sub(r"[^A-Za-z0-9]", "", ext)[:10]
    filename = f"{stamp}-{secrets.token_hex(6)}" + (f".{ext}" if ext else "")

    folder = upload_root() / "forms" / form_seg / sub_seg
    folder.mkdir(parents=True, exist_ok=True)
    (folder / filename).write_bytes(data)
    logger.info("stored upload %s (%d bytes) for form %s", filename, len(data), form_seg)

    return {
        "fileId": f"{form_seg}-{sub_seg}-{field_seg}-{stamp}",
        "filename": filename,
        "originalName": original_name,
        "size": len(data),
        "type": content_type,
        "url": f"{URL_PREFIX}/forms/{form_seg}/{sub_seg}/{filename}",
        "expiresAt": iso(utcnow() + timedelta(days=365 * 10)),
    }


def resolve_stored(relative: str) -> Path:
    """Absolute path of a stored upload; rejects anything outside the upload root."""
    root = upload_root()
    target = (root / str(relative or "")).resolve()
    if root not in target.parents or not target.is_file():
        raise NotFound("File not found")
    return target
