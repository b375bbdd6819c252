from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import FileResponse

from form_builder_service import uploads
from form_builder_service.errors import BadRequest

router = APIRouter(prefix="/api/uploads", tags=["uploads"])


@router.post("")
async def upload(
    file: Optional[UploadFile] = File(default=None),
    form_id: str = Form(default="", alias="formId"),
    submission_id: str = Form(default="", alias="submissionId"),
    field_id: str = Form(default="", alias="fieldId"),
    accepted_types: str = Form(default="all", alias="acceptedTypes"),
    max_size_mb: Optional[int] = Form(default=None, alias="maxSizeMB"),
) -> Dict[str, Any]:
    if file is None:
        raise BadRequest("No file provided")
    if not form_id or not submission_id or not field_id:
        raise BadRequest("Missing required fields")
    data = await file.read()
    stored = uploads.save_upload(
        data=data,
        original_name=file.filename or "file",
        content_type=file.content_type or "application/octet-stream",
        form_id=form_id,
        submission_id=submission_id,
        field_id=field_id,
        accepted=accepted_types or "all",
        max_size_mb=max_size_mb,
    )
    return {"ok": True, "success": True, **stored}


@router.get("/files/{path:path}")
def download(path: str) -> FileResponse:
    target = uploads.resolve_stored(path)
    return FileResponse(target, filename=target.name)
