from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import Response

from form_builder_service import submissions
from form_builder_service.api.deps import get_db, optional_user
from form_builder_service.store import FormStore, Record

router = APIRouter(prefix="/api/forms", tags=["submissions"])


@router.post("/{form_id}/submit")
def submit(
    form_id: str,
    body: Dict[str, Any] = Body(default_factory=dict),
    store: FormStore = Depends(get_db),
) -> Dict[str, Any]:
    return submissions.submit(store, form_id, body)


@router.get("/{form_id}/submissions/{edit_token}")
def get_editable_submission(form_id: str, edit_token: str, store: FormStore = Depends(get_db)) -> Dict[str, Any]:
    return {"ok": True, "submission": submissions.get_by_edit_token(store, form_id, edit_token)}


@router.put("/{form_id}/submissions/{edit_token}")
def edit_submission(
    form_id: str,
    edit_token: str,
    body: Dict[str, Any] = Body(default_factory=dict),
    store: FormStore = Depends(get_db),
) -> Dict[str, Any]:
    return submissions.edit_submission(store, form_id, edit_token, body)


@router.get("/{form_id}/submissions")
def list_submissions(
    form_id: str,
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    subs = submissions.list_submissions(store, form_id, user)
    return {"ok": True, "submissions": subs, "total": len(subs)}


@router.get("/{form_id}/check-submission")
def check_submission(
    form_id: str,
    respondent_id: Optional[str] = Query(default=None, alias="respondentId"),
    store: FormStore = Depends(get_db),
) -> Dict[str, Any]:
    return {"submitted": submissions.has_submitted(store, form_id, respondent_id)}


@router.get("/{form_id}/export")
def export(
    form_id: str,
    fmt: str = Query(default="csv", alias="format"),
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Response:
    content, media_type, filename = submissions.export(store, form_id, user, fmt)
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{form_id}/analytics")
def analytics(
    form_id: str,
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    return {"ok": True, **submissions.analytics(store, form_id, user)}
