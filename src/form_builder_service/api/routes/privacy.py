from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from form_builder_service import privacy
from form_builder_service.api.deps import current_user, get_db
from form_builder_service.errors import BadRequest
from form_builder_service.forms import parse_body
from form_builder_service.schemas import PrivacyRequest
from form_builder_service.store import FormStore, Record

router = APIRouter(prefix="/api/user", tags=["privacy"])


@router.get("/privacy")
def privacy_summary(
    store: FormStore = Depends(get_db),
    user: Record = Depends(current_user),
) -> Dict[str, Any]:
    return privacy.data_summary(store, user)


@router.post("/privacy")
def privacy_action(
    body: Dict[str, Any] = Body(default_factory=dict),
    store: FormStore = Depends(get_db),
    user: Record = Depends(current_user),
) -> Dict[str, Any]:
    req = parse_body(PrivacyRequest, body)
    if req.action == "export":
        return privacy.export_envelope(store, user)
    if req.action == "delete":
        return {"success": True, "deleted": privacy.delete_data(store, user, req.options)}
    raise BadRequest("Invalid action")
