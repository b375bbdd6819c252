from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import RedirectResponse

from form_builder_service.api.deps import get_db, optional_user
from form_builder_service.forms import parse_body
from form_builder_service.integrations import google_sheets, manage, notion
from form_builder_service.schemas import GoogleSheetsConfigRequest, NotionConfigRequest
from form_builder_service.store import FormStore, Record

router = APIRouter(prefix="/api/integrations", tags=["integrations"])


# --- Google Sheets ---


@router.get("/google-sheets/oauth")
def google_oauth(
    form_id: str = Query(default="", alias="formId"),
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> RedirectResponse:
    return RedirectResponse(manage.google_oauth_url(store, form_id, user), status_code=307)


@router.get("/google-sheets/oauth/callback")
def google_oauth_callback(
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    error: Optional[str] = Query(default=None),
    store: FormStore = Depends(get_db),
) -> RedirectResponse:
    target = manage.google_oauth_callback(store, code=code, state=state, error=error)
    return RedirectResponse(target, status_code=307)


@router.get("/google-sheets")
def get_google_sheets(
    form_id: str = Query(default="", alias="formId"),
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    return {"ok": True, "integration": manage.get_integration(store, form_id, google_sheets.INTEGRATION_TYPE, user)}


@router.post("/google-sheets")
def configure_google_sheets(
    body: Dict[str, Any] = Body(default_factory=dict),
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    req = parse_body(GoogleSheetsConfigRequest, body)
    integration = manage.configure_google_sheets(
        store,
        user,
        form_id=req.form_id,
        spreadsheet_id=req.spreadsheet_id,
        sheet_name=req.sheet_name,
        enabled=req.enabled,
    )
    return {"ok": True, "success": True, "integration": manage.public_integration(integration)}


@router.delete("/google-sheets")
def delete_google_sheets(
    form_id: str = Query(default="", alias="formId"),
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    manage.remove_integration(store, form_id, google_sheets.INTEGRATION_TYPE, user)
    return {"ok": True, "success": True}


# --- Notion ---


@router.get("/notion")
def get_notion(
    form_id: str = Query(default="", alias="formId"),
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    return {"ok": True, "integration": manage.get_integration(store, form_id, notion.INTEGRATION_TYPE, user)}


@router.post("/notion")
def configure_notion(
    body: Dict[str, Any] = Body(default_factory=dict),
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    req = parse_body(NotionConfigRequest, body)
    integration = manage.configure_notion(
        store,
        user,
        form_id=req.form_id,
        api_key=req.api_key,
        database_id=req.database_id,
        enabled=req.enabled,
    )
    return {"ok": True, "success": True, "integration": manage.public_integration(integration)}


@router.delete("/notion")
def delete_notion(
    form_id: str = Query(default="", alias="formId"),
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    manage.remove_integration(store, form_id, notion.INTEGRATION_TYPE, user)
    return {"ok": True, "success": True}
