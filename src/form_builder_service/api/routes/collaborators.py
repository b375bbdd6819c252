from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from form_builder_service import collaborators
from form_builder_service.api.deps import get_db, optional_user
from form_builder_service.forms import parse_body
from form_builder_service.schemas import CollaboratorInviteRequest
from form_builder_service.store import FormStore, Record

router = APIRouter(prefix="/api/forms/{form_id}/collaborators", tags=["collaborators"])


@router.get("")
def list_collaborators(
    form_id: str,
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    return {"ok": True, **collaborators.list_collaborators(store, form_id, user)}


@router.post("")
def invite(
    form_id: str,
    body: Dict[str, Any] = Body(default_factory=dict),
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    req = parse_body(CollaboratorInviteRequest, body)
    return {"ok": True, **collaborators.invite(store, form_id, user, email=req.email, role=req.role)}


@router.delete("/{collaborator_id}")
def remove(
    form_id: str,
    collaborator_id: str,
    store: FormStore = Depends(get_db),
    user: Optional[Record] = Depends(optional_user),
) -> Dict[str, Any]:
    collaborators.remove(store, form_id, collaborator_id, user)
    return {"ok": True}
