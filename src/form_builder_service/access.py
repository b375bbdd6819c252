from __future__ import annotations

from typing import Optional

from form_builder_service.errors import Forbidden, NotFound, Unauthorized
from form_builder_service.store import FormStore, Record

EDITOR = "EDITOR"
VIEWER = "VIEWER"


def load_form(store: FormStore, form_id: str) -> Record:
    form = store.get_form(form_id)
    if not form:
        raise NotFound("Form not found")
    return form


def _require_user(user: Optional[Record]) -> Record:
    if not user:
        raise Unauthorized("Unauthorized")
    return user


def is_owner(form: Record, user: Optional[Record]) -> bool:
    return bool(user and form.get("userId") and form["userId"] == user["id"])


def collaborator_for(store: FormStore, form: Record, user: Record) -> Optional[Record]:
    return store.find_collaborator(form["id"], user_id=user["id"])


def require_owner(store: FormStore, form_id: str, user: Optional[Record]) -> Record:
    u = _require_user(user)
    form = load_form(store, form_id)
    if not is_owner(form, u):
        raise Forbidden("Forbidden")
    return form


def require_editor(store: FormStore, form_id: str, user: Optional[Record]) -> Record:
    """Owner or EDITOR collaborator."""
    u = _require_user(user)
    form = load_form(store, form_id)
    if is_owner(form, u):
        return form
    collab = collaborator_for(store, form, u)
    if collab and collab.get("role") == EDITOR:
        return form
    raise Forbidden("You do not have permission to edit this form")


def require_member(store: FormStore, form_id: str, user: Optional[Record]) -> Record:
    """Owner or any collaborator."""
    u = _require_user(user)
    form = load_form(store, form_id)
    if is_owner(form, u) or collaborator_for(store, form, u):
        return form
    raise Forbidden("Forbidden")
