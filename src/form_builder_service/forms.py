"""
Form lifecycle: create, update, scheduling sync and the public views.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from form_builder_service.access import EDITOR, is_owner, load_form, require_editor, require_owner
from form_builder_service.errors import BadRequest
from form_builder_service.logic.schedule import availability
from form_builder_service.realtime import form_channel, get_broker
from form_builder_service.schemas import FormCreateRequest, FormSyncRequest, FormUpdateRequest
from form_builder_service.store import FormStore, Record
from form_builder_service.timeutil import iso, parse_ts

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

FORM_UPDATE_EVENT = "form-update"

EMBED_KEYS = ("id", "title", "fields", "styling", "multiStepConfig", "conversationalMode")


def parse_body(model: Type[M], body: Optional[Mapping[str, Any]]) -> M:
    """Validate a request body, turning pydantic errors into a 400."""
    try:
        return model.model_validate(dict(body or {}))
    except ValidationError as e:
        errors = e.errors(include_url=False, include_context=False, include_input=False)
        first = errors[0] if errors else {}
        msg = str(first.get("msg") or "Invalid request body").removeprefix("Value error, ")
        loc = ".".join(str(p) for p in first.get("loc") or ())
        raise BadRequest(f"{loc}: {msg}" if loc else msg, details=errors) from e


def _schedule_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    for key in ("opensAt", "closesAt"):
        if changes.get(key) is not None:
            changes[key] = iso(parse_ts(changes[key]))
    return changes


def create_form(store: FormStore, body: Mapping[str, Any], user: Optional[Record]) -> Record:
    if not body.get("title") or not isinstance(body.get("fields"), list):
        raise BadRequest("Title and fields are required")
    req = parse_body(FormCreateRequest, body)
    data = _schedule_changes(req.changes())
    data["userId"] = user["id"] if user else None
    form = store.create_form(data)
    logger.info("created form %s (%d fields) owner=%s", form["id"], len(form.get("fields") or []), form.get("userId"))
    return form


def update_form(store: FormStore, form_id: str, body: Mapping[str, Any], user: Optional[Record]) -> Record:
    form = require_editor(store, form_id, user)
    changes = parse_body(FormUpdateRequest, body).changes()
    if "title" in changes and not str(changes["title"] or "").strip():
        raise BadRequest("Title cannot be empty")
    if not changes:
        return form
    return store.update_form(form_id, changes) or form


def delete_form(store: FormStore, form_id: str, user: Optional[Record]) -> None:
    require_owner(store, form_id, user)
    store.delete_form(form_id)
    logger.info("deleted form %s", form_id)


def sync_form(store: FormStore, form_id: str, body: Mapping[str, Any], user: Optional[Record]) -> Record:
    """
    Update content and scheduling, then broadcast the change on the form's channel.

    Moving `closesAt` re-arms the closing notification.
    """
    form = require_editor(store, form_id, user)
    changes = _schedule_changes(parse_body(FormSyncRequest, body).changes())

    opens_at = parse_ts(changes["opensAt"] if "opensAt" in changes else form.get("opensAt"))
    closes_at = parse_ts(changes["closesAt"] if "closesAt" in changes else form.get("closesAt"))
    if opens_at and closes_at and opens_at >= closes_at:
        raise BadRequest("opensAt must be before closesAt")
    if "closesAt" in changes and parse_ts(changes["closesAt"]) != parse_ts(form.get("closesAt")):
        changes["closedNotificationSent"] = False

    updated = store.update_form(form_id, changes) or form
    event = {**changes, "updatedBy": (user or {}).get("id"), "updatedAt": updated.get("updatedAt") or iso()}
    delivered = get_broker().publish(form_channel(form_id), FORM_UPDATE_EVENT, event)
    logger.info("synced form %s (%d change(s), %d listener(s))", form_id, len(changes), delivered)
    return updated


def public_form(store: FormStore, form_id: str) -> Record:
    form = load_form(store, form_id)
    return {**form, "availability": availability(form)}


def embed_view(store: FormStore, form_id: str) -> Dict[str, Any]:
    form = load_form(store, form_id)
    view = {k: form.get(k) for k in EMBED_KEYS}
    avail = availability(form)
    view["availability"] = {k: avail[k] for k in ("status", "acceptingSubmissions", "closedMessage")}
    return view


def my_forms(store: FormStore, user: Record) -> Dict[str, Any]:
    owned = store.list_forms_by_user(user["id"])
    shared = [f for f in store.list_shared_forms(user["id"]) if not is_owner(f, user)]
    return {
        "forms": [{**f, "availability": availability(f)} for f in owned],
        "shared": [{**f, "canEdit": f.get("role") == EDITOR} for f in shared],
    }
