from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from form_builder_service.access import EDITOR, is_owner, require_editor, require_member
from form_builder_service.auth import is_valid_email, normalize_email
from form_builder_service.config import get_settings
from form_builder_service.errors import BadRequest, Forbidden, IntegrationError, NotFound, Unauthorized
from form_builder_service.notifications.email import invite_email_html, send_email
from form_builder_service.store import FormStore, Record

logger = logging.getLogger(__name__)


def _with_user(store: FormStore, collab: Record) -> Record:
    user = store.get_user(collab["userId"]) if collab.get("userId") else None
    return {**collab, "user": {"id": user["id"], "name": user.get("name"), "email": user.get("email")} if user else None}


def list_collaborators(store: FormStore, form_id: str, user: Optional[Record]) -> Dict[str, Any]:
    form = require_member(store, form_id, user)
    owner = store.get_user(form["userId"]) if form.get("userId") else None
    return {
        "owner": {"id": owner["id"], "name": owner.get("name"), "email": owner.get("email")} if owner else None,
        "collaborators": [_with_user(store, c) for c in store.list_collaborators(form_id)],
    }


def _send_invite(form: Record, inviter: Record, email: str, role: str) -> bool:
    link = f"{get_settings().base_url}/dashboard/forms/{form['id']}"
    try:
        send_email(email, f"You've been invited to collaborate on {form.get('title') or 'a form'}", invite_email_html(form, inviter, role, link))
    except IntegrationError as e:
        logger.warning("invite email to %s for form %s failed: %s", email, form["id"], e)
        return False
    return True


def invite(store: FormStore, form_id: str, user: Optional[Record], *, email: str, role: str = EDITOR) -> Dict[str, Any]:
    form = require_editor(store, form_id, user)
    email_n = normalize_email(email)
    if not is_valid_email(email_n):
        raise BadRequest("Invalid email address")
    owner = store.get_user(form["userId"]) if form.get("userId") else None
    if owner and normalize_email(owner.get("email") or "") == email_n:
        raise BadRequest("The form owner is already a collaborator")
    if store.find_collaborator(form_id, email=email_n):
        raise BadRequest("This user is already a collaborator")

    existing = store.get_user_by_email(email_n)
    collab = store.create_collaborator(form_id=form_id, email=email_n, role=role, user_id=existing["id"] if existing else None)
    emailed = _send_invite(form, user or {}, email_n, role)
    logger.info("invited %s to form %s as %s (existing user=%s)", email_n, form_id, role, bool(existing))
    return {"collaborator": _with_user(store, collab), "emailSent": emailed}


def remove(store: FormStore, form_id: str, collaborator_id: str, user: Optional[Record]) -> None:
    """The owner removes anyone; a collaborator may remove themselves."""
    if not user:
        raise Unauthorized("Unauthorized")
    collab = store.get_collaborator(collaborator_id)
    if not collab:
        raise NotFound("Collaborator not found")
    if collab.get("formId") != form_id:
        raise BadRequest("Collaborator does not belong to this form")
    form = require_member(store, form_id, user)
    if not is_owner(form, user) and collab.get("userId") != user["id"]:
        raise Forbidden("Only the form owner can remove other collaborators")
    store.delete_collaborator(collaborator_id)
    logger.info("removed collaborator %s from form %s", collaborator_id, form_id)