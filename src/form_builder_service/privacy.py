"""
Account data controls: a masked summary, an export, and deletion of submissions, forms or the
whole account.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from form_builder_service.errors import BadRequest, NotFound
from form_builder_service.schemas import PrivacyDeleteOptions
from form_builder_service.store import FormStore, Record
from form_builder_service.timeutil import iso

logger = logging.getLogger(__name__)

# days
RETENTION_POLICY = {"submissions": 365, "files": 90, "voiceTranscriptions": 1}


def mask_email(email: str) -> str:
    local, sep, domain = str(email or "").partition("@")
    if not sep or not domain or not local:
        return email
    return f"{local[0]}***@{domain}"


def _account(store: FormStore, user: Record) -> Record:
    account = store.get_user(user["id"])
    if not account:
        raise NotFound("User not found")
    return account


def data_summary(store: FormStore, user: Record) -> Dict[str, Any]:
    account = _account(store, user)
    forms = store.list_forms_by_user(account["id"])
    return {
        "user": {
            "name": account.get("name"),
            "email": mask_email(account["email"]) if account.get("email") else None,
            "memberSince": account.get("createdAt"),
        },
        "dataSummary": {
            "formsCreated": len(forms),
            "submissionsReceived": sum(store.count_submissions(f["id"]) for f in forms),
        },
        "retentionPolicy": dict(RETENTION_POLICY),
    }


def export_data(store: FormStore, user: Record) -> Dict[str, Any]:
    account = _account(store, user)
    forms = store.list_forms_by_user(account["id"])
    return {
        "user": {k: account.get(k) for k in ("id", "name", "email", "createdAt")},
        "forms": [{"id": f["id"], "title": f.get("title"), "createdAt": f.get("createdAt")} for f in forms],
        "submissions": sum(store.count_submissions(f["id"]) for f in forms),
    }


def delete_data(store: FormStore, user: Record, options: PrivacyDeleteOptions) -> Dict[str, Any]:
    """
    Account deletion needs the account email typed back and removes everything the user owns,
    plus their collaborator seats. Otherwise submissions and forms are removed as requested.
    """
    account = _account(store, user)
    user_id = account["id"]
    result = {"submissionsDeleted": 0, "formsDeleted": 0, "accountDeleted": False}

    if options.delete_account:
        if not account.get("email") or options.confirm_email != account["email"]:
            raise BadRequest("Email confirmation required")
        for form in store.list_forms_by_user(user_id):
            result["submissionsDeleted"] += store.delete_submissions(form["id"])
            result["formsDeleted"] += int(store.delete_form(form["id"]))
        for form in store.list_shared_forms(user_id):
            seat = store.find_collaborator(form["id"], user_id=user_id)
            if seat:
                store.delete_collaborator(seat["id"])
        result["accountDeleted"] = store.delete_user(user_id)
        logger.info("deleted account %s (%d form(s))", user_id, result["formsDeleted"])
        return result

    forms = store.list_forms_by_user(user_id)
    if options.delete_submissions:
        result["submissionsDeleted"] = sum(store.delete_submissions(f["id"]) for f in forms)
    if options.delete_forms:
        result["formsDeleted"] = sum(int(store.delete_form(f["id"])) for f in forms)
    logger.info(
        "privacy delete for user %s: %d submission(s), %d form(s)",
        user_id,
        result["submissionsDeleted"],
        result["formsDeleted"],
    )
    return result


def export_envelope(store: FormStore, user: Record) -> Dict[str, Any]:
    return {"success": True, "data": export_data(store, user), "exportedAt": iso()}


__all__ = ["RETENTION_POLICY", "data_summary", "delete_data", "export_data", "export_envelope", "mask_email"]
