"""
Submission intake and the owner-side views (listing, export, analytics).
"""

from __future__ import annotations

import json
import logging
import secrets
from typing import Any, Dict, List, Mapping, Optional, Tuple

from form_builder_service.access import load_form, require_member, require_owner
from form_builder_service.config import get_settings
from form_builder_service.errors import BadRequest, Conflict, FormClosed, NotFound, UnprocessableEntity
from form_builder_service.integrations import forward_submission
from form_builder_service.logic.analytics import compute_analytics
from form_builder_service.logic.export import export_filename, submissions_to_csv, submissions_to_json
from form_builder_service.logic.schedule import availability, is_accepting
from form_builder_service.logic.scoring import calculate_quiz_score
from form_builder_service.logic.validation import validate_answers
from form_builder_service.logic.values import is_empty
from form_builder_service.notifications import send_notifications, submission_data
from form_builder_service.store import FormStore, Record

logger = logging.getLogger(__name__)

FILE_METADATA_KEY = "_fileMetadata"
RESPONDENT_ID_KEY = "_respondentId"
RESPONDENT_EMAIL_KEY = "_respondentEmail"
RESERVED_KEYS = (FILE_METADATA_KEY, RESPONDENT_ID_KEY, RESPONDENT_EMAIL_KEY)


def split_payload(body: Mapping[str, Any]) -> Tuple[Dict[str, Any], List[Dict[str, Any]], Optional[str], Optional[str]]:
    """`(answers, file_metadata, respondent_id, respondent_email)` from a raw submit body."""
    answers = {k: v for k, v in body.items() if k not in RESERVED_KEYS}
    files = [m for m in (body.get(FILE_METADATA_KEY) or []) if isinstance(m, dict)]
    respondent_id = str(body.get(RESPONDENT_ID_KEY) or "").strip() or None
    respondent_email = str(body.get(RESPONDENT_EMAIL_KEY) or "").strip() or None
    return answers, files, respondent_id, respondent_email


def _with_uploaded_files(answers: Mapping[str, Any], files: List[Dict[str, Any]]) -> Dict[str, Any]:
    # an uploaded file satisfies its field even when the answer map has no value for it
    merged = dict(answers)
    for meta in files:
        fid = str(meta.get("fieldId") or "")
        if fid and is_empty(merged.get(fid)):
            merged[fid] = meta.get("originalName") or meta.get("filename") or "file"
    return merged


def _file_record(meta: Mapping[str, Any]) -> Record:
    return {
        "fieldId": meta.get("fieldId"),
        "filename": meta.get("filename"),
        "originalName": meta.get("originalName") or meta.get("filename"),
        "size": int(meta.get("size") or 0),
        "mimeType": meta.get("type") or meta.get("mimeType"),
        "path": meta.get("url") or meta.get("path"),
    }


def _reject_closed(store: FormStore, form: Record) -> None:
    if is_accepting(form):
        return
    store.increment_closed_attempts(form["id"])
    avail = availability(form)
    logger.info("rejected submission to form %s (%s)", form["id"], avail["status"])
    raise FormClosed(avail["closedMessage"], details={"status": avail["status"]})


def submit(store: FormStore, form_id: str, body: Mapping[str, Any]) -> Dict[str, Any]:
    form = load_form(store, form_id)
    _reject_closed(store, form)

    answers, files_meta, respondent_id, respondent_email = split_payload(body)
    if form.get("limitOneResponse") and respondent_id and store.find_submission_by_respondent(form_id, respondent_id):
        raise Conflict("You have already submitted this form")

    fields = list(form.get("fields") or [])
    errors = validate_answers(fields, _with_uploaded_files(answers, files_meta))
    if errors:
        raise UnprocessableEntity("Validation failed", details=errors)

    score = calculate_quiz_score(fields, answers, form.get("quizMode"))
    edit_token = secrets.token_urlsafe(24) if form.get("saveAndEdit") else None
    submission = store.create_submission(
        {
            "formId": form_id,
            "answers": answers,
            "score": score,
            "respondentId": respondent_id,
            "respondentEmail": respondent_email,
            "editToken": edit_token,
        },
        [_file_record(m) for m in files_meta],
    )
    logger.info("stored submission %s for form %s (%d file(s))", submission["id"], form_id, len(files_meta))

    data = submission_data(form, submission, base_url=get_settings().base_url)
    notifications = send_notifications(form.get("notifications"), data)
    integrations = forward_submission(store, form, submission)

    out: Dict[str, Any] = {
        "ok": True,
        "submissionId": submission["id"],
        "files": submission.get("files") or [],
        "notifications": notifications,
        "integrations": integrations,
    }
    if score is not None:
        out["score"] = score
    if edit_token:
        out["editToken"] = edit_token
    return out


def edit_submission(store: FormStore, form_id: str, edit_token: str, body: Mapping[str, Any]) -> Dict[str, Any]:
    form = load_form(store, form_id)
    if not form.get("saveAndEdit"):
        raise BadRequest("This form does not allow editing responses")
    submission = store.find_submission_by_edit_token(form_id, edit_token)
    if not submission:
        raise NotFound("Submission not found")
    _reject_closed(store, form)

    answers, _, _, _ = split_payload(body)
    fields = list(form.get("fields") or [])
    existing = [{"fieldId": f.get("fieldId"), "originalName": f.get("originalName")} for f in submission.get("files") or []]
    errors = validate_answers(fields, _with_uploaded_files(answers, existing))
    if errors:
        raise UnprocessableEntity("Validation failed", details=errors)

    score = calculate_quiz_score(fields, answers, form.get("quizMode"))
    updated = store.update_submission(submission["id"], {"answers": answers, "score": score}) or submission
    logger.info("edited submission %s for form %s", submission["id"], form_id)
    out: Dict[str, Any] = {"ok": True, "submissionId": updated["id"]}
    if score is not None:
        out["score"] = score
    return out


def get_by_edit_token(store: FormStore, form_id: str, edit_token: str) -> Record:
    submission = store.find_submission_by_edit_token(form_id, edit_token)
    if not submission:
        raise NotFound("Submission not found")
    return {k: submission.get(k) for k in ("id", "formId", "answers", "score", "createdAt", "files")}


def list_submissions(store: FormStore, form_id: str, user: Optional[Record]) -> List[Record]:
    require_member(store, form_id, user)
    return [{k: v for k, v in s.items() if k != "editToken"} for s in store.list_submissions(form_id)]


def has_submitted(store: FormStore, form_id: str, respondent_id: Optional[str]) -> bool:
    if not respondent_id:
        raise BadRequest("respondentId is required")
    load_form(store, form_id)
    return store.find_submission_by_respondent(form_id, respondent_id) is not None


def export(store: FormStore, form_id: str, user: Optional[Record], fmt: str) -> Tuple[str, str, str]:
    """`(body, media_type, filename)` for a CSV or JSON export."""
    form = require_owner(store, form_id, user)
    submissions = store.list_submissions(form_id)
    fmt = (fmt or "csv").lower()
    if fmt == "csv":
        return submissions_to_csv(list(form.get("fields") or []), submissions), "text/csv", export_filename(form.get("title") or "", "csv")
    if fmt == "json":
        payload = submissions_to_json(form, submissions)
        return json.dumps(payload, ensure_ascii=False, indent=2), "application/json", export_filename(form.get("title") or "", "json")
    raise BadRequest("Invalid format. Use csv or json")


def analytics(store: FormStore, form_id: str, user: Optional[Record]) -> Dict[str, Any]:
    form = require_owner(store, form_id, user)
    submissions = store.list_submissions(form_id, newest_first=False)
    return {"formId": form_id, "formTitle": form.get("title"), **compute_analytics(list(form.get("fields") or []), submissions)}
