"""
Submission notifications.

`send_notifications` fans a new submission out to every enabled channel and reports one result per
channel. Channel failures are logged and returned, never raised.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional

from form_builder_service.logic.scoring import format_score
from form_builder_service.logic.values import as_text
from form_builder_service.notifications.chat import send_discord, send_slack
from form_builder_service.notifications.email import send_submission_email
from form_builder_service.notifications.webhook import send_webhook
from form_builder_service.timeutil import iso

logger = logging.getLogger(__name__)


def submission_data(form: Mapping[str, Any], submission: Mapping[str, Any], *, base_url: str) -> Dict[str, Any]:
    fields = list(form.get("fields") or [])
    answers = submission.get("answers") or {}
    labels = {str(f.get("id")): str(f.get("label") or "File") for f in fields}
    files = []
    for f in submission.get("files") or []:
        path = str(f.get("path") or "")
        url = path if path.startswith("http") else f"{base_url}{path}"
        files.append({"fieldLabel": labels.get(str(f.get("fieldId")), "File"), "filename": f.get("originalName"), "downloadUrl": url})
    return {
        "formId": form.get("id"),
        "formTitle": form.get("title"),
        "submissionId": submission.get("id"),
        "timestamp": submission.get("createdAt") or iso(),
        "fields": [
            {"label": str(f.get("label") or ""), "value": as_text(answers.get(str(f.get("id")))), "type": f.get("type")}
            for f in fields
        ],
        "files": files,
        "score": format_score(submission["score"]) if submission.get("score") else None,
    }


def _email_config(config: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    if config.get("email"):
        return dict(config["email"])
    recipients = config.get("recipients") or []
    if recipients:
        # legacy top-level recipients
        return {"enabled": True, "recipients": list(recipients), "customMessage": config.get("customMessage")}
    return None


def send_notifications(config: Optional[Mapping[str, Any]], data: Dict[str, Any]) -> List[Dict[str, Any]]:
    results: List[Dict[str, Any]] = []
    if not config or not config.get("enabled"):
        return results

    email_cfg = _email_config(config)
    custom = (email_cfg or {}).get("customMessage") or config.get("customMessage") or data.get("customMessage")
    payload = {**data, "customMessage": custom}

    channels: List[tuple[str, Optional[Mapping[str, Any]], Callable[[Mapping[str, Any], Mapping[str, Any]], bool]]] = [
        ("email", email_cfg, send_submission_email),
        ("slack", config.get("slack"), send_slack),
        ("discord", config.get("discord"), send_discord),
        ("webhook", config.get("webhook"), send_webhook),
    ]
    for kind, cfg, sender in channels:
        if not cfg or not cfg.get("enabled"):
            continue
        try:
            sent = sender(cfg, payload)
        except Exception as e:  # noqa: BLE001 - one failing channel must not block the others
            logger.warning("%s notification failed: %s", kind, e)
            results.append({"type": kind, "success": False, "error": str(e)})
            continue
        if sent:
            results.append({"type": kind, "success": True})
        else:
            logger.info("%s notification skipped: no destination configured", kind)
    return results


__all__ = ["send_notifications", "submission_data"]
