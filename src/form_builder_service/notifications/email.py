from __future__ import annotations

import html
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import httpx

from form_builder_service import http
from form_builder_service.config import get_settings
from form_builder_service.errors import IntegrationError

logger = logging.getLogger(__name__)

RESEND_URL = "https://api.resend.com/emails"


def send_email(to: Union[str, Sequence[str]], subject: str, html_body: str) -> Dict[str, Any]:
    """Send one email through the Resend HTTP API. Raises `IntegrationError` on any failure."""
    settings = get_settings()
    if not settings.resend_api_key:
        raise IntegrationError("RESEND_API_KEY is not configured")
    recipients: List[str] = [to] if isinstance(to, str) else [str(r) for r in to]
    payload = {"from": settings.email_from, "to": recipients, "subject": subject, "html": html_body}
    try:
        with http.client() as c:
            res = c.post(RESEND_URL, json=payload, headers={"Authorization": f"Bearer {settings.resend_api_key}"})
            res.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise IntegrationError(f"Resend API error: {exc.response.status_code} {exc.response.text}") from exc
    except httpx.HTTPError as exc:
        raise IntegrationError(f"Resend API call failed: {exc}") from exc
    logger.info("email sent to %d recipient(s)", len(recipients))
    try:
        data = res.json() if res.content else {}
    except ValueError:
        # accepted; only the message id is lost
        logger.warning("Resend returned a non-JSON body (%s)", res.headers.get("content-type"))
        return {}
    return data if isinstance(data, dict) else {}


def submission_email_html(data: Mapping[str, Any]) -> str:
    e = html.escape
    rows = "".join(
        f"<tr><td style=\"padding:8px;font-weight:600;vertical-align:top\">{e(str(f['label']))}</td>"
        f"<td style=\"padding:8px\">{e(str(f['value'] or '')) or '<em>No response</em>'}</td></tr>"
        for f in data.get("fields") or []
    )
    files = data.get("files") or []
    files_html = ""
    if files:
        items = "".join(
            f"<li>{e(f['fieldLabel'])}: <a href=\"{e(f['downloadUrl'])}\">{e(f['filename'])}</a></li>" for f in files
        )
        files_html = f"<h3>Attached files</h3><ul>{items}</ul>"
    custom = data.get("customMessage")
    custom_html = f"<p>{e(str(custom))}</p>" if custom else ""
    score_html = f"<p><strong>Score:</strong> {e(str(data['score']))}</p>" if data.get("score") else ""
    return (
        "<div style=\"font-family:sans-serif;max-width:600px;margin:0 auto\">"
        f"<h2>New submission: {e(str(data.get('formTitle') or ''))}</h2>"
        f"{custom_html}"
        f"<p><strong>Submission ID:</strong> {e(str(data.get('submissionId') or ''))}<br/>"
        f"<strong>Submitted:</strong> {e(str(data.get('timestamp') or ''))}</p>"
        f"{score_html}"
        f"<table style=\"border-collapse:collapse;width:100%\">{rows}</table>"
        f"{files_html}"
        "</div>"
    )


def send_submission_email(config: Mapping[str, Any], data: Mapping[str, Any]) -> bool:
    """False when the channel has nothing to send to."""
    recipients = [r for r in (config.get("recipients") or []) if r]
    if not config.get("enabled") or not recipients:
        return False
    send_email(recipients, f"New submission: {data.get('formTitle')}", submission_email_html(data))
    return True


def closed_form_email_html(form: Mapping[str, Any], dashboard_url: str) -> str:
    e = html.escape
    return (
        "<div style=\"font-family:sans-serif;max-width:600px;margin:0 auto\">"
        "<h2>Your form has closed</h2>"
        f"<p>Your form <strong>\"{e(str(form.get('title') or ''))}\"</strong> has reached its scheduled closing time "
        "and is no longer accepting new responses.</p>"
        f"<p><strong>Closed at:</strong> {e(str(form.get('closesAt') or ''))}</p>"
        "<p>You can reopen this form or change the schedule from your dashboard.</p>"
        f"<p><a href=\"{e(dashboard_url)}\">Go to Dashboard</a></p>"
        "</div>"
    )


def invite_email_html(form: Mapping[str, Any], inviter: Optional[Mapping[str, Any]], role: str, link: str) -> str:
    e = html.escape
    who = (inviter or {}).get("name") or (inviter or {}).get("email") or "A teammate"
    return (
        "<div style=\"font-family:sans-serif;max-width:600px;margin:0 auto\">"
        f"<h2>You've been invited to collaborate</h2>"
        f"<p>{e(str(who))} invited you to <strong>{e(str(form.get('title') or 'a form'))}</strong> "
        f"as {e(role.lower())}.</p>"
        f"<p><a href=\"{e(link)}\">Open the form</a></p>"
        "</div>"
    )
