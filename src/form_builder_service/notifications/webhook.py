from __future__ import annotations

import hashlib
import hmac
import json
import logging
from typing import Any, Dict, Mapping
from urllib.parse import urlparse

import httpx

from form_builder_service import http
from form_builder_service.errors import IntegrationError
from form_builder_service.timeutil import iso

logger = logging.getLogger(__name__)

ALLOWED_METHODS = {"POST", "PUT", "PATCH"}


def sign(body: bytes, secret: str) -> str:
    return "sha256=" + hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def webhook_payload(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "event": "form.submission",
        "timestamp": iso(),
        "form": {"id": data.get("formId"), "title": data.get("formTitle")},
        "submission": {
            "id": data.get("submissionId"),
            "timestamp": data.get("timestamp"),
            "fields": data.get("fields") or [],
            "files": data.get("files") or [],
            "customMessage": data.get("customMessage"),
        },
    }


def send_webhook(config: Mapping[str, Any], data: Mapping[str, Any]) -> bool:
    url = str(config.get("url") or "")
    if not config.get("enabled") or not url:
        return False
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise IntegrationError("Invalid webhook URL")
    method = str(config.get("method") or "POST").upper()
    if method not in ALLOWED_METHODS:
        raise IntegrationError(f"Unsupported webhook method: {method}")

    body = json.dumps(webhook_payload(data), ensure_ascii=False).encode("utf-8")
    headers = {"Content-Type": "application/json", **{str(k): str(v) for k, v in (config.get("headers") or {}).items()}}
    if config.get("secret"):
        headers["X-Webhook-Signature"] = sign(body, str(config["secret"]))

    try:
        with http.client() as c:
            res = c.request(method, url, content=body, headers=headers)
    except httpx.HTTPError as exc:
        raise IntegrationError(f"Webhook call failed: {exc}") from exc
    if res.status_code >= 400:
        raise IntegrationError(f"Webhook error: {res.status_code} {res.text}")
    logger.info("webhook notification sent to %s", parsed.netloc)
    return True
