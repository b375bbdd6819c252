"""
Slack and Discord incoming-webhook notifications.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

import httpx

from form_builder_service import http
from form_builder_service.errors import IntegrationError
from form_builder_service.timeutil import iso

logger = logging.getLogger(__name__)

SLACK_PREFIX = "https://hooks.slack.com/"
DISCORD_PREFIXES = ("https://discord.com/api/webhooks/", "https://discordapp.com/api/webhooks/")
DISCORD_BLUE = 0x3B82F6


def _post_json(url: str, payload: Dict[str, Any], label: str) -> None:
    try:
        with http.client() as c:
            res = c.post(url, json=payload)
    except httpx.HTTPError as exc:
        raise IntegrationError(f"{label} webhook call failed: {exc}") from exc
    if res.status_code >= 400:
        raise IntegrationError(f"{label} webhook error: {res.status_code} {res.text}")


def slack_payload(config: Mapping[str, Any], data: Mapping[str, Any]) -> Dict[str, Any]:
    fields_text = "\n\n".join(f"*{f['label']}:*\n{f['value'] or '_No response_'}" for f in data.get("fields") or [])
    files = data.get("files") or []
    if files:
        fields_text += "\n\n*Attached Files:*\n" + "\n".join(
            f"• {f['fieldLabel']}: <{f['downloadUrl']}|{f['filename']}>" for f in files
        )
    custom = data.get("customMessage") or config.get("customMessage")
    blocks: List[Dict[str, Any]] = [
        {"type": "header", "text": {"type": "plain_text", "text": "New Form Submission", "emoji": True}},
        {
            "type": "section",
            "fields": [
                {"type": "mrkdwn", "text": f"*Form:*\n{data.get('formTitle')}"},
                {"type": "mrkdwn", "text": f"*Submission ID:*\n{data.get('submissionId')}"},
                {"type": "mrkdwn", "text": f"*Submitted:*\n{data.get('timestamp')}"},
            ],
        },
    ]
    if custom:
        blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": f"*Custom Message:*\n{custom}"}})
    blocks.append({"type": "section", "text": {"type": "mrkdwn", "text": f"*Submission Data:*\n\n{fields_text}"}})
    blocks.append({"type": "divider"})
    payload: Dict[str, Any] = {
        "text": f"New form submission: {data.get('formTitle')}",
        "username": config.get("username") or "Form Builder",
        "icon_emoji": config.get("iconEmoji") or ":incoming_envelope:",
        "blocks": blocks,
    }
    if config.get("channel"):
        payload["channel"] = config["channel"]
    return payload


def send_slack(config: Mapping[str, Any], data: Mapping[str, Any]) -> bool:
    url = str(config.get("webhookUrl") or "")
    if not config.get("enabled") or not url:
        return False
    if not url.startswith(SLACK_PREFIX):
        raise IntegrationError(f"Invalid Slack webhook URL. Must start with {SLACK_PREFIX}")
    _post_json(url, slack_payload(config, data), "Slack")
    logger.info("slack notification sent")
    return True


def discord_payload(config: Mapping[str, Any], data: Mapping[str, Any]) -> Dict[str, Any]:
    embed_fields: List[Dict[str, Any]] = [
        {"name": "Submission ID", "value": str(data.get("submissionId")), "inline": True},
        {"name": "Submitted", "value": str(data.get("timestamp")), "inline": True},
    ]
    if data.get("customMessage"):
        embed_fields.append({"name": "Custom Message", "value": str(data["customMessage"]), "inline": False})
    for f in data.get("fields") or []:
        embed_fields.append({"name": f["label"], "value": f["value"] or "_No response_", "inline": False})
    files = data.get("files") or []
    if files:
        embed_fields.append(
            {
                "name": "Attached Files",
                "value": "\n".join(f"[{f['filename']}]({f['downloadUrl']})" for f in files),
                "inline": False,
            }
        )
    payload: Dict[str, Any] = {
        "username": config.get("username") or "Form Builder",
        "embeds": [
            {
                "title": f"New Form Submission: {data.get('formTitle')}",
                "color": DISCORD_BLUE,
                "fields": embed_fields,
                "footer": {"text": "Form Builder Notification"},
                "timestamp": iso(),
            }
        ],
    }
    if config.get("avatarUrl"):
        payload["avatar_url"] = config["avatarUrl"]
    return payload


def send_discord(config: Mapping[str, Any], data: Mapping[str, Any]) -> bool:
    url = str(config.get("webhookUrl") or "")
    if not config.get("enabled") or not url:
        return False
    if not url.startswith(DISCORD_PREFIXES):
        raise IntegrationError("Invalid Discord webhook URL. Must start with https://discord.com/api/webhooks/")
    _post_json(url, discord_payload(config, data), "Discord")
    logger.info("discord notification sent")
    return True
