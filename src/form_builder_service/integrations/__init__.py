"""
Forward new submissions to every enabled integration of a form.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping

from form_builder_service.integrations import google_sheets, notion
from form_builder_service.store import FormStore

logger = logging.getLogger(__name__)


def _forward_one(integration: Mapping[str, Any], form: Mapping[str, Any], submission: Mapping[str, Any]) -> Dict[str, Any]:
    fields = list(form.get("fields") or [])
    config = integration.get("config") or {}
    kind = integration.get("type")
    if kind == google_sheets.INTEGRATION_TYPE:
        return google_sheets.append_row(config, google_sheets.format_submission_row(submission, fields))
    if kind == notion.INTEGRATION_TYPE:
        values = notion.format_submission(submission, fields, config.get("fieldMapping"))
        return notion.create_page(config, values)
    raise ValueError(f"Unknown integration type: {kind}")


def forward_submission(store: FormStore, form: Mapping[str, Any], submission: Mapping[str, Any]) -> List[Dict[str, Any]]:
    results: List[Dict[str, Any]] = []
    for integration in store.list_enabled_integrations(str(form["id"])):
        kind = integration.get("type")
        try:
            detail = _forward_one(integration, form, submission)
            results.append({"type": kind, "success": True, **(detail or {})})
            logger.info("forwarded submission %s to %s", submission.get("id"), kind)
        except Exception as e:  # noqa: BLE001 - forwarding never fails the submission
            logger.warning("failed to forward submission %s to %s: %s", submission.get("id"), kind, e)
            results.append({"type": kind, "success": False, "error": str(e)})
    return results


__all__ = ["forward_submission", "google_sheets", "notion"]
