"""
Scheduled job: notify owners once their form's closing time has passed.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from form_builder_service.config import get_settings
from form_builder_service.errors import IntegrationError
from form_builder_service.notifications.email import closed_form_email_html, send_email
from form_builder_service.store import FormStore
from form_builder_service.timeutil import iso

logger = logging.getLogger(__name__)

BATCH_SIZE = 50


def check_closures(store: FormStore, *, limit: int = BATCH_SIZE) -> Dict[str, Any]:
    """`{success, failed, total}`; a failing form never aborts the batch."""
    base_url = get_settings().base_url
    forms = store.forms_pending_closure(now_iso=iso(), limit=limit)
    success = failed = 0
    for form in forms:
        owner = store.get_user(form["userId"]) if form.get("userId") else None
        if not owner or not owner.get("email"):
            continue
        dashboard = f"{base_url}/dashboard/forms/{form['id']}"
        try:
            send_email(owner["email"], f"Your form \"{form.get('title') or 'Untitled'}\" has closed", closed_form_email_html(form, dashboard))
            store.update_form(form["id"], {"closedNotificationSent": True})
            success += 1
        except IntegrationError as e:
            failed += 1
            logger.warning("closure notification for form %s failed: %s", form["id"], e)
    logger.info("closure check: %d sent, %d failed, %d due", success, failed, len(forms))
    return {"success": success, "failed": failed, "total": len(forms)}
