"""
Owner-facing integration setup: OAuth for Google Sheets, connect/disconnect for both providers.

Stored configs carry secrets (OAuth tokens, Notion API keys); `public_integration` strips them
before anything leaves the API.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from form_builder_service.access import is_owner, require_owner
from form_builder_service.config import get_settings
from form_builder_service.errors import ApiError, BadRequest
from form_builder_service.integrations import google_sheets, notion
from form_builder_service.store import FormStore, Record

logger = logging.getLogger(__name__)

_SECRET_KEYS = ("accessToken", "refreshToken", "apiKey")


def public_integration(integration: Optional[Record]) -> Optional[Record]:
    if not integration:
        return None
    config = dict(integration.get("config") or {})
    connected = bool(config.get("accessToken") or config.get("refreshToken") or config.get("apiKey"))
    for key in _SECRET_KEYS:
        config.pop(key, None)
    return {**integration, "config": {**config, "connected": connected}}


# --- Google Sheets ---


def google_oauth_url(store: FormStore, form_id: str, user: Optional[Record]) -> str:
    if not form_id:
        raise BadRequest("Form ID required")
    require_owner(store, form_id, user)
    if not get_settings().google_oauth_configured:
        raise ApiError("Google OAuth not configured")
    return google_sheets.authorization_url(form_id, user["id"])


def _dashboard(**params: str) -> str:
    return f"{get_settings().base_url}/dashboard?{urlencode(params)}"


def google_oauth_callback(store: FormStore, *, code: Optional[str], state: Optional[str], error: Optional[str]) -> str:
    """Store the exchanged tokens and return the dashboard URL to redirect to."""
    if error:
        return _dashboard(error="oauth_cancelled")
    if not code or not state:
        return _dashboard(error="oauth_failed")
    parsed = google_sheets.parse_state(state)
    if not parsed:
        return _dashboard(error="invalid_request")
    form_id, owner_id = parsed
    form = store.get_form(form_id)
    # the signed owner must still own the form
    if not form or not is_owner(form, store.get_user(owner_id)):
        logger.warning("rejected google oauth callback for form %s", form_id)
        return _dashboard(error="form_not_found")
    if not get_settings().google_oauth_configured:
        return _dashboard(error="oauth_not_configured")

    try:
        tokens = google_sheets.exchange_code(code)
    except Exception as e:  # noqa: BLE001 - any exchange failure ends in a redirect
        logger.warning("google token exchange failed for form %s: %s", form_id, e)
        return _dashboard(error="oauth_error")
    if not tokens.get("accessToken"):
        return _dashboard(error="token_exchange_failed")

    existing = store.get_integration(form_id, google_sheets.INTEGRATION_TYPE)
    if existing:
        config = {**(existing.get("config") or {}), **tokens}
        if not tokens.get("refreshToken"):
            config["refreshToken"] = (existing.get("config") or {}).get("refreshToken")
        enabled = bool(existing.get("enabled"))
    else:
        config = {"spreadsheetId": None, "sheetName": google_sheets.DEFAULT_SHEET_NAME, **tokens}
        enabled = False
    store.upsert_integration(form_id, google_sheets.INTEGRATION_TYPE, config=config, enabled=enabled)
    logger.info("stored google oauth tokens for form %s", form_id)
    return _dashboard(formId=form_id, oauth_success="true")


def configure_google_sheets(
    store: FormStore,
    user: Optional[Record],
    *,
    form_id: str,
    spreadsheet_id: str,
    sheet_name: str,
    enabled: bool,
) -> Record:
    if not form_id or not spreadsheet_id:
        raise BadRequest("Missing required fields")
    form = require_owner(store, form_id, user)
    existing = store.get_integration(form_id, google_sheets.INTEGRATION_TYPE)
    stored = (existing or {}).get("config") or {}
    config: Dict[str, Any] = {
        "spreadsheetId": spreadsheet_id,
        "sheetName": sheet_name or google_sheets.DEFAULT_SHEET_NAME,
        "accessToken": stored.get("accessToken"),
        "refreshToken": stored.get("refreshToken"),
        "expiresAt": stored.get("expiresAt"),
    }
    if not config["accessToken"]:
        raise BadRequest("Please connect your Google account first. Click 'Connect Google Account' to authorize.")

    check = google_sheets.validate_connection(config)
    if not check.get("valid"):
        raise BadRequest(check.get("error") or "Failed to validate Google Sheets connection")
    config.update(check.get("updatedConfig") or {})

    integration = store.upsert_integration(form_id, google_sheets.INTEGRATION_TYPE, config=config, enabled=enabled)
    if enabled:
        try:
            google_sheets.initialize_headers(config, google_sheets.header_row(list(form.get("fields") or [])))
        except Exception as e:  # noqa: BLE001 - headers are retried on the first submission
            logger.warning("failed to initialize sheet headers for form %s: %s", form_id, e)
    return integration


# --- Notion ---


def configure_notion(
    store: FormStore,
    user: Optional[Record],
    *,
    form_id: str,
    api_key: str,
    database_id: Optional[str],
    enabled: bool,
) -> Record:
    if not form_id:
        raise BadRequest("Form ID required")
    if not api_key:
        raise BadRequest("API key is required")
    form = require_owner(store, form_id, user)

    db_id = notion.extract_database_id(database_id) if database_id else None
    check = notion.validate_connection(api_key, db_id, form_title=form.get("title") or "Untitled Form")
    if not check.get("valid"):
        raise BadRequest(check.get("error") or "Failed to validate Notion connection")

    existing = store.get_integration(form_id, notion.INTEGRATION_TYPE)
    config: Dict[str, Any] = {
        "apiKey": api_key,
        "databaseId": check.get("databaseId") or db_id,
        "databaseTitle": check.get("databaseTitle"),
        "databaseUrl": check.get("databaseUrl"),
    }
    mapping = ((existing or {}).get("config") or {}).get("fieldMapping")
    if mapping:
        config["fieldMapping"] = mapping
    return store.upsert_integration(form_id, notion.INTEGRATION_TYPE, config=config, enabled=enabled)


# --- shared ---


def get_integration(store: FormStore, form_id: str, type_: str, user: Optional[Record]) -> Optional[Record]:
    if not form_id:
        raise BadRequest("Form ID required")
    require_owner(store, form_id, user)
    return public_integration(store.get_integration(form_id, type_))


def remove_integration(store: FormStore, form_id: str, type_: str, user: Optional[Record]) -> bool:
    if not form_id:
        raise BadRequest("Form ID required")
    require_owner(store, form_id, user)
    removed = store.delete_integration(form_id, type_)
    logger.info("removed %s integration from form %s (existed=%s)", type_, form_id, removed)
    return removed


__all__ = [
    "configure_google_sheets",
    "configure_notion",
    "get_integration",
    "google_oauth_callback",
    "google_oauth_url",
    "public_integration",
    "remove_integration",
]
