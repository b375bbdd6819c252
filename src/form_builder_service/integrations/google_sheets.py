"""
Google Sheets forwarding.

OAuth uses the web-server flow (`google_auth_oauthlib.flow.Flow`); spreadsheet calls go through the
discovery client (`googleapiclient.discovery.build("sheets", "v4")`). Integration config shape:

    {spreadsheetId, sheetName, accessToken, refreshToken, expiresAt}
"""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple

import jwt
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build

from form_builder_service.auth import JWT_ALGORITHM
from form_builder_service.config import Settings, get_settings
from form_builder_service.errors import IntegrationError
from form_builder_service.timeutil import iso, parse_ts, utcnow

logger = logging.getLogger(__name__)

INTEGRATION_TYPE = "google_sheets"
DEFAULT_SHEET_NAME = "Form Responses"
TOKEN_URI = "https://oauth2.googleapis.com/token"
AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.file",
]
STATE_AUDIENCE = "google-sheets-oauth"
STATE_TTL_SEC = 600

_SPECIAL = re.compile(r"[!@#$%^&*()+\-=\[\]{};':\"\\|,.<>/?]")


def sheet_range(sheet_name: str, cells: str) -> str:
    """A1 range for a sheet; names with spaces or punctuation are single-quoted with `'` doubled."""
    name = str(sheet_name or DEFAULT_SHEET_NAME)
    if " " in name or _SPECIAL.search(name):
        return "'" + name.replace("'", "''") + "'!" + cells
    return f"{name}!{cells}"


# --- OAuth ---


def _client_config(settings: Settings) -> Dict[str, Any]:
    return {
        "web": {
            "client_id": settings.google_client_id,
            "client_secret": settings.google_client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
            "redirect_uris": [settings.google_redirect_uri],
        }
    }


def make_flow(settings: Optional[Settings] = None) -> Flow:
    s = settings or get_settings()
    if not s.google_oauth_configured:
        raise IntegrationError("Google OAuth not configured")
    return Flow.from_client_config(
        _client_config(s),
        scopes=SCOPES,
        redirect_uri=s.google_redirect_uri,
        autogenerate_code_verifier=False,
    )


def sign_state(form_id: str, user_id: str, settings: Optional[Settings] = None) -> str:
    """Short-lived HS256 token binding the consent round-trip to the form and its owner."""
    s = settings or get_settings()
    now = int(time.time())
    payload = {"formId": form_id, "sub": user_id, "aud": STATE_AUDIENCE, "iat": now, "exp": now + STATE_TTL_SEC}
    return jwt.encode(payload, s.jwt_secret, algorithm=JWT_ALGORITHM)


def parse_state(state: str, settings: Optional[Settings] = None) -> Optional[Tuple[str, str]]:
    """`(formId, ownerId)` from a signed state, or None when it is forged, expired or malformed."""
    s = settings or get_settings()
    try:
        data = jwt.decode(state or "", s.jwt_secret, algorithms=[JWT_ALGORITHM], audience=STATE_AUDIENCE)
    except jwt.InvalidTokenError:
        return None
    form_id, user_id = data.get("formId"), data.get("sub")
    if not form_id or not user_id:
        return None
    return str(form_id), str(user_id)


def authorization_url(form_id: str, user_id: str, settings: Optional[Settings] = None) -> str:
    flow = make_flow(settings)
    url, _state = flow.authorization_url(
        access_type="offline",
        prompt="consent",
        state=sign_state(form_id, user_id, settings),
    )
    return url


def exchange_code(code: str, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Trade an authorization code for tokens: `{accessToken, refreshToken, expiresAt}`."""
    flow = make_flow(settings)
    flow.fetch_token(code=code)
    creds = flow.credentials
    return {
        "accessToken": creds.token,
        "refreshToken": creds.refresh_token,
        "expiresAt": iso(creds.expiry) if creds.expiry else None,
    }


# --- client ---


def credentials_for(config: Mapping[str, Any], settings: Optional[Settings] = None) -> Credentials:
    s = settings or get_settings()
    if not s.google_oauth_configured:
        raise IntegrationError("Google OAuth not configured")
    if not config.get("accessToken") and not config.get("refreshToken"):
        raise IntegrationError("No authentication tokens found")
    creds = Credentials(
        token=config.get("accessToken"),
        refresh_token=config.get("refreshToken"),
        token_uri=TOKEN_URI,
        client_id=s.google_client_id,
        client_secret=s.google_client_secret,
        scopes=SCOPES,
    )
    expires_at = parse_ts(config.get("expiresAt"))
    if expires_at:
        # google-auth compares against naive UTC
        creds.expiry = expires_at.replace(tzinfo=None)
    return creds


def refresh_if_needed(creds: Credentials) -> bool:
    if creds.refresh_token and (not creds.token or creds.expired):
        creds.refresh(Request())
        return True
    return False


def build_service(creds: Credentials) -> Any:
    return build("sheets", "v4", credentials=creds, cache_discovery=False)


def _open(config: Mapping[str, Any]) -> Tuple[Any, Credentials]:
    creds = credentials_for(config)
    refresh_if_needed(creds)
    return build_service(creds), creds


def refreshed_config(config: Mapping[str, Any], creds: Credentials) -> Optional[Dict[str, Any]]:
    """Config with rotated tokens, or None when the access token is unchanged."""
    if not creds.token or creds.token == config.get("accessToken"):
        return None
    return {
        **config,
        "accessToken": creds.token,
        "refreshToken": creds.refresh_token or config.get("refreshToken"),
        "expiresAt": iso(creds.expiry) if creds.expiry else None,
    }


# --- sheet operations ---


def validate_connection(config: Mapping[str, Any]) -> Dict[str, Any]:
    """`{valid, error?, updatedConfig?}`; never raises."""
    if not config.get("spreadsheetId"):
        return {"valid": False, "error": "Spreadsheet ID is missing"}
    try:
        service, creds = _open(config)
        service.spreadsheets().get(spreadsheetId=config["spreadsheetId"]).execute()
    except Exception as e:  # noqa: BLE001 - surface any client/auth failure to the caller
        logger.warning("google sheets validation failed: %s", e)
        return {"valid": False, "error": str(e) or "Failed to validate Google Sheets connection"}
    out: Dict[str, Any] = {"valid": True}
    updated = refreshed_config(config, creds)
    if updated:
        out["updatedConfig"] = updated
    return out


def initialize_headers(config: Mapping[str, Any], headers: List[str]) -> bool:
    """Write the header row when the sheet is empty. Existing data is never overwritten."""
    if not config.get("spreadsheetId"):
        return False
    service, _ = _open(config)
    values = service.spreadsheets().values()
    existing = values.get(
        spreadsheetId=config["spreadsheetId"],
        range=sheet_range(config.get("sheetName") or DEFAULT_SHEET_NAME, "A1:A1"),
    ).execute()
    if existing.get("values"):
        return True
    values.update(
        spreadsheetId=config["spreadsheetId"],
        range=sheet_range(config.get("sheetName") or DEFAULT_SHEET_NAME, "A1"),
        valueInputOption="USER_ENTERED",
        body={"values": [headers]},
    ).execute()
    return True


def header_row(fields: List[Mapping[str, Any]]) -> List[str]:
    return ["Submission ID", "Submitted At", *[str(f.get("label") or f.get("id")) for f in fields]]


def format_submission_row(submission: Mapping[str, Any], fields: List[Mapping[str, Any]]) -> Dict[str, Any]:
    answers = submission.get("answers") or {}
    row: Dict[str, Any] = {
        "Submission ID": submission.get("id"),
        "Submitted At": submission.get("createdAt") or iso(utcnow()),
    }
    for f in fields:
        value = answers.get(str(f.get("id")))
        label = str(f.get("label") or f.get("id"))
        if value is None:
            row[label] = ""
        elif isinstance(value, list):
            row[label] = ", ".join(str(v) for v in value)
        elif isinstance(value, dict):
            row[label] = json.dumps(value, ensure_ascii=False)
        else:
            row[label] = value
    return row


def map_to_headers(headers: List[str], data: Mapping[str, Any]) -> List[Any]:
    """Values ordered by header: exact key match first, then case-insensitive."""
    lowered = {str(k).lower(): k for k in data}
    out: List[Any] = []
    for h in headers:
        if h in data and data[h] is not None:
            out.append(data[h])
            continue
        key = lowered.get(str(h).lower())
        out.append(data[key] if key is not None and data[key] is not None else "")
    return out


def append_row(config: Mapping[str, Any], data: Mapping[str, Any]) -> Dict[str, Any]:
    if not config.get("spreadsheetId"):
        raise IntegrationError("Spreadsheet ID is missing")
    sheet = config.get("sheetName") or DEFAULT_SHEET_NAME
    service, _ = _open(config)
    values = service.spreadsheets().values()
    header_res = values.get(spreadsheetId=config["spreadsheetId"], range=sheet_range(sheet, "A1:Z1")).execute()
    headers = (header_res.get("values") or [[]])[0]
    if not headers:
        raise IntegrationError("No headers found in sheet")
    values.append(
        spreadsheetId=config["spreadsheetId"],
        range=sheet_range(sheet, "A1"),
        valueInputOption="USER_ENTERED",
        body={"values": [map_to_headers(headers, data)]},
    ).execute()
    return {"appended": True, "columns": len(headers)}
