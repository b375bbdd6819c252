"""
Notion forwarding: one database page per submission.

Integration config shape: `{apiKey, databaseId, databaseTitle?, databaseUrl?, fieldMapping?}` where
`fieldMapping` maps form field ids to Notion property names.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from notion_client import APIResponseError, Client

from form_builder_service.errors import IntegrationError
from form_builder_service.logic.values import as_number
from form_builder_service.timeutil import iso, parse_ts

logger = logging.getLogger(__name__)

INTEGRATION_TYPE = "notion"

_CONNECT_ERRORS = {
    "unauthorized": "Invalid API key. Please check your Notion integration token.",
    "object_not_found": "Database not found. Leave database ID empty to create a new one automatically.",
}
_PAGE_ERRORS = {
    "unauthorized": "Invalid API key. Please reconnect your Notion integration.",
    "object_not_found": "Database not found. Please check the database ID.",
    "validation_error": "Invalid property format. Please check your database schema.",
}


def get_notion_client(api_key: str) -> Client:
    return Client(auth=api_key)


def extract_database_id(value: str) -> str:
    """Accept a Notion URL or a raw id; return the 32-character id."""
    raw = str(value or "").strip()
    m = re.search(r"notion\.so/(?:[^/]+/)?(?:[^/?#]*-)?([a-zA-Z0-9]{32})", raw)
    if m:
        return m.group(1)
    m = re.search(r"([a-f0-9]{32})", raw.replace("-", ""), flags=re.IGNORECASE)
    if m:
        return m.group(1)
    return re.sub(r"[^a-zA-Z0-9]", "", raw)


def _error_message(exc: Exception, table: Mapping[str, str], fallback: str) -> str:
    code = getattr(exc, "code", None)
    for key, msg in table.items():
        if code == key:
            return msg
    text = str(exc) or fallback
    if "API token" in text:
        return "Invalid API key format."
    return text


def _plain_title(obj: Mapping[str, Any]) -> str:
    title = obj.get("title") or []
    return "".join(t.get("plain_text", "") for t in title if isinstance(t, dict)) or "Untitled Database"


def create_database(client: Client, form_title: str) -> Dict[str, str]:
    pages = client.search(filter={"property": "object", "value": "page"}, page_size=1)
    results = pages.get("results") or []
    if not results:
        raise IntegrationError("No pages found. Please create a page in Notion first.")
    db = client.databases.create(
        parent={"type": "page_id", "page_id": results[0]["id"]},
        title=[{"type": "text", "text": {"content": f"{form_title} Submissions"}}],
        properties={"Submission ID": {"title": {}}, "Submitted At": {"date": {}}},
    )
    db_id = str(db["id"])
    return {"databaseId": db_id, "databaseUrl": db.get("url") or f"https://notion.so/{db_id.replace('-', '')}"}


def validate_connection(api_key: str, database_id: Optional[str], *, form_title: Optional[str] = None) -> Dict[str, Any]:
    """`{valid, error?, databaseId?, databaseTitle?, databaseUrl?}`; never raises."""
    try:
        client = get_notion_client(api_key)
        if not database_id:
            if not form_title:
                return {"valid": False, "error": "Form title required to create database"}
            created = create_database(client, form_title)
            return {"valid": True, "databaseTitle": f"{form_title} Submissions", **created}
        db = client.databases.retrieve(database_id=database_id)
        return {"valid": True, "databaseId": database_id, "databaseTitle": _plain_title(db), "databaseUrl": db.get("url")}
    except (APIResponseError, IntegrationError) as e:
        logger.warning("notion validation failed: %s", e)
        return {"valid": False, "error": _error_message(e, _CONNECT_ERRORS, "Failed to validate Notion connection")}


def database_schema(client: Client, database_id: str) -> Dict[str, Dict[str, str]]:
    db = client.databases.retrieve(database_id=database_id)
    props = db.get("properties") or {}
    return {k: {"type": str(v.get("type")), "name": str(v.get("name") or k)} for k, v in props.items()}


def empty_property(prop_type: str) -> Dict[str, Any]:
    if prop_type in ("title", "rich_text", "multi_select"):
        return {prop_type: []}
    if prop_type == "checkbox":
        return {"checkbox": False}
    if prop_type in ("number", "select", "date", "url", "email", "phone_number"):
        return {prop_type: None}
    return {"rich_text": []}


def _text(value: Any) -> List[Dict[str, Any]]:
    return [{"text": {"content": str(value)[:2000]}}]


def format_property(value: Any, prop_type: str) -> Dict[str, Any]:
    if value is None or value == "":
        return empty_property(prop_type)
    if prop_type == "title":
        return {"title": _text(value)}
    if prop_type == "rich_text":
        return {"rich_text": _text(value)}
    if prop_type == "number":
        num = as_number(value)
        return empty_property(prop_type) if num is None else {"number": num}
    if prop_type == "select":
        return {"select": {"name": str(value)}}
    if prop_type == "multi_select":
        items = value if isinstance(value, list) else [value]
        return {"multi_select": [{"name": str(v)} for v in items]}
    if prop_type == "date":
        ts = parse_ts(value)
        return {"date": {"start": ts.date().isoformat()}} if ts else empty_property(prop_type)
    if prop_type == "checkbox":
        if isinstance(value, str):
            return {"checkbox": value.strip().lower() not in ("", "false", "0", "no", "off")}
        return {"checkbox": bool(value)}
    if prop_type in ("url", "email", "phone_number"):
        return {prop_type: str(value)}
    return {"rich_text": _text(value)}


def format_submission(
    submission: Mapping[str, Any],
    fields: List[Mapping[str, Any]],
    field_mapping: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    answers = submission.get("answers") or {}
    out: Dict[str, Any] = {
        "Submission ID": submission.get("id"),
        "Submitted At": submission.get("createdAt") or iso(),
    }
    for f in fields:
        fid = str(f.get("id"))
        name = (field_mapping or {}).get(fid) or str(f.get("label") or fid)
        value = answers.get(fid)
        if value is None:
            out[name] = ""
        elif isinstance(value, list):
            out[name] = ", ".join(str(v) for v in value)
        elif isinstance(value, dict):
            out[name] = json.dumps(value, ensure_ascii=False)
        else:
            out[name] = value
    return out


def build_properties(values: Mapping[str, Any], schema: Mapping[str, Mapping[str, str]]) -> Dict[str, Any]:
    """Match values to schema properties by key, then by case-insensitive name. Unknown keys are dropped."""
    props: Dict[str, Any] = {}
    by_name = {str(p["name"]).lower(): k for k, p in schema.items()}
    for key, value in values.items():
        prop_key = key if key in schema else by_name.get(str(key).lower())
        if prop_key is None:
            continue
        props[prop_key] = format_property(value, schema[prop_key]["type"])
    return props


def create_page(config: Mapping[str, Any], values: Mapping[str, Any]) -> Dict[str, Any]:
    database_id = config.get("databaseId")
    if not database_id:
        raise IntegrationError("Database ID is required")
    try:
        client = get_notion_client(str(config.get("apiKey") or ""))
        schema = database_schema(client, str(database_id))
        page = client.pages.create(parent={"database_id": database_id}, properties=build_properties(values, schema))
    except APIResponseError as e:
        raise IntegrationError(_error_message(e, _PAGE_ERRORS, "Failed to create Notion page")) from e
    return {"pageId": page.get("id")}
