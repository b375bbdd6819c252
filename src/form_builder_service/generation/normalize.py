"""
Turn loosely-shaped form output (LM text, imported JSON or CSV) into validated field lists.
"""

from __future__ import annotations

import csv
import html
import io
import json
import re
from typing import Any, Dict, List, Optional, Tuple

from form_builder_service.errors import BadRequest
from form_builder_service.logic.scoring import MULTI_CHOICE_TYPES, SINGLE_CHOICE_TYPES
from form_builder_service.schemas.forms import FieldConfig, dump_fields

CHOICE_TYPES = SINGLE_CHOICE_TYPES | MULTI_CHOICE_TYPES

KNOWN_TYPES = {
    "short-answer",
    "long-answer",
    "text",
    "textarea",
    "email",
    "phone",
    "tel",
    "url",
    "number",
    "currency",
    "checkbox",
    "date",
    "date-picker",
    "time",
    "file",
    "file-uploader",
    "star-rating",
    "slider",
} | CHOICE_TYPES

_TYPE_ALIASES = {
    "string": "short-answer",
    "input": "short-answer",
    "paragraph": "long-answer",
    "phone-number": "phone",
    "integer": "number",
    "float": "number",
    "boolean": "checkbox",
    "rating": "star-rating",
    "upload": "file",
    "multi-select": "multiselect",
    "single-choice": "multiple-choice",
}

_VALIDATION_KEYS = ("minLength", "maxLength", "min", "max", "pattern")

_FILLERS = re.compile(r"\b(um|uh|like|you know|sort of|kind of)\b", re.IGNORECASE)


def _strip_code_fences(s: str) -> str:
    t = str(s).strip()
    t = re.sub(r"^```(?:json)?\s*", "", t, flags=re.IGNORECASE)
    t = re.sub(r"\s*```$", "", t, flags=re.IGNORECASE)
    return t.strip()


def _safe_json_loads(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None


def best_effort_parse_json(text: str) -> Any:
    if not text:
        return None
    t = _strip_code_fences(str(text))
    parsed = _safe_json_loads(t)
    if parsed is not None:
        return parsed
    m = re.search(r"(\[[\s\S]*\]|\{[\s\S]*\})", t)
    if not m:
        return None
    return _safe_json_loads(m.group(0))


def slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", str(text or "").lower()).strip("_")


def normalize_type(raw: Any) -> str:
    t = str(raw or "").strip().lower().replace("_", "-").replace(" ", "-")
    t = _TYPE_ALIASES.get(t, t)
    return t if t in KNOWN_TYPES else "short-answer"


def _validation_rules(raw: Any) -> List[Dict[str, Any]]:
    if isinstance(raw, list):
        return [r for r in raw if isinstance(r, dict) and r.get("type")]
    if not isinstance(raw, dict):
        return []
    return [{"type": k, "value": raw[k]} for k in _VALIDATION_KEYS if raw.get(k) not in (None, "")]


def _options(raw: Any) -> List[str]:
    if isinstance(raw, str):
        raw = re.split(r"[|,]", raw)
    if not isinstance(raw, list):
        return []
    out: List[str] = []
    for opt in raw:
        label = opt.get("label") or opt.get("value") if isinstance(opt, dict) else opt
        text = str(label or "").strip()
        if text and text not in out:
            out.append(text)
    return out


def normalize_fields(raw_fields: Any) -> List[Dict[str, Any]]:
    """
    Unique slug ids, known types, options kept only on choice fields, sequential `order`.
    Entries without a label are dropped.
    """
    if not isinstance(raw_fields, list):
        return []
    seen: Dict[str, int] = {}
    fields: List[FieldConfig] = []
    for item in raw_fields:
        if not isinstance(item, dict):
            continue
        label = str(item.get("label") or item.get("name") or "").strip()
        if not label:
            continue
        base = slugify(item.get("id") or label) or "field"
        seen[base] = seen.get(base, 0) + 1
        field_id = base if seen[base] == 1 else f"{base}_{seen[base]}"

        ftype = normalize_type(item.get("type"))
        options = _options(item.get("options")) if ftype in CHOICE_TYPES else []
        if ftype in CHOICE_TYPES and not options:
            ftype = "short-answer"

        fields.append(
            FieldConfig.model_validate(
                {
                    "id": field_id,
                    "label": label,
                    "type": ftype,
                    "required": bool(item.get("required", False)),
                    "placeholder": item.get("placeholder") or None,
                    "helpText": item.get("helpText") or None,
                    "options": options or None,
                    "validation": _validation_rules(item.get("validation")),
                    "order": len(fields),
                }
            )
        )
    return dump_fields(fields)


def normalize_form(raw: Any, *, default_title: str = "Untitled Form") -> Dict[str, Any]:
    """`{title, fields}` from a parsed payload: an object with `fields`, or a bare field list."""
    if isinstance(raw, list):
        title, raw_fields = default_title, raw
    elif isinstance(raw, dict):
        title = str(raw.get("title") or default_title).strip() or default_title
        raw_fields = raw.get("fields")
    else:
        raise BadRequest("Generated form is not valid JSON")
    fields = normalize_fields(raw_fields)
    if not fields:
        raise BadRequest("No fields could be extracted")
    return {"title": title, "fields": fields}


def clean_transcript(text: str) -> str:
    """Drop spoken filler words and collapse whitespace."""
    cleaned = _FILLERS.sub("", str(text or ""))
    return re.sub(r"\s+", " ", cleaned).strip()


def html_to_text(page: str, *, max_chars: int = 8000) -> str:
    """Title, meta description and visible body text of an HTML page."""
    title_m = re.search(r"<title[^>]*>([^<]+)</title>", page, flags=re.IGNORECASE)
    desc_m = re.search(
        r"<meta[^>]*name=[\"']description[\"'][^>]*content=[\"']([^\"']+)[\"'][^>]*>", page, flags=re.IGNORECASE
    )
    body_m = re.search(r"<body[^>]*>([\s\S]*?)</body>", page, flags=re.IGNORECASE)
    body = body_m.group(1) if body_m else page
    body = re.sub(r"<script[^>]*>[\s\S]*?</script>", "", body, flags=re.IGNORECASE)
    body = re.sub(r"<style[^>]*>[\s\S]*?</style>", "", body, flags=re.IGNORECASE)
    body = re.sub(r"<[^>]+>", " ", body)
    body = re.sub(r"\s+", " ", html.unescape(body)).strip()
    if len(body) > max_chars:
        body = body[:max_chars] + "..."
    title = html.unescape(title_m.group(1).strip()) if title_m else ""
    desc = html.unescape(desc_m.group(1).strip()) if desc_m else ""
    return f"Title: {title}\nDescription: {desc}\nContent: {body}"


def import_json(content: str) -> Dict[str, Any]:
    """A JSON export: an array of fields, or an object with `title` and `fields`."""
    try:
        data = json.loads(content)
    except ValueError as e:
        raise BadRequest(f"Invalid JSON file: {e}") from e
    if isinstance(data, dict) and not isinstance(data.get("fields"), list):
        raise BadRequest("Invalid JSON structure. Expected array or object with 'fields' property")
    if not isinstance(data, (list, dict)):
        raise BadRequest("Invalid JSON structure. Expected array or object with 'fields' property")
    return normalize_form(data, default_title="Imported Form")


def _csv_columns(header: List[str]) -> Optional[Dict[str, int]]:
    cols = {h.strip().lower(): i for i, h in enumerate(header)}
    label_col = cols.get("label", cols.get("name", cols.get("field")))
    if label_col is None:
        return None
    out = {"label": label_col}
    for key in ("type", "required", "options", "placeholder"):
        if key in cols:
            out[key] = cols[key]
    return out


def parse_csv_fields(content: str) -> Optional[Tuple[str, List[Dict[str, Any]]]]:
    """
    Fields from a field-definition CSV (`label|name, type, required, options, placeholder`).
    Returns None when the header has no label column, so the caller can fall back to generation.
    """
    rows = [r for r in csv.reader(io.StringIO(content)) if any(c.strip() for c in r)]
    if len(rows) < 2:
        return None
    cols = _csv_columns(rows[0])
    if cols is None:
        return None

    def cell(row: List[str], key: str) -> str:
        idx = cols.get(key)
        return row[idx].strip() if idx is not None and idx < len(row) else ""

    raw = [
        {
            "id": re.sub(r"\s+", "_", cell(r, "label").lower()),
            "label": cell(r, "label"),
            "type": cell(r, "type") or "short-answer",
            "required": cell(r, "required").lower() in ("true", "yes", "1", "y"),
            "options": cell(r, "options"),
            "placeholder": cell(r, "placeholder"),
        }
        for r in rows[1:]
    ]
    fields = normalize_fields(raw)
    return ("Imported Form", fields) if fields else None


__all__ = [
    "best_effort_parse_json",
    "clean_transcript",
    "html_to_text",
    "import_json",
    "normalize_fields",
    "normalize_form",
    "normalize_type",
    "parse_csv_fields",
    "slugify",
]
