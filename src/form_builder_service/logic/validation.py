from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional

from form_builder_service.logic.conditional import visible_fields
from form_builder_service.logic.values import as_number, as_text, is_empty

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
URL_RE = re.compile(r"^https?://.+")

_EMAIL_TYPES = {"email"}
_URL_TYPES = {"url"}


def format_message(message: Optional[str], values: Mapping[str, Any]) -> str:
    out = str(message or "")
    for k, v in values.items():
        out = out.replace("{" + k + "}", as_text(v))
    return out


def _js_pattern(raw: str) -> str:
    # Stored patterns may be a stringified regex literal such as `/^\d+$/`.
    m = re.fullmatch(r"/(.*)/[a-z]*", raw, flags=re.DOTALL)
    return m.group(1) if m else raw


def validate_rule(value: Any, rule: Mapping[str, Any]) -> Optional[str]:
    kind = rule.get("type")
    text = as_text(value)
    message = rule.get("message")

    if kind == "minLength":
        limit = as_number(rule.get("value")) or 0
        if len(text) < limit:
            return format_message(message or "Minimum length is {minLength} characters", {"minLength": limit, "actualLength": len(text)})
        return None

    if kind == "maxLength":
        limit = as_number(rule.get("value")) or 0
        if len(text) > limit:
            return format_message(message or "Maximum length is {maxLength} characters", {"maxLength": limit, "actualLength": len(text)})
        return None

    if kind == "pattern":
        try:
            pattern = re.compile(_js_pattern(as_text(rule.get("value"))))
        except re.error:
            logger.warning("Invalid regex pattern: %r", rule.get("value"))
            return "Invalid validation pattern"
        if not pattern.search(text):
            return format_message(message or "Invalid format", {"pattern": rule.get("value")})
        return None

    if kind in ("min", "max"):
        num = as_number(value)
        if num is None:
            return "Value must be a number"
        bound = as_number(rule.get("value")) or 0
        if kind == "min" and num < bound:
            return format_message(message or "Minimum value is {min}", {"min": bound, "actual": num})
        if kind == "max" and num > bound:
            return format_message(message or "Maximum value is {max}", {"max": bound, "actual": num})
        return None

    if kind == "custom":
        if text.strip() == "":
            return str(message or "Invalid value")
        return None

    return None


def validate_value(value: Any, rules: List[Mapping[str, Any]]) -> Optional[str]:
    """First failing rule's message, or None."""
    for rule in rules or []:
        error = validate_rule(value, rule)
        if error:
            return error
    return None


def validate_field(field: Mapping[str, Any], value: Any) -> Optional[str]:
    if is_empty(value) or (isinstance(value, str) and value.strip() == ""):
        if field.get("required"):
            return f"{field.get('label') or 'This field'} is required"
        return None

    ftype = str(field.get("type") or "")
    if ftype in _EMAIL_TYPES and not EMAIL_RE.match(as_text(value)):
        return "Please enter a valid email address"
    if ftype in _URL_TYPES and not URL_RE.match(as_text(value)):
        return "Please enter a valid URL"

    return validate_value(value, list(field.get("validation") or []))


def validate_answers(fields: List[Dict[str, Any]], answers: Mapping[str, Any]) -> Dict[str, str]:
    """Per-field errors for visible fields only."""
    visible = set(visible_fields(fields, answers))
    errors: Dict[str, str] = {}
    for f in fields:
        fid = str(f.get("id"))
        if fid not in visible:
            continue
        err = validate_field(f, answers.get(fid))
        if err:
            errors[fid] = err
    return errors
