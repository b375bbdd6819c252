from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from form_builder_service.timeutil import parse_ts, utcnow

OPEN = "open"
NOT_YET_OPEN = "not_yet_open"
CLOSED = "closed"
MANUALLY_CLOSED = "manually_closed"

DEFAULT_CLOSED_MESSAGE = "This form is no longer accepting responses."
DEFAULT_NOT_OPEN_MESSAGE = "This form is not yet open for responses."


def form_status(form: Mapping[str, Any], now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    if form.get("isClosed"):
        return MANUALLY_CLOSED
    opens_at = parse_ts(form.get("opensAt"))
    if opens_at and now < opens_at:
        return NOT_YET_OPEN
    closes_at = parse_ts(form.get("closesAt"))
    if closes_at and now >= closes_at:
        return CLOSED
    return OPEN


def is_accepting(form: Mapping[str, Any], now: Optional[datetime] = None) -> bool:
    return form_status(form, now) == OPEN


def availability(form: Mapping[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    status = form_status(form, now)
    message: Optional[str] = None
    if status == NOT_YET_OPEN:
        message = DEFAULT_NOT_OPEN_MESSAGE
    elif status != OPEN:
        message = form.get("closedMessage") or DEFAULT_CLOSED_MESSAGE
    return {
        "status": status,
        "acceptingSubmissions": status == OPEN,
        "opensAt": form.get("opensAt"),
        "closesAt": form.get("closesAt"),
        "closedMessage": message,
    }
