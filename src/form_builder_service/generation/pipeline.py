"""
Form generation entrypoints used by the `/api/ai/*` routes.

Every entrypoint returns the same envelope:

    {"ok": true, "requestId": ..., "title": ..., "fields": [...]}
    {"ok": false, "requestId": ..., "error": ...}

Successful generations are cached in `ai_response_cache` keyed by brief, source and model.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Dict, Optional

import dspy
import httpx

from form_builder_service import http
from form_builder_service.cache import cache_key, cached
from form_builder_service.config import get_settings
from form_builder_service.errors import ApiError, BadRequest
from form_builder_service.generation.lm import build_lm, make_dspy_lm, track_usage
from form_builder_service.generation.normalize import (
    best_effort_parse_json,
    clean_transcript,
    html_to_text,
    import_json,
    normalize_form,
    parse_csv_fields,
)
from form_builder_service.generation.program import FormGeneratorProgram

logger = logging.getLogger(__name__)

MAX_BRIEF_CHARS = 8000

_BROWSER_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}


def new_request_id() -> str:
    return f"gen_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


def _cache_ttl() -> int:
    ttl = int(get_settings().ai_cache_ttl_sec)
    return max(60, min(3600, ttl))


def run_program(lm_cfg: Dict[str, str], brief: str, source: str) -> str:
    """Run the DSPy program and return its raw `form_json` text."""
    lm = build_lm(lm_cfg)
    with dspy.context(lm=lm, track_usage=track_usage()):
        pred = FormGeneratorProgram()(brief=brief, source=source)
    return str(getattr(pred, "form_json", "") or "")


def generate_form(brief: str, *, source: str = "prompt") -> Dict[str, Any]:
    request_id = new_request_id()
    text = str(brief or "").strip()
    if not text:
        raise BadRequest("Prompt is required")
    text = text[:MAX_BRIEF_CHARS]

    lm_cfg = make_dspy_lm()
    if not lm_cfg:
        return {"ok": False, "error": "DSPy LM not configured", "requestId": request_id}

    def _generate() -> Dict[str, Any]:
        started = time.time()
        raw = run_program(lm_cfg, text, source)
        form = normalize_form(best_effort_parse_json(raw))
        logger.info(
            "generated form '%s' with %d fields from %s in %dms (model=%s)",
            form["title"],
            len(form["fields"]),
            source,
            int((time.time() - started) * 1000),
            lm_cfg["modelName"],
        )
        return form

    key = cache_key("ai-form", {"brief": text, "source": source, "model": lm_cfg["model"]})
    try:
        form = cached(key, _generate, _cache_ttl())
    except ApiError as e:
        logger.warning("form generation produced unusable output: %s", e.message)
        return {"ok": False, "error": e.message, "requestId": request_id}
    except Exception as e:  # noqa: BLE001 - LM/provider failures are reported, not raised
        logger.exception("form generation failed")
        return {"ok": False, "error": str(e) or "Form generation failed", "requestId": request_id}
    return {"ok": True, "requestId": request_id, **form}


def generate_from_transcript(transcript: str) -> Dict[str, Any]:
    cleaned = clean_transcript(transcript)
    if not cleaned:
        raise BadRequest("Transcript is required")
    return generate_form(cleaned, source="voice")


def fetch_url_text(url: str) -> str:
    target = str(url or "").strip()
    if not target.lower().startswith(("http://", "https://")):
        raise BadRequest("Invalid URL format")
    try:
        with http.client(timeout=10.0) as client:
            res = client.get(target, headers=_BROWSER_HEADERS)
            res.raise_for_status()
            page = res.text
    except httpx.HTTPError as e:
        logger.warning("failed to fetch %s: %s", target, e)
        raise BadRequest(f"Failed to scrape website: {e}") from e
    return html_to_text(page)


def generate_from_url(url: str) -> Dict[str, Any]:
    return generate_form(fetch_url_text(url), source="url")


def import_file(filename: str, content: bytes, content_type: Optional[str] = None) -> Dict[str, Any]:
    """
    `.json` files are imported as-is; field-definition CSVs are parsed directly; any other text goes
    through the generator.
    """
    name = str(filename or "").lower()
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise BadRequest("File must be UTF-8 text") from e
    if not text.strip():
        raise BadRequest("File is empty")

    if name.endswith(".json") or content_type == "application/json":
        form = import_json(text)
        return {"ok": True, "requestId": new_request_id(), "source": "json", **form}

    if name.endswith(".csv") or content_type == "text/csv":
        parsed = parse_csv_fields(text)
        if parsed is not None:
            title, fields = parsed
            return {"ok": True, "requestId": new_request_id(), "source": "csv", "title": title, "fields": fields}

    return generate_form(f"File: {filename}\n\n{text}", source="file")


__all__ = [
    "fetch_url_text",
    "generate_form",
    "generate_from_transcript",
    "generate_from_url",
    "import_file",
    "new_request_id",
    "run_program",
]
