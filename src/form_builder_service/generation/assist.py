"""
Builder-side AI helpers: single-field assists and the conversational form editor.

Both follow the generator's envelope (`{"ok": true, "requestId": ...}` or `{"ok": false, "error"}`)
and run their DSPy program inside a per-call `dspy.context`.
"""

from __future__ import annotations

import json
import logging
import secrets
import time
from typing import Any, Dict, List, Mapping, Optional

import dspy

from form_builder_service.errors import BadRequest
from form_builder_service.generation.lm import build_lm, make_dspy_lm, track_usage
from form_builder_service.generation.normalize import CHOICE_TYPES, best_effort_parse_json, normalize_type
from form_builder_service.generation.pipeline import new_request_id
from form_builder_service.generation.signatures import FieldAssistSignature, FormChatSignature

logger = logging.getLogger(__name__)

MAX_HISTORY = 20
CHAT_ACTIONS = ("add", "update", "delete", "reorder", "quiz-config")
DEFAULT_OPTIONS = ["Option 1", "Option 2", "Option 3"]

_REWRITE_STYLES = {
    "rewrite-concise": "Make it shorter and more direct while keeping the same meaning.",
    "rewrite-formal": "Make it more professional and formal in tone.",
    "rewrite-casual": "Make it friendly and conversational.",
}

ASSIST_INSTRUCTIONS: Dict[str, str] = {
    "improve-question": (
        "Improve the question so it is clearer and more effective. Give 3 improved versions. "
        'Return {"suggestions": [{"text": str, "reason": str}]}.'
    ),
    **{
        action: (
            f"Rewrite the question. {style} "
            'Return {"rewritten": str, "original": str}.'
        )
        for action, style in _REWRITE_STYLES.items()
    },
    "fix-grammar": (
        "Fix grammar, spelling and punctuation in the question. "
        'Return {"fixed": str, "changes": [str], "hadErrors": bool}.'
    ),
    "translate": (
        "Translate the question into targetLanguage (Spanish when it is missing). "
        'Return {"translated": str, "targetLanguage": str}.'
    ),
    "generate-options": (
        "Generate 4-6 relevant, comprehensive options for this choice question, with an Other option "
        'when it fits. Return {"options": [str], "includesOther": bool}.'
    ),
    "add-more-options": (
        "Add 3-4 options that complement the existing options without duplicating any. "
        'Return {"newOptions": [str]}.'
    ),
    "suggest-placeholder": (
        "Suggest a brief placeholder (about 3-5 words) that shows an example of the expected input. "
        'Return {"placeholder": str, "alternative": str}.'
    ),
    "suggest-help-text": (
        "Suggest 1-2 sentences of help text explaining what is needed and any format requirements. "
        'Return {"helpText": str, "alternative": str}.'
    ),
    "suggest-validation": (
        "Suggest validation rules that suit this field. Rule types: minLength, maxLength, min, max, pattern. "
        'Return {"suggestions": [{"type": str, "value": str|number, "message": str, "reason": str}], '
        '"shouldBeRequired": bool, "requiredReason": str}.'
    ),
    "generate-distractors": (
        "Write 3-4 plausible but incorrect options for this quiz question, similar in length and format "
        'to correctAnswer. Return {"distractors": [{"text": str, "whyWrong": str}]}.'
    ),
    "explain-answer": (
        "Explain why correctAnswer is right and, briefly, why the other options are wrong. "
        'Return {"explanation": str, "keyPoint": str}.'
    ),
    "suggest-follow-up": (
        "Suggest 3 follow-up questions that would logically come next in this form. "
        'Return {"suggestions": [{"label": str, "type": str, "reason": str, "options"?: [str]}]}.'
    ),
    "suggest-section-name": (
        "Suggest a section title grouping the fields listed in otherFields. "
        'Return {"sectionName": str, "alternatives": [str]}.'
    ),
    "check-accessibility": (
        "Review the field for accessibility: descriptive label, screen reader support, no reliance on colour, "
        'clear instructions. Return {"score": 1-10, "issues": [{"issue": str, "severity": "high"|"medium"|"low", '
        '"fix": str}], "suggestions": [str], "isAccessible": bool}.'
    ),
    "suggest-conditional-logic": (
        "Suggest show/hide rules linking this field to the fields in otherFields. Operators: equals, notEquals, "
        'contains, isEmpty. Return {"suggestions": [{"condition": str, "sourceField": str, "operator": str, '
        '"value": str, "action": "show"|"hide", "reason": str}]}.'
    ),
}


def _context_payload(action: str, context: Mapping[str, Any]) -> Dict[str, Any]:
    payload = {k: v for k, v in context.items() if v not in (None, "", [])}
    if action == "translate":
        payload.setdefault("targetLanguage", "Spanish")
    if action == "explain-answer" and payload.get("options"):
        correct = payload.get("correctAnswer")
        wrong = [o for o in payload["options"] if (o not in correct if isinstance(correct, list) else o != correct)]
        payload["otherOptions"] = wrong
    return payload


def run_assist(lm_cfg: Dict[str, str], action: str, instructions: str, context_json: str) -> str:
    lm = build_lm(lm_cfg)
    with dspy.context(lm=lm, track_usage=track_usage()):
        pred = dspy.Predict(FieldAssistSignature)(action=action, instructions=instructions, context_json=context_json)
    return str(getattr(pred, "result_json", "") or "")


def inline_assist(action: str, context: Mapping[str, Any]) -> Dict[str, Any]:
    """One assist action for one field: `{ok, requestId, action, data}`."""
    request_id = new_request_id()
    if not action:
        raise BadRequest("Action is required")
    instructions = ASSIST_INSTRUCTIONS.get(action)
    if instructions is None:
        raise BadRequest("Unknown action")

    lm_cfg = make_dspy_lm()
    if not lm_cfg:
        return {"ok": False, "error": "DSPy LM not configured", "requestId": request_id}

    context_json = json.dumps(_context_payload(action, context), ensure_ascii=False)
    try:
        raw = run_assist(lm_cfg, action, instructions, context_json)
    except Exception as e:  # noqa: BLE001 - LM/provider failures are reported, not raised
        logger.exception("inline assist %s failed", action)
        return {"ok": False, "error": str(e) or "Failed to process AI request", "requestId": request_id}

    data = best_effort_parse_json(raw)
    if not isinstance(data, dict):
        data = {"result": raw}
    logger.info("inline assist %s answered (model=%s)", action, lm_cfg["modelName"])
    return {"ok": True, "requestId": request_id, "action": action, "data": data}


# --- conversational editor ---


def describe_form(form_context: Mapping[str, Any]) -> str:
    """The numbered field list the chat program edits against."""
    fields = list(form_context.get("fields") or [])
    lines = [f'Title: "{form_context.get("title") or "Untitled Form"}"', f"Total fields: {len(fields)}", "Fields:"]
    if not fields:
        lines.append("No fields yet")
    for i, f in enumerate(fields, start=1):
        desc = f'{i}. [ID: {f.get("id")}] "{f.get("label")}" (type: {f.get("type")})'
        if f.get("required"):
            desc += " *required"
        options = f.get("options") or []
        if options:
            desc += " options: [" + ", ".join(f'{chr(65 + j)}="{o}"' for j, o in enumerate(options)) + "]"
        quiz = f.get("quizConfig") or {}
        if quiz.get("correctAnswer") is not None:
            desc += f' [QUIZ: correct="{quiz["correctAnswer"]}"'
            if quiz.get("points"):
                desc += f", points={quiz['points']}"
            desc += "]"
        lines.append(desc)

    selected = form_context.get("selectedFieldId")
    if selected:
        match = next((f for f in fields if f.get("id") == selected), None)
        label = (match or {}).get("label") or selected
        lines.append(f'Currently selected field ("this field"): {label} (ID: {selected})')
    if fields:
        lines.append(f'Last field: "{fields[-1].get("label")}" (field {len(fields)})')
    return "\n".join(lines)


def _resolve_field_id(ref: Any, fields: List[Mapping[str, Any]]) -> Optional[str]:
    """Exact id, then 1-based position, then label substring."""
    text = str(ref or "").strip()
    if not text:
        return None
    if any(f.get("id") == text for f in fields):
        return text
    if text.isdigit() and 1 <= int(text) <= len(fields):
        return fields[int(text) - 1].get("id")
    needle = text.lower()
    match = next((f for f in fields if needle in str(f.get("label") or "").lower()), None)
    return match.get("id") if match else None


def _new_field_id() -> str:
    return f"field_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def _sanitize_new_field(raw: Mapping[str, Any], order: int) -> Dict[str, Any]:
    field = dict(raw)
    field["id"] = str(field.get("id") or _new_field_id())
    field["type"] = normalize_type(field.get("type"))
    field["label"] = str(field.get("label") or "New Field")
    if not isinstance(field.get("required"), bool):
        field["required"] = False
    field["order"] = order
    if field["type"] in CHOICE_TYPES and not field.get("options"):
        field["options"] = list(DEFAULT_OPTIONS)
    return field


def sanitize_modifications(raw: Any, form_context: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """
    Keep only modifications the editor can apply: known actions, new fields filled in, and field
    references resolved to ids that exist. Reorder targets are clamped into range.
    """
    if not isinstance(raw, list):
        return []
    fields = [f for f in (form_context.get("fields") or []) if isinstance(f, Mapping)]
    out: List[Dict[str, Any]] = []
    added = 0
    for item in raw:
        if not isinstance(item, dict) or item.get("action") not in CHAT_ACTIONS:
            continue
        mod = dict(item)
        action = mod["action"]
        if action == "add":
            if not isinstance(mod.get("field"), dict):
                continue
            mod["field"] = _sanitize_new_field(mod["field"], len(fields) + added)
            added += 1
            out.append(mod)
            continue

        field_id = _resolve_field_id(mod.get("fieldId"), fields)
        if not field_id:
            logger.info("dropping %s modification for unknown field %r", action, mod.get("fieldId"))
            continue
        mod["fieldId"] = field_id
        if action == "update":
            changes = dict(mod.get("field") or {})
            if "type" in changes:
                changes["type"] = normalize_type(changes["type"])
            mod["field"] = changes
        elif action == "reorder":
            try:
                index = int(mod.get("newIndex"))
            except (TypeError, ValueError):
                continue
            mod["newIndex"] = max(0, min(index, len(fields) - 1))
        elif action == "quiz-config":
            quiz = dict(mod.get("quizConfig") or {})
            if "points" in quiz:
                try:
                    quiz["points"] = float(quiz["points"]) or 1
                except (TypeError, ValueError):
                    quiz["points"] = 1
            mod["quizConfig"] = quiz
        out.append(mod)
    return out


def run_chat(lm_cfg: Dict[str, str], form_state: str, history_json: str, message: str) -> str:
    lm = build_lm(lm_cfg)
    with dspy.context(lm=lm, track_usage=track_usage()):
        pred = dspy.Predict(FormChatSignature)(form_state=form_state, history_json=history_json, message=message)
    return str(getattr(pred, "reply_json", "") or "")


def chat_edit(message: str, history: List[Mapping[str, Any]], form_context: Mapping[str, Any]) -> Dict[str, Any]:
    """`{ok, requestId, message, modifications?, newTitle?}` for one chat turn."""
    request_id = new_request_id()
    text = str(message or "").strip()
    if not text:
        raise BadRequest("Message is required")

    lm_cfg = make_dspy_lm()
    if not lm_cfg:
        return {"ok": False, "error": "DSPy LM not configured", "requestId": request_id}

    turns = [{"role": h.get("role"), "content": h.get("content")} for h in history][-MAX_HISTORY:]
    try:
        raw = run_chat(lm_cfg, describe_form(form_context), json.dumps(turns, ensure_ascii=False), text)
    except Exception as e:  # noqa: BLE001 - LM/provider failures are reported, not raised
        logger.exception("form chat failed")
        return {"ok": False, "error": str(e) or "Failed to process AI request", "requestId": request_id}

    parsed = best_effort_parse_json(raw)
    if not isinstance(parsed, dict) or not parsed.get("message"):
        return {"ok": True, "requestId": request_id, "message": str(raw or "").strip()}

    out: Dict[str, Any] = {"ok": True, "requestId": request_id, "message": str(parsed["message"])}
    modifications = sanitize_modifications(parsed.get("modifications"), form_context)
    if modifications:
        out["modifications"] = modifications
    if isinstance(parsed.get("newTitle"), str) and parsed["newTitle"].strip():
        out["newTitle"] = parsed["newTitle"].strip()
    logger.info("form chat turn: %d modification(s) (model=%s)", len(modifications), lm_cfg["modelName"])
    return out


__all__ = [
    "ASSIST_INSTRUCTIONS",
    "chat_edit",
    "describe_form",
    "inline_assist",
    "run_assist",
    "run_chat",
    "sanitize_modifications",
]
