from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Mapping

from form_builder_service.timeutil import iso, parse_ts


def export_filename(title: str, ext: str) -> str:
    safe = re.sub(r"[^a-z0-9]", "_", str(title or ""), flags=re.IGNORECASE)
    return f"{safe}_submissions.{ext}"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        text = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    elif isinstance(value, bool):
        text = "true" if value else "false"
    else:
        text = str(value)
    return '"' + text.replace('"', '""') + '"'


def _submitted_at(sub: Mapping[str, Any]) -> str:
    ts = parse_ts(sub.get("createdAt"))
    return iso(ts) if ts else str(sub.get("createdAt") or "")


def submissions_to_csv(fields: List[Dict[str, Any]], submissions: List[Dict[str, Any]]) -> str:
    """Every cell quoted, embedded quotes doubled, object values JSON-encoded."""
    header = ["Submission ID", "Submitted At", *[str(f.get("label") or "") for f in fields], "Files"]
    lines = [",".join(_cell(h) for h in header)]
    for sub in submissions:
        answers = sub.get("answers") or {}
        row = [
            sub.get("id"),
            _submitted_at(sub),
            *[answers.get(str(f.get("id"))) for f in fields],
            "; ".join(str(f.get("originalName") or "") for f in (sub.get("files") or [])),
        ]
        lines.append(",".join(_cell(c) for c in row))
    return "\n".join(lines)


def submissions_to_json(form: Mapping[str, Any], submissions: List[Dict[str, Any]]) -> Dict[str, Any]:
    fields = list(form.get("fields") or [])
    out: List[Dict[str, Any]] = []
    for sub in submissions:
        answers = sub.get("answers") or {}
        labelled = {}
        for f in fields:
            value = answers.get(str(f.get("id")))
            labelled[str(f.get("label") or f.get("id"))] = "" if value is None or value == "" else value
        out.append(
            {
                "submissionId": sub.get("id"),
                "submittedAt": sub.get("createdAt"),
                "answers": labelled,
                "files": [
                    {"fieldId": f.get("fieldId"), "filename": f.get("originalName"), "url": f.get("path")}
                    for f in (sub.get("files") or [])
                ],
            }
        )
    return {
        "formTitle": form.get("title"),
        "formId": form.get("id"),
        "exportDate": iso(),
        "totalSubmissions": len(submissions),
        "submissions": out,
    }
