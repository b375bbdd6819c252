"""
Supabase-backed store.

Tables use snake_case columns; JSON-typed configuration (`fields`, `styling`, `notifications`,
`config`, `answers`, ...) lives in jsonb columns. Only top-level keys are renamed.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from form_builder_service.config import get_settings
from form_builder_service.store.base import FORM_DEFAULTS, FormStore, Record, new_id
from form_builder_service.timeutil import iso

logger = logging.getLogger(__name__)

_client: Optional[Client] = None


def get_supabase_client() -> Optional[Client]:
    """Get or create Supabase client (singleton)."""
    global _client

    if _client is not None:
        return _client

    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_key:
        return None

    try:
        _client = create_client(settings.supabase_url, settings.supabase_key)
        return _client
    except Exception:
        logger.exception("Failed to create Supabase client")
        return None


def _snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(p[:1].upper() + p[1:] for p in rest)


def to_row(record: Record) -> Dict[str, Any]:
    return {_snake(k): v for k, v in record.items()}


def from_row(row: Optional[Dict[str, Any]]) -> Optional[Record]:
    if row is None:
        return None
    return {_camel(k): v for k, v in row.items()}


class SupabaseStore(FormStore):
    def __init__(self, client: Client) -> None:
        self.client = client

    def _table(self, name: str) -> Any:
        return self.client.table(name)

    def _one(self, res: Any) -> Optional[Record]:
        data = getattr(res, "data", None) or []
        return from_row(data[0]) if data else None

    def _many(self, res: Any) -> List[Record]:
        return [from_row(r) for r in (getattr(res, "data", None) or [])]  # type: ignore[misc]

    # users

    def create_user(self, *, email: str, name: Optional[str], password_hash: str) -> Record:
        row = {"id": new_id(), "email": email, "name": name, "password_hash": password_hash, "created_at": iso()}
        res = self._table("users").insert(row).execute()
        return self._one(res) or from_row(row)  # type: ignore[return-value]

    def get_user(self, user_id: str) -> Optional[Record]:
        return self._one(self._table("users").select("*").eq("id", user_id).limit(1).execute())

    def get_user_by_email(self, email: str) -> Optional[Record]:
        return self._one(self._table("users").select("*").eq("email", email).limit(1).execute())

    def update_user(self, user_id: str, changes: Record) -> Optional[Record]:
        return self._one(self._table("users").update(to_row(changes)).eq("id", user_id).execute())

    def delete_user(self, user_id: str) -> bool:
        return bool(self._many(self._table("users").delete().eq("id", user_id).execute()))

    # forms

    def create_form(self, data: Record) -> Record:
        now = iso()
        record = {**FORM_DEFAULTS, **data, "id": data.get("id") or new_id(), "createdAt": now, "updatedAt": now}
        res = self._table("forms").insert(to_row(record)).execute()
        return self._one(res) or record

    def get_form(self, form_id: str) -> Optional[Record]:
        return self._one(self._table("forms").select("*").eq("id", form_id).limit(1).execute())

    def update_form(self, form_id: str, changes: Record) -> Optional[Record]:
        row = to_row({**changes, "updatedAt": iso()})
        return self._one(self._table("forms").update(row).eq("id", form_id).execute())

    def delete_form(self, form_id: str) -> bool:
        self.delete_submissions(form_id)
        self._table("integrations").delete().eq("form_id", form_id).execute()
        self._table("collaborators").delete().eq("form_id", form_id).execute()
        return bool(self._many(self._table("forms").delete().eq("id", form_id).execute()))

    def list_forms_by_user(self, user_id: str) -> List[Record]:
        res = self._table("forms").select("*").eq("user_id", user_id).order("updated_at", desc=True).execute()
        rows = self._many(res)
        for r in rows:
            r["submissionCount"] = self.count_submissions(r["id"])
        return rows

    def list_shared_forms(self, user_id: str) -> List[Record]:
        collabs = self._many(self._table("collaborators").select("*").eq("user_id", user_id).execute())
        out: List[Record] = []
        for c in collabs:
            form = self.get_form(c["formId"])
            if form:
                form["role"] = c["role"]
                form["submissionCount"] = self.count_submissions(form["id"])
                out.append(form)
        out.sort(key=lambda r: r.get("updatedAt") or "", reverse=True)
        return out

    def forms_pending_closure(self, *, now_iso: str, limit: int) -> List[Record]:
        res = (
            self._table("forms")
            .select("*")
            .lte("closes_at", now_iso)
            .eq("closed_notification_sent", False)
            .not_.is_("user_id", "null")
            .order("closes_at")
            .limit(limit)
            .execute()
        )
        return self._many(res)

    def increment_closed_attempts(self, form_id: str) -> None:
        form = self.get_form(form_id)
        if not form:
            return
        n = int(form.get("closedSubmissionAttempts") or 0) + 1
        self._table("forms").update({"closed_submission_attempts": n}).eq("id", form_id).execute()

    # submissions

    def _attach_files(self, subs: List[Record]) -> List[Record]:
        if not subs:
            return subs
        ids = [s["id"] for s in subs]
        files = self._many(self._table("files").select("*").in_("submission_id", ids).execute())
        for s in subs:
            s["files"] = [f for f in files if f.get("submissionId") == s["id"]]
        return subs

    def create_submission(self, data: Record, files: Optional[List[Record]] = None) -> Record:
        record = {
            "id": data.get("id") or new_id(),
            "formId": data["formId"],
            "answers": data.get("answers") or {},
            "score": data.get("score"),
            "respondentId": data.get("respondentId"),
            "respondentEmail": data.get("respondentEmail"),
            "editToken": data.get("editToken"),
            "createdAt": iso(),
        }
        sub = self._one(self._table("submissions").insert(to_row(record)).execute()) or record
        saved_files: List[Record] = []
        if files:
            rows = []
            for f in files:
                rec = {**f, "submissionId": sub["id"], "id": f.get("id") or new_id()}
                rec.setdefault("uploadedAt", iso())
                rows.append(to_row(rec))
            saved_files = self._many(self._table("files").insert(rows).execute())
        sub["files"] = saved_files
        return sub

    def list_submissions(self, form_id: str, *, newest_first: bool = True) -> List[Record]:
        res = self._table("submissions").select("*").eq("form_id", form_id).order("created_at", desc=newest_first).execute()
        return self._attach_files(self._many(res))

    def count_submissions(self, form_id: str) -> int:
        res = self._table("submissions").select("id", count="exact").eq("form_id", form_id).execute()
        count = getattr(res, "count", None)
        if count is None:
            return len(getattr(res, "data", None) or [])
        return int(count)

    def delete_submissions(self, form_id: str) -> int:
        sub_ids = [r["id"] for r in (self._table("submissions").select("id").eq("form_id", form_id).execute().data or [])]
        if not sub_ids:
            return 0
        self._table("files").delete().in_("submission_id", sub_ids).execute()
        self._table("submissions").delete().eq("form_id", form_id).execute()
        return len(sub_ids)

    def find_submission_by_respondent(self, form_id: str, respondent_id: str) -> Optional[Record]:
        res = self._table("submissions").select("*").eq("form_id", form_id).eq("respondent_id", respondent_id).limit(1).execute()
        return self._one(res)

    def find_submission_by_edit_token(self, form_id: str, edit_token: str) -> Optional[Record]:
        res = self._table("submissions").select("*").eq("form_id", form_id).eq("edit_token", edit_token).limit(1).execute()
        sub = self._one(res)
        return self._attach_files([sub])[0] if sub else None

    def update_submission(self, submission_id: str, changes: Record) -> Optional[Record]:
        return self._one(self._table("submissions").update(to_row(changes)).eq("id", submission_id).execute())

    # integrations

    def get_integration(self, form_id: str, type_: str) -> Optional[Record]:
        res = self._table("integrations").select("*").eq("form_id", form_id).eq("type", type_).limit(1).execute()
        return self._one(res)

    def upsert_integration(self, form_id: str, type_: str, *, config: Record, enabled: bool) -> Record:
        now = iso()
        existing = self.get_integration(form_id, type_)
        if existing:
            res = (
                self._table("integrations")
                .update({"config": config, "enabled": bool(enabled), "updated_at": now})
                .eq("id", existing["id"])
                .execute()
            )
            return self._one(res) or {**existing, "config": config, "enabled": bool(enabled), "updatedAt": now}
        record = {
            "id": new_id(),
            "formId": form_id,
            "type": type_,
            "config": config,
            "enabled": bool(enabled),
            "createdAt": now,
            "updatedAt": now,
        }
        return self._one(self._table("integrations").insert(to_row(record)).execute()) or record

    def delete_integration(self, form_id: str, type_: str) -> bool:
        res = self._table("integrations").delete().eq("form_id", form_id).eq("type", type_).execute()
        return bool(self._many(res))

    def list_enabled_integrations(self, form_id: str) -> List[Record]:
        return self._many(self._table("integrations").select("*").eq("form_id", form_id).eq("enabled", True).execute())

    # collaborators

    def list_collaborators(self, form_id: str) -> List[Record]:
        return self._many(self._table("collaborators").select("*").eq("form_id", form_id).order("created_at").execute())

    def get_collaborator(self, collaborator_id: str) -> Optional[Record]:
        return self._one(self._table("collaborators").select("*").eq("id", collaborator_id).limit(1).execute())

    def find_collaborator(self, form_id: str, *, email: Optional[str] = None, user_id: Optional[str] = None) -> Optional[Record]:
        q = self._table("collaborators").select("*").eq("form_id", form_id)
        if email is not None:
            q = q.eq("email", email)
        if user_id is not None:
            q = q.eq("user_id", user_id)
        return self._one(q.limit(1).execute())

    def create_collaborator(self, *, form_id: str, email: str, role: str, user_id: Optional[str]) -> Record:
        record = {"id": new_id(), "formId": form_id, "userId": user_id, "email": email, "role": role, "createdAt": iso()}
        return self._one(self._table("collaborators").insert(to_row(record)).execute()) or record

    def delete_collaborator(self, collaborator_id: str) -> bool:
        return bool(self._many(self._table("collaborators").delete().eq("id", collaborator_id).execute()))

    def bind_pending_invites(self, *, email: str, user_id: str) -> int:
        res = (
            self._table("collaborators")
            .update({"user_id": user_id})
            .eq("email", email)
            .is_("user_id", "null")
            .execute()
        )
        return len(getattr(res, "data", None) or [])
