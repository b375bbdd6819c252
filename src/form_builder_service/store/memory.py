from __future__ import annotations

import copy
import threading
from typing import Dict, List, Optional

from form_builder_service.store.base import FORM_DEFAULTS, FormStore, Record, new_id
from form_builder_service.timeutil import iso, parse_ts


class MemoryStore(FormStore):
    """Process-local store for dev and tests. Returned records are copies."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self.users: Dict[str, Record] = {}
        self.forms: Dict[str, Record] = {}
        self.submissions: Dict[str, Record] = {}
        self.files: Dict[str, Record] = {}
        self.integrations: Dict[str, Record] = {}
        self.collaborators: Dict[str, Record] = {}

    # users

    def create_user(self, *, email: str, name: Optional[str], password_hash: str) -> Record:
        with self._lock:
            row = {"id": new_id(), "email": email, "name": name, "passwordHash": password_hash, "createdAt": iso()}
            self.users[row["id"]] = row
            return copy.deepcopy(row)

    def get_user(self, user_id: str) -> Optional[Record]:
        with self._lock:
            row = self.users.get(user_id)
            return copy.deepcopy(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[Record]:
        with self._lock:
            for row in self.users.values():
                if row["email"] == email:
                    return copy.deepcopy(row)
            return None

    def update_user(self, user_id: str, changes: Record) -> Optional[Record]:
        with self._lock:
            row = self.users.get(user_id)
            if not row:
                return None
            row.update(copy.deepcopy(changes))
            return copy.deepcopy(row)

    def delete_user(self, user_id: str) -> bool:
        with self._lock:
            return self.users.pop(user_id, None) is not None

    # forms

    def create_form(self, data: Record) -> Record:
        with self._lock:
            now = iso()
            row = {**copy.deepcopy(FORM_DEFAULTS), **copy.deepcopy(data)}
            row["id"] = data.get("id") or new_id()
            row["createdAt"] = now
            row["updatedAt"] = now
            self.forms[row["id"]] = row
            return copy.deepcopy(row)

    def get_form(self, form_id: str) -> Optional[Record]:
        with self._lock:
            row = self.forms.get(form_id)
            return copy.deepcopy(row) if row else None

    def update_form(self, form_id: str, changes: Record) -> Optional[Record]:
        with self._lock:
            row = self.forms.get(form_id)
            if not row:
                return None
            row.update(copy.deepcopy(changes))
            row["updatedAt"] = iso()
            return copy.deepcopy(row)

    def delete_form(self, form_id: str) -> bool:
        with self._lock:
            if self.forms.pop(form_id, None) is None:
                return False
            self._drop_submissions(form_id)
            for iid in [iid for iid, i in self.integrations.items() if i["formId"] == form_id]:
                self.integrations.pop(iid, None)
            for cid in [cid for cid, c in self.collaborators.items() if c["formId"] == form_id]:
                self.collaborators.pop(cid, None)
            return True

    def list_forms_by_user(self, user_id: str) -> List[Record]:
        with self._lock:
            rows = [copy.deepcopy(f) for f in self.forms.values() if f.get("userId") == user_id]
            for row in rows:
                row["submissionCount"] = self._count(row["id"])
            rows.sort(key=lambda r: r.get("updatedAt") or "", reverse=True)
            return rows

    def list_shared_forms(self, user_id: str) -> List[Record]:
        with self._lock:
            out: List[Record] = []
            for c in self.collaborators.values():
                if c.get("userId") != user_id:
                    continue
                form = self.forms.get(c["formId"])
                if form:
                    row = copy.deepcopy(form)
                    row["role"] = c["role"]
                    row["submissionCount"] = self._count(row["id"])
                    out.append(row)
            out.sort(key=lambda r: r.get("updatedAt") or "", reverse=True)
            return out

    def forms_pending_closure(self, *, now_iso: str, limit: int) -> List[Record]:
        now = parse_ts(now_iso)
        with self._lock:
            out: List[Record] = []
            for f in self.forms.values():
                closes_at = parse_ts(f.get("closesAt"))
                if not f.get("userId") or f.get("closedNotificationSent") or not closes_at:
                    continue
                if now is not None and closes_at <= now:
                    out.append(copy.deepcopy(f))
            out.sort(key=lambda r: r.get("closesAt") or "")
            return out[: max(0, limit)]

    def increment_closed_attempts(self, form_id: str) -> None:
        with self._lock:
            row = self.forms.get(form_id)
            if row:
                row["closedSubmissionAttempts"] = int(row.get("closedSubmissionAttempts") or 0) + 1

    # submissions

    def _count(self, form_id: str) -> int:
        return sum(1 for s in self.submissions.values() if s["formId"] == form_id)

    def _with_files(self, sub: Record) -> Record:
        row = copy.deepcopy(sub)
        row["files"] = [copy.deepcopy(f) for f in self.files.values() if f["submissionId"] == sub["id"]]
        return row

    def create_submission(self, data: Record, files: Optional[List[Record]] = None) -> Record:
        with self._lock:
            row = {
                "id": data.get("id") or new_id(),
                "formId": data["formId"],
                "answers": copy.deepcopy(data.get("answers") or {}),
                "score": data.get("score"),
                "respondentId": data.get("respondentId"),
                "respondentEmail": data.get("respondentEmail"),
                "editToken": data.get("editToken"),
                "createdAt": iso(),
            }
            self.submissions[row["id"]] = row
            for f in files or []:
                rec = {**copy.deepcopy(f), "submissionId": row["id"]}
                rec["id"] = rec.get("id") or new_id()
                rec.setdefault("uploadedAt", iso())
                self.files[rec["id"]] = rec
            return self._with_files(row)

    def list_submissions(self, form_id: str, *, newest_first: bool = True) -> List[Record]:
        with self._lock:
            # insertion order breaks createdAt ties
            ordered = [(s["createdAt"], i, s) for i, s in enumerate(self.submissions.values()) if s["formId"] == form_id]
            ordered.sort(key=lambda t: (t[0], t[1]), reverse=newest_first)
            return [self._with_files(s) for _, _, s in ordered]

    def count_submissions(self, form_id: str) -> int:
        with self._lock:
            return self._count(form_id)

    def _drop_submissions(self, form_id: str) -> int:
        sub_ids = {sid for sid, s in self.submissions.items() if s["formId"] == form_id}
        for sid in sub_ids:
            self.submissions.pop(sid, None)
        for fid in [fid for fid, f in self.files.items() if f["submissionId"] in sub_ids]:
            self.files.pop(fid, None)
        return len(sub_ids)

    def delete_submissions(self, form_id: str) -> int:
        with self._lock:
            return self._drop_submissions(form_id)

    def find_submission_by_respondent(self, form_id: str, respondent_id: str) -> Optional[Record]:
        with self._lock:
            for s in self.submissions.values():
                if s["formId"] == form_id and s.get("respondentId") == respondent_id:
                    return self._with_files(s)
            return None

    def find_submission_by_edit_token(self, form_id: str, edit_token: str) -> Optional[Record]:
        with self._lock:
            for s in self.submissions.values():
                if s["formId"] == form_id and edit_token and s.get("editToken") == edit_token:
                    return self._with_files(s)
            return None

    def update_submission(self, submission_id: str, changes: Record) -> Optional[Record]:
        with self._lock:
            row = self.submissions.get(submission_id)
            if not row:
                return None
            row.update(copy.deepcopy(changes))
            return self._with_files(row)

    # integrations

    def _find_integration(self, form_id: str, type_: str) -> Optional[Record]:
        for i in self.integrations.values():
            if i["formId"] == form_id and i["type"] == type_:
                return i
        return None

    def get_integration(self, form_id: str, type_: str) -> Optional[Record]:
        with self._lock:
            row = self._find_integration(form_id, type_)
            return copy.deepcopy(row) if row else None

    def upsert_integration(self, form_id: str, type_: str, *, config: Record, enabled: bool) -> Record:
        with self._lock:
            now = iso()
            row = self._find_integration(form_id, type_)
            if row:
                row.update({"config": copy.deepcopy(config), "enabled": bool(enabled), "updatedAt": now})
            else:
                row = {
                    "id": new_id(),
                    "formId": form_id,
                    "type": type_,
                    "config": copy.deepcopy(config),
                    "enabled": bool(enabled),
                    "createdAt": now,
                    "updatedAt": now,
                }
                self.integrations[row["id"]] = row
            return copy.deepcopy(row)

    def delete_integration(self, form_id: str, type_: str) -> bool:
        with self._lock:
            row = self._find_integration(form_id, type_)
            if not row:
                return False
            self.integrations.pop(row["id"], None)
            return True

    def list_enabled_integrations(self, form_id: str) -> List[Record]:
        with self._lock:
            return [copy.deepcopy(i) for i in self.integrations.values() if i["formId"] == form_id and i["enabled"]]

    # collaborators

    def list_collaborators(self, form_id: str) -> List[Record]:
        with self._lock:
            rows = [copy.deepcopy(c) for c in self.collaborators.values() if c["formId"] == form_id]
            rows.sort(key=lambda r: r["createdAt"])
            return rows

    def get_collaborator(self, collaborator_id: str) -> Optional[Record]:
        with self._lock:
            row = self.collaborators.get(collaborator_id)
            return copy.deepcopy(row) if row else None

    def find_collaborator(self, form_id: str, *, email: Optional[str] = None, user_id: Optional[str] = None) -> Optional[Record]:
        with self._lock:
            for c in self.collaborators.values():
                if c["formId"] != form_id:
                    continue
                if email is not None and c["email"] == email:
                    return copy.deepcopy(c)
                if user_id is not None and c.get("userId") == user_id:
                    return copy.deepcopy(c)
            return None

    def create_collaborator(self, *, form_id: str, email: str, role: str, user_id: Optional[str]) -> Record:
        with self._lock:
            row = {
                "id": new_id(),
                "formId": form_id,
                "userId": user_id,
                "email": email,
                "role": role,
                "createdAt": iso(),
            }
            self.collaborators[row["id"]] = row
            return copy.deepcopy(row)

    def delete_collaborator(self, collaborator_id: str) -> bool:
        with self._lock:
            return self.collaborators.pop(collaborator_id, None) is not None

    def bind_pending_invites(self, *, email: str, user_id: str) -> int:
        with self._lock:
            n = 0
            for c in self.collaborators.values():
                if c["email"] == email and not c.get("userId"):
                    c["userId"] = user_id
                    n += 1
            return n
