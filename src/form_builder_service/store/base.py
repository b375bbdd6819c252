"""
Storage interface.

Records are plain dicts with camelCase keys (the same shape the API returns). JSON-typed
columns (`fields`, `styling`, `notifications`, ...) are stored as-is.
"""

from __future__ import annotations

import abc
import uuid
from typing import Any, Dict, List, Optional

Record = Dict[str, Any]


def new_id() -> str:
    return uuid.uuid4().hex


FORM_DEFAULTS: Record = {
    "userId": None,
    "title": "",
    "fields": [],
    "multiStepConfig": None,
    "styling": None,
    "notifications": None,
    "translations": None,
    "templateId": None,
    "conversationalMode": False,
    "quizMode": None,
    "limitOneResponse": False,
    "saveAndEdit": False,
    "opensAt": None,
    "closesAt": None,
    "isClosed": False,
    "closedMessage": None,
    "closedNotificationSent": False,
    "closedSubmissionAttempts": 0,
}


class FormStore(abc.ABC):
    # users

    @abc.abstractmethod
    def create_user(self, *, email: str, name: Optional[str], password_hash: str) -> Record: ...

    @abc.abstractmethod
    def get_user(self, user_id: str) -> Optional[Record]: ...

    @abc.abstractmethod
    def get_user_by_email(self, email: str) -> Optional[Record]: ...

    @abc.abstractmethod
    def update_user(self, user_id: str, changes: Record) -> Optional[Record]: ...

    @abc.abstractmethod
    def delete_user(self, user_id: str) -> bool: ...

    # forms

    @abc.abstractmethod
    def create_form(self, data: Record) -> Record: ...

    @abc.abstractmethod
    def get_form(self, form_id: str) -> Optional[Record]: ...

    @abc.abstractmethod
    def update_form(self, form_id: str, changes: Record) -> Optional[Record]: ...

    @abc.abstractmethod
    def delete_form(self, form_id: str) -> bool:
        """Delete a form with its submissions, files, integrations and collaborators."""

    @abc.abstractmethod
    def list_forms_by_user(self, user_id: str) -> List[Record]:
        """Owned forms, newest `updatedAt` first, each with `submissionCount`."""

    @abc.abstractmethod
    def list_shared_forms(self, user_id: str) -> List[Record]: ...

    @abc.abstractmethod
    def forms_pending_closure(self, *, now_iso: str, limit: int) -> List[Record]:
        """Owned forms with `closesAt <= now` that have not sent their closing notice."""

    @abc.abstractmethod
    def increment_closed_attempts(self, form_id: str) -> None: ...

    # submissions

    @abc.abstractmethod
    def create_submission(self, data: Record, files: Optional[List[Record]] = None) -> Record: ...

    @abc.abstractmethod
    def list_submissions(self, form_id: str, *, newest_first: bool = True) -> List[Record]: ...

    @abc.abstractmethod
    def count_submissions(self, form_id: str) -> int: ...

    @abc.abstractmethod
    def find_submission_by_respondent(self, form_id: str, respondent_id: str) -> Optional[Record]: ...

    @abc.abstractmethod
    def find_submission_by_edit_token(self, form_id: str, edit_token: str) -> Optional[Record]: ...

    @abc.abstractmethod
    def update_submission(self, submission_id: str, changes: Record) -> Optional[Record]: ...

    @abc.abstractmethod
    def delete_submissions(self, form_id: str) -> int:
        """Remove every submission (and its files) of a form; returns how many were removed."""

    # integrations

    @abc.abstractmethod
    def get_integration(self, form_id: str, type_: str) -> Optional[Record]: ...

    @abc.abstractmethod
    def upsert_integration(self, form_id: str, type_: str, *, config: Record, enabled: bool) -> Record: ...

    @abc.abstractmethod
    def delete_integration(self, form_id: str, type_: str) -> bool: ...

    @abc.abstractmethod
    def list_enabled_integrations(self, form_id: str) -> List[Record]: ...

    # collaborators

    @abc.abstractmethod
    def list_collaborators(self, form_id: str) -> List[Record]: ...

    @abc.abstractmethod
    def get_collaborator(self, collaborator_id: str) -> Optional[Record]: ...

    @abc.abstractmethod
    def find_collaborator(self, form_id: str, *, email: Optional[str] = None, user_id: Optional[str] = None) -> Optional[Record]: ...

    @abc.abstractmethod
    def create_collaborator(self, *, form_id: str, email: str, role: str, user_id: Optional[str]) -> Record: ...

    @abc.abstractmethod
    def delete_collaborator(self, collaborator_id: str) -> bool: ...

    @abc.abstractmethod
    def bind_pending_invites(self, *, email: str, user_id: str) -> int:
        """Attach collaborator rows invited by email to the user who just signed up."""
