from types import SimpleNamespace

from form_builder_service.store.supabase_store import SupabaseStore, from_row, to_row


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.calls = []

    def __getattr__(self, name):
        def call(*args, **kwargs):
            self.calls.append((name, args))
            return self

        return call

    def execute(self):
        self.client.executed.append((self.table, self.calls))
        return SimpleNamespace(data=self.client.responses.pop(0) if self.client.responses else [])


class FakeClient:
    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)


def test_row_key_mapping():
    assert to_row({"userId": "u", "closedNotificationSent": True, "id": "x"}) == {
        "user_id": "u",
        "closed_notification_sent": True,
        "id": "x",
    }
    assert from_row({"password_hash": "h", "created_at": "t"}) == {"passwordHash": "h", "createdAt": "t"}
    assert from_row(None) is None


def test_create_user_inserts_snake_case_row():
    client = FakeClient()
    user = SupabaseStore(client).create_user(email="a@b.co", name="A", password_hash="h")
    [(table, calls)] = client.executed
    assert table == "users"
    inserted = calls[0][1][0]
    assert inserted["password_hash"] == "h"
    assert user["passwordHash"] == "h"
    assert user["email"] == "a@b.co"


def test_get_form_reads_camel_case():
    client = FakeClient(responses=[[{"id": "f1", "user_id": "u1", "quiz_mode": {"enabled": True}}]])
    form = SupabaseStore(client).get_form("f1")
    assert form == {"id": "f1", "userId": "u1", "quizMode": {"enabled": True}}
    [(table, calls)] = client.executed
    assert table == "forms"
    assert ("eq", ("id", "f1")) in calls


def test_missing_rows_are_none():
    assert SupabaseStore(FakeClient()).get_user("nobody") is None


def test_delete_submissions_removes_files_first():
    client = FakeClient(responses=[[{"id": "s1"}, {"id": "s2"}]])
    assert SupabaseStore(client).delete_submissions("f1") == 2
    tables = [table for table, _ in client.executed]
    assert tables == ["submissions", "files", "submissions"]
    assert ("in_", ("submission_id", ["s1", "s2"])) in client.executed[1][1]
    assert SupabaseStore(FakeClient()).delete_submissions("empty") == 0
