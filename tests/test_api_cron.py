import json

import httpx

from form_builder_service import closures, http

PAST = "2020-01-01T00:00:00.000000Z"


def test_cron_secret_is_enforced(client, monkeypatch):
    monkeypatch.setenv("CRON_SECRET", "s3cret")
    assert client.get("/api/cron/check-closures").status_code == 401
    assert client.get("/api/cron/check-closures", headers={"Authorization": "Bearer nope"}).status_code == 401
    res = client.get("/api/cron/check-closures", headers={"Authorization": "Bearer s3cret"})
    assert res.json() == {"ok": True, "success": 0, "failed": 0, "total": 0}


def test_closed_forms_notify_owner_once(client, owner, form_id, store, monkeypatch):
    monkeypatch.setenv("RESEND_API_KEY", "re_test")
    sent = []

    def handler(request):
        sent.append(json.loads(request.content))
        return httpx.Response(200, json={"id": "email"})

    http.set_transport(httpx.MockTransport(handler))
    store.update_form(form_id, {"closesAt": PAST})

    res = client.get("/api/cron/check-closures")
    assert res.json() == {"ok": True, "success": 1, "failed": 0, "total": 1}
    assert sent[0]["to"] == ["owner@example.com"]
    assert sent[0]["subject"] == 'Your form "Contact us" has closed'
    assert f"http://forms.test/dashboard/forms/{form_id}" in sent[0]["html"]
    assert store.get_form(form_id)["closedNotificationSent"] is True

    assert client.get("/api/cron/check-closures").json()["total"] == 0


def test_email_failures_are_counted(client, owner, form_id, store):
    # no RESEND_API_KEY configured
    store.update_form(form_id, {"closesAt": PAST})
    res = client.get("/api/cron/check-closures")
    assert res.json() == {"ok": True, "success": 0, "failed": 1, "total": 1}
    assert store.get_form(form_id)["closedNotificationSent"] is False


def test_anonymous_forms_are_skipped(client, store):
    store.create_form({"title": "Anon", "fields": [], "closesAt": PAST})
    assert client.get("/api/cron/check-closures").json()["total"] == 0


def test_one_run_handles_at_most_one_batch(client, owner, store, monkeypatch):
    monkeypatch.setenv("RESEND_API_KEY", "re_test")
    sent = []
    http.set_transport(httpx.MockTransport(lambda request: sent.append(request) or httpx.Response(200, json={"id": "e"})))
    for i in range(closures.BATCH_SIZE + 1):
        store.create_form({"title": f"Form {i}", "fields": [], "closesAt": PAST, "userId": owner["user"]["id"]})

    first = client.get("/api/cron/check-closures").json()
    assert first == {"ok": True, "success": closures.BATCH_SIZE, "failed": 0, "total": closures.BATCH_SIZE}
    assert len(sent) == closures.BATCH_SIZE
    second = client.get("/api/cron/check-closures").json()
    assert second == {"ok": True, "success": 1, "failed": 0, "total": 1}
