import json

from conftest import bearer, signup

VALID = {"name": "Ada", "email": "ada@example.com", "color": "Blue"}


def test_submit_and_list(client, owner, form_id):
    res = client.post(f"/api/forms/{form_id}/submit", json={**VALID, "_respondentId": "r-1"})
    assert res.status_code == 200, res.text
    body = res.json()
    assert body["ok"] is True
    assert body["notifications"] == []
    assert body["integrations"] == []
    assert "editToken" not in body
    assert "score" not in body

    listed = client.get(f"/api/forms/{form_id}/submissions", headers=owner["headers"]).json()
    assert listed["total"] == 1
    sub = listed["submissions"][0]
    assert sub["id"] == body["submissionId"]
    assert sub["answers"] == VALID
    assert sub["respondentId"] == "r-1"
    assert "editToken" not in sub


def test_listing_requires_membership(client, form_id):
    assert client.get(f"/api/forms/{form_id}/submissions").status_code == 401
    token, _ = signup(client, email="nosy@example.com")
    assert client.get(f"/api/forms/{form_id}/submissions", headers=bearer(token)).status_code == 403


def test_validation_errors_are_keyed_by_field(client, form_id):
    res = client.post(f"/api/forms/{form_id}/submit", json={"email": "nope"})
    assert res.status_code == 422
    body = res.json()
    assert body["message"] == "Validation failed"
    assert body["details"] == {"name": "Name is required", "email": "Please enter a valid email address"}


def test_closed_form_rejects_and_counts_attempts(client, form_id, store):
    store.update_form(form_id, {"isClosed": True, "closedMessage": "Thanks, we're full"})
    res = client.post(f"/api/forms/{form_id}/submit", json=VALID)
    assert res.status_code == 403
    body = res.json()
    assert body["error"] == "form_closed"
    assert body["message"] == "Thanks, we're full"
    assert body["details"] == {"status": "manually_closed"}
    assert store.get_form(form_id)["closedSubmissionAttempts"] == 1


def test_not_yet_open_form(client, form_id, store):
    store.update_form(form_id, {"opensAt": "2999-01-01T00:00:00Z"})
    res = client.post(f"/api/forms/{form_id}/submit", json=VALID)
    assert res.status_code == 403
    assert res.json()["details"] == {"status": "not_yet_open"}


def test_limit_one_response(client, form_id, store):
    store.update_form(form_id, {"limitOneResponse": True})
    payload = {**VALID, "_respondentId": "device-42"}
    assert client.post(f"/api/forms/{form_id}/submit", json=payload).status_code == 200
    res = client.post(f"/api/forms/{form_id}/submit", json=payload)
    assert res.status_code == 409
    assert res.json()["message"] == "You have already submitted this form"

    check = client.get(f"/api/forms/{form_id}/check-submission", params={"respondentId": "device-42"})
    assert check.json() == {"submitted": True}
    check = client.get(f"/api/forms/{form_id}/check-submission", params={"respondentId": "someone-else"})
    assert check.json() == {"submitted": False}
    assert client.get(f"/api/forms/{form_id}/check-submission").status_code == 400


def test_file_metadata_satisfies_required_file_field(client, owner):
    fields = [{"id": "cv", "label": "CV", "type": "file-uploader", "required": True}]
    form_id = client.post("/api/forms", json={"title": "Jobs", "fields": fields}, headers=owner["headers"]).json()["id"]
    meta = {
        "fieldId": "cv",
        "filename": "123-abc.pdf",
        "originalName": "cv.pdf",
        "size": 2048,
        "type": "application/pdf",
        "url": "/api/uploads/files/forms/x/y/123-abc.pdf",
    }
    res = client.post(f"/api/forms/{form_id}/submit", json={"_fileMetadata": [meta]})
    assert res.status_code == 200, res.text
    [stored] = res.json()["files"]
    assert stored["originalName"] == "cv.pdf"
    assert stored["mimeType"] == "application/pdf"
    assert stored["path"] == meta["url"]

    assert client.post(f"/api/forms/{form_id}/submit", json={}).status_code == 422


def _quiz_form(client, owner, **extra):
    fields = [
        {"id": "capital", "label": "Capital of France", "type": "short-answer", "quizConfig": {"correctAnswer": "Paris"}},
        {"id": "sum", "label": "2 + 2", "type": "number", "quizConfig": {"correctAnswer": 4}},
    ]
    body = {"title": "Quiz", "fields": fields, "quizMode": {"enabled": True, "passingScore": 50}, **extra}
    return client.post("/api/forms", json=body, headers=owner["headers"]).json()["id"]


def test_quiz_submission_is_scored(client, owner):
    form_id = _quiz_form(client, owner)
    res = client.post(f"/api/forms/{form_id}/submit", json={"capital": "paris", "sum": 5})
    score = res.json()["score"]
    assert score["earnedPoints"] == 1
    assert score["totalPoints"] == 2
    assert score["passed"] is True
    assert score["grade"] == "F"


def test_save_and_edit_flow(client, owner):
    form_id = _quiz_form(client, owner, saveAndEdit=True)
    created = client.post(f"/api/forms/{form_id}/submit", json={"capital": "Rome", "sum": 4}).json()
    token = created["editToken"]
    assert created["score"]["earnedPoints"] == 1

    fetched = client.get(f"/api/forms/{form_id}/submissions/{token}")
    assert fetched.status_code == 200
    assert fetched.json()["submission"]["answers"] == {"capital": "Rome", "sum": 4}

    edited = client.put(f"/api/forms/{form_id}/submissions/{token}", json={"capital": "Paris", "sum": 4})
    assert edited.status_code == 200
    assert edited.json()["submissionId"] == created["submissionId"]
    assert edited.json()["score"]["percentage"] == 100

    assert client.get(f"/api/forms/{form_id}/submissions/not-a-token").status_code == 404
    assert client.put(f"/api/forms/{form_id}/submissions/not-a-token", json={}).status_code == 404


def test_editing_disabled_form(client, form_id):
    res = client.put(f"/api/forms/{form_id}/submissions/anything", json=VALID)
    assert res.status_code == 400


def test_export_csv_and_json(client, owner, form_id):
    client.post(f"/api/forms/{form_id}/submit", json=VALID)

    res = client.get(f"/api/forms/{form_id}/export", headers=owner["headers"])
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    assert res.headers["content-disposition"] == 'attachment; filename="Contact_us_submissions.csv"'
    header, row = res.text.split("\n")
    assert header == '"Submission ID","Submitted At","Name","Email","Favourite colour","Files"'
    assert '"Ada","ada@example.com","Blue",""' in row

    res = client.get(f"/api/forms/{form_id}/export", params={"format": "json"}, headers=owner["headers"])
    assert res.headers["content-disposition"].endswith('Contact_us_submissions.json"')
    data = json.loads(res.text)
    assert data["totalSubmissions"] == 1
    assert data["submissions"][0]["answers"]["Favourite colour"] == "Blue"

    res = client.get(f"/api/forms/{form_id}/export", params={"format": "xml"}, headers=owner["headers"])
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid format. Use csv or json"


def test_export_and_analytics_are_owner_only(client, owner, form_id):
    token, _ = signup(client, email="viewer@example.com")
    client.post(f"/api/forms/{form_id}/collaborators", json={"email": "viewer@example.com", "role": "VIEWER"}, headers=owner["headers"])
    assert client.get(f"/api/forms/{form_id}/export", headers=bearer(token)).status_code == 403
    assert client.get(f"/api/forms/{form_id}/analytics", headers=bearer(token)).status_code == 403
    # viewers can still read submissions
    assert client.get(f"/api/forms/{form_id}/submissions", headers=bearer(token)).status_code == 200


def test_analytics(client, owner, form_id):
    client.post(f"/api/forms/{form_id}/submit", json=VALID)
    client.post(f"/api/forms/{form_id}/submit", json={**VALID, "color": "Red"})
    res = client.get(f"/api/forms/{form_id}/analytics", headers=owner["headers"])
    assert res.status_code == 200
    body = res.json()
    assert body["formTitle"] == "Contact us"
    assert body["totalSubmissions"] == 2
    assert body["fieldStats"]["color"]["distribution"] == {"Blue": 1, "Red": 1}
    assert body["engagementMetrics"]["overallCompletionRate"] == 100
    assert body["quizAnalytics"] is None
