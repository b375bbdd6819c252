from form_builder_service.logic.export import export_filename, submissions_to_csv, submissions_to_json

FIELDS = [
    {"id": "name", "label": "Name"},
    {"id": "tags", "label": "Tags"},
]

SUBS = [
    {
        "id": "sub1",
        "createdAt": "2024-01-02T03:04:05Z",
        "answers": {"name": 'Ada "the first"', "tags": ["a", "b"]},
        "files": [{"fieldId": "cv", "originalName": "cv.pdf", "path": "/api/uploads/files/x/cv.pdf"}],
    },
    {"id": "sub2", "createdAt": "2024-01-03T00:00:00Z", "answers": {"name": "Bob"}},
]


def test_export_filename_is_sanitised():
    assert export_filename("Job app: 2024!", "csv") == "Job_app__2024__submissions.csv"


def test_csv_quotes_every_cell():
    lines = submissions_to_csv(FIELDS, SUBS).split("\n")
    assert lines[0] == '"Submission ID","Submitted At","Name","Tags","Files"'
    assert lines[1] == '"sub1","2024-01-02T03:04:05.000000Z","Ada ""the first""","[""a"",""b""]","cv.pdf"'
    assert lines[2].endswith('"Bob","",""')


def test_json_export_uses_labels():
    out = submissions_to_json({"id": "f1", "title": "Signup", "fields": FIELDS}, SUBS)
    assert out["formTitle"] == "Signup"
    assert out["totalSubmissions"] == 2
    first = out["submissions"][0]
    assert first["answers"] == {"Name": 'Ada "the first"', "Tags": ["a", "b"]}
    assert first["files"] == [{"fieldId": "cv", "filename": "cv.pdf", "url": "/api/uploads/files/x/cv.pdf"}]
    assert out["submissions"][1]["answers"]["Tags"] == ""
