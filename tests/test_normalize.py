import pytest

from form_builder_service.errors import BadRequest
from form_builder_service.generation.normalize import (
    best_effort_parse_json,
    clean_transcript,
    html_to_text,
    import_json,
    normalize_fields,
    normalize_form,
    normalize_type,
    parse_csv_fields,
    slugify,
)


def test_parse_json_strips_fences_and_prose():
    assert best_effort_parse_json('```json\n{"a": 1}\n```') == {"a": 1}
    assert best_effort_parse_json('Here you go: [{"label": "Name"}] hope it helps') == [{"label": "Name"}]
    assert best_effort_parse_json("no json here") is None
    assert best_effort_parse_json("") is None


def test_slugify_and_type_aliases():
    assert slugify("  Full Name! ") == "full_name"
    assert normalize_type("Paragraph") == "long-answer"
    assert normalize_type("multiple_choice") == "multiple-choice"
    assert normalize_type("hologram") == "short-answer"


def test_normalize_fields_ids_options_and_order():
    fields = normalize_fields(
        [
            {"label": "Name", "type": "text", "required": True},
            {"label": "Name", "type": "text"},
            {"label": "Size", "type": "dropdown", "options": "S|M|L"},
            {"label": "Pick", "type": "radio"},
            {"label": "Plain", "type": "text", "options": ["x"]},
            {"type": "email"},
            "junk",
        ]
    )
    assert [f["id"] for f in fields] == ["name", "name_2", "size", "pick", "plain"]
    assert [f["order"] for f in fields] == [0, 1, 2, 3, 4]
    assert fields[0]["required"] is True
    assert fields[2]["options"] == ["S", "M", "L"]
    # choice field without options falls back to free text
    assert fields[3]["type"] == "short-answer"
    assert "options" not in fields[4]


def test_validation_dict_becomes_rules():
    fields = normalize_fields([{"label": "Zip", "validation": {"pattern": "^\\d{5}$", "minLength": 5, "max": ""}}])
    assert fields[0]["validation"] == [
        {"type": "minLength", "value": 5},
        {"type": "pattern", "value": "^\\d{5}$"},
    ]


def test_normalize_form_errors_and_defaults():
    assert normalize_form([{"label": "A"}])["title"] == "Untitled Form"
    assert normalize_form({"title": "Survey", "fields": [{"label": "A"}]})["title"] == "Survey"
    with pytest.raises(BadRequest, match="not valid JSON"):
        normalize_form("nope")
    with pytest.raises(BadRequest, match="No fields"):
        normalize_form({"title": "Empty", "fields": []})


def test_clean_transcript():
    assert clean_transcript("Um I want uh a   contact form, you know") == "I want a contact form,"


def test_html_to_text():
    page = (
        "<html><head><title>Acme &amp; Co</title>"
        '<meta name="description" content="We build things">'
        "<style>body{color:red}</style></head>"
        "<body><h1>Contact</h1><script>alert(1)</script><p>Email us today</p></body></html>"
    )
    assert html_to_text(page) == "Title: Acme & Co\nDescription: We build things\nContent: Contact Email us today"
    assert html_to_text("<body>" + "x" * 20 + "</body>", max_chars=5).endswith("xxxxx...")


def test_import_json():
    out = import_json('{"title": "Exported", "fields": [{"id": "q1", "label": "Question"}]}')
    assert out["title"] == "Exported"
    assert out["fields"][0]["id"] == "q1"
    assert import_json('[{"label": "Only"}]')["title"] == "Imported Form"
    with pytest.raises(BadRequest, match="Invalid JSON file"):
        import_json("{")
    with pytest.raises(BadRequest, match="Invalid JSON structure"):
        import_json('{"title": "x"}')
    with pytest.raises(BadRequest, match="Invalid JSON structure"):
        import_json('"just a string"')


def test_parse_csv_fields():
    content = "label,type,required,options\nFull name,text,yes,\nT-shirt size,dropdown,no,S|M|L\n\n"
    title, fields = parse_csv_fields(content)
    assert title == "Imported Form"
    assert [f["id"] for f in fields] == ["full_name", "t_shirt_size"]
    assert fields[0]["required"] is True
    assert fields[1]["options"] == ["S", "M", "L"]


def test_parse_csv_without_label_column_returns_none():
    assert parse_csv_fields("name_of_customer,email\nAda,a@b.co\n") is None
    assert parse_csv_fields("label\n") is None
