import json

import pytest

from form_builder_service.errors import BadRequest
from form_builder_service.generation import assist

FORM = {
    "title": "Quiz",
    "selectedFieldId": "capital",
    "fields": [
        {"id": "name", "label": "Your name", "type": "short-answer", "required": True},
        {
            "id": "capital",
            "label": "Capital of France",
            "type": "multiple-choice",
            "options": ["Paris", "Lyon"],
            "quizConfig": {"correctAnswer": "Paris", "points": 2},
        },
    ],
}


@pytest.fixture
def lm_key(monkeypatch):
    monkeypatch.setenv("GROQ_API_KEY", "test-key")


def test_every_assist_action_names_its_json_shape():
    assert len(assist.ASSIST_INSTRUCTIONS) == 17
    for action, text in assist.ASSIST_INSTRUCTIONS.items():
        assert "Return {" in text, action


def test_inline_assist_rejects_unknown_actions():
    with pytest.raises(BadRequest, match="Action is required"):
        assist.inline_assist("", {})
    with pytest.raises(BadRequest, match="Unknown action"):
        assist.inline_assist("summon-unicorns", {})


def test_inline_assist_needs_an_lm():
    result = assist.inline_assist("improve-question", {"fieldLabel": "Name?"})
    assert result["ok"] is False
    assert result["error"] == "DSPy LM not configured"


def test_inline_assist_passes_context(lm_key, monkeypatch):
    seen = {}

    def fake(lm_cfg, action, instructions, context_json):
        seen.update(action=action, instructions=instructions, context=json.loads(context_json))
        return '```json\n{"explanation": "Paris is the capital.", "keyPoint": "Paris"}\n```'

    monkeypatch.setattr(assist, "run_assist", fake)
    result = assist.inline_assist(
        "explain-answer",
        {"fieldLabel": "Capital of France", "options": ["Paris", "Lyon", "Nice"], "correctAnswer": "Paris", "formTitle": None},
    )
    assert result["ok"] is True
    assert result["data"] == {"explanation": "Paris is the capital.", "keyPoint": "Paris"}
    assert seen["action"] == "explain-answer"
    assert seen["context"]["otherOptions"] == ["Lyon", "Nice"]
    assert "formTitle" not in seen["context"]


def test_inline_assist_keeps_unparsed_text(lm_key, monkeypatch):
    monkeypatch.setattr(assist, "run_assist", lambda *args: "Try asking for their full name.")
    result = assist.inline_assist("translate", {"fieldLabel": "Name"})
    assert result["data"] == {"result": "Try asking for their full name."}


def test_describe_form():
    text = assist.describe_form(FORM)
    assert '1. [ID: name] "Your name" (type: short-answer) *required' in text
    assert 'options: [A="Paris", B="Lyon"] [QUIZ: correct="Paris", points=2]' in text
    assert "Currently selected field" in text and "(ID: capital)" in text
    assert 'Last field: "Capital of France" (field 2)' in text
    assert "No fields yet" in assist.describe_form({"title": "Empty", "fields": []})


def test_sanitize_modifications_resolves_references():
    mods = assist.sanitize_modifications(
        [
            {"action": "add", "field": {"label": "Colour", "type": "dropdown"}},
            {"action": "add", "field": {"type": "bogus"}},
            {"action": "update", "fieldId": "1", "field": {"required": False, "type": "paragraph"}},
            {"action": "delete", "fieldId": "capital of"},
            {"action": "delete", "fieldId": "does-not-exist"},
            {"action": "reorder", "fieldId": "capital", "newIndex": 9},
            {"action": "quiz-config", "fieldId": "capital", "quizConfig": {"points": "5"}},
            {"action": "explode", "fieldId": "name"},
            "junk",
        ],
        FORM,
    )
    assert [m["action"] for m in mods] == ["add", "add", "update", "delete", "reorder", "quiz-config"]
    colour, blank = mods[0]["field"], mods[1]["field"]
    assert colour["options"] == ["Option 1", "Option 2", "Option 3"]
    assert colour["required"] is False
    assert colour["order"] == 2
    assert colour["id"].startswith("field_")
    assert blank == {"id": blank["id"], "label": "New Field", "type": "short-answer", "required": False, "order": 3}
    assert mods[2]["fieldId"] == "name"
    assert mods[2]["field"]["type"] == "long-answer"
    assert mods[3]["fieldId"] == "capital"
    assert mods[4]["newIndex"] == 1
    assert mods[5]["quizConfig"]["points"] == 5.0
    assert assist.sanitize_modifications(None, FORM) == []


def test_chat_edit(lm_key, monkeypatch):
    seen = {}

    def fake(lm_cfg, form_state, history_json, message):
        seen.update(state=form_state, history=json.loads(history_json), message=message)
        return json.dumps(
            {
                "message": "Made the name optional and renamed the form.",
                "modifications": [{"action": "update", "fieldId": "name", "field": {"required": False}}],
                "newTitle": "  Geography quiz ",
            }
        )

    monkeypatch.setattr(assist, "run_chat", fake)
    history = [{"role": "user", "content": f"turn {i}"} for i in range(30)]
    result = assist.chat_edit("make the name optional", history, FORM)
    assert result["ok"] is True
    assert result["message"].startswith("Made the name optional")
    assert result["modifications"] == [{"action": "update", "fieldId": "name", "field": {"required": False}}]
    assert result["newTitle"] == "Geography quiz"
    assert len(seen["history"]) == assist.MAX_HISTORY
    assert seen["history"][-1]["content"] == "turn 29"
    assert "[ID: capital]" in seen["state"]


def test_chat_edit_plain_text_reply(lm_key, monkeypatch):
    monkeypatch.setattr(assist, "run_chat", lambda *args: "Short forms convert better.")
    result = assist.chat_edit("any tips?", [], FORM)
    assert result == {"ok": True, "requestId": result["requestId"], "message": "Short forms convert better."}


def test_chat_edit_reports_provider_failures(lm_key, monkeypatch):
    def boom(*args):
        raise RuntimeError("rate limited")

    monkeypatch.setattr(assist, "run_chat", boom)
    result = assist.chat_edit("add a field", [], FORM)
    assert result["ok"] is False
    assert result["error"] == "rate limited"
