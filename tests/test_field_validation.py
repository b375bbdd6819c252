from form_builder_service.logic.validation import format_message, validate_answers, validate_field, validate_rule


def test_required_field():
    field = {"id": "name", "label": "Name", "required": True}
    assert validate_field(field, "") == "Name is required"
    assert validate_field(field, None) == "Name is required"
    assert validate_field(field, []) == "Name is required"
    assert validate_field(field, "Ada") is None


def test_optional_empty_field_skips_rules():
    field = {"id": "bio", "label": "Bio", "validation": [{"type": "minLength", "value": 10}]}
    assert validate_field(field, "") is None


def test_email_and_url_formats():
    assert validate_field({"type": "email", "label": "Email"}, "nope") == "Please enter a valid email address"
    assert validate_field({"type": "email", "label": "Email"}, "a@b.co") is None
    assert validate_field({"type": "url", "label": "Site"}, "example.com") == "Please enter a valid URL"
    assert validate_field({"type": "url", "label": "Site"}, "https://example.com") is None


def test_length_rules_with_placeholders():
    rule = {"type": "minLength", "value": 5, "message": "Need {minLength}, got {actualLength}"}
    assert validate_rule("abc", rule) == "Need 5, got 3"
    assert validate_rule("abcdef", {"type": "maxLength", "value": 3}) == "Maximum length is 3 characters"


def test_numeric_rules():
    assert validate_rule("4", {"type": "min", "value": 5}) == "Minimum value is 5"
    assert validate_rule(11, {"type": "max", "value": 10}) == "Maximum value is 10"
    assert validate_rule("abc", {"type": "min", "value": 1}) == "Value must be a number"
    assert validate_rule("7", {"type": "min", "value": 5}) is None


def test_pattern_rules():
    assert validate_rule("12345", {"type": "pattern", "value": "/^\\d{5}$/"}) is None
    assert validate_rule("1234a", {"type": "pattern", "value": "^\\d{5}$", "message": "Zip code"}) == "Zip code"
    assert validate_rule("x", {"type": "pattern", "value": "(["}) == "Invalid validation pattern"


def test_format_message_leaves_unknown_tokens():
    assert format_message("Hi {name} {other}", {"name": "Ada"}) == "Hi Ada {other}"


def test_hidden_fields_are_not_validated():
    fields = [
        {"id": "q1", "label": "Q1", "required": True},
        {
            "id": "q2",
            "label": "Q2",
            "required": True,
            "conditionalLogic": [{"sourceFieldId": "q1", "operator": "equals", "value": "yes"}],
        },
    ]
    assert validate_answers(fields, {"q1": "no"}) == {}
    assert validate_answers(fields, {"q1": "yes"}) == {"q2": "Q2 is required"}
