from form_builder_service.logic.conditional import evaluate_condition, evaluate_rules, visible_fields


def test_evaluate_condition_operators():
    assert evaluate_condition("equals", "yes", "yes") is True
    assert evaluate_condition("notEquals", "yes", "no") is True
    assert evaluate_condition("contains", "Hello World", "world") is True
    assert evaluate_condition("greaterThan", "10", 5) is True
    assert evaluate_condition("lessThan", 3, "5") is True
    assert evaluate_condition("greaterThan", "abc", 5) is False
    assert evaluate_condition("isEmpty", "", None) is True
    assert evaluate_condition("isEmpty", [], None) is True
    assert evaluate_condition("isNotEmpty", ["a"], None) is True
    assert evaluate_condition("unknown", "a", "a") is False


def test_boolean_answers_compare_as_lowercase_text():
    assert evaluate_condition("equals", True, "true") is True


def test_no_rules_means_visible():
    assert evaluate_rules([], {}) is True


def test_and_rules_must_all_pass():
    rules = [
        {"sourceFieldId": "a", "operator": "equals", "value": "1"},
        {"sourceFieldId": "b", "operator": "equals", "value": "2"},
    ]
    assert evaluate_rules(rules, {"a": "1", "b": "2"}) is True
    assert evaluate_rules(rules, {"a": "1", "b": "3"}) is False


def test_or_rules_need_one_match():
    rules = [
        {"sourceFieldId": "a", "operator": "equals", "value": "x", "logicOperator": "OR"},
        {"sourceFieldId": "a", "operator": "equals", "value": "y", "logicOperator": "OR"},
    ]
    assert evaluate_rules(rules, {"a": "y"}) is True
    assert evaluate_rules(rules, {"a": "z"}) is False


def test_hide_action_inverts_rule():
    rules = [{"sourceFieldId": "a", "operator": "equals", "value": "secret", "action": "hide"}]
    assert evaluate_rules(rules, {"a": "secret"}) is False
    assert evaluate_rules(rules, {"a": "other"}) is True


def test_visible_fields():
    fields = [
        {"id": "has_pet", "type": "multiple-choice"},
        {
            "id": "pet_name",
            "type": "short-answer",
            "conditionalLogic": [{"sourceFieldId": "has_pet", "operator": "equals", "value": "Yes"}],
        },
    ]
    assert visible_fields(fields, {"has_pet": "No"}) == ["has_pet"]
    assert visible_fields(fields, {"has_pet": "Yes"}) == ["has_pet", "pet_name"]
