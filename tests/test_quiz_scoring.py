from form_builder_service.logic.scoring import (
    answers_match,
    calculate_quiz_score,
    format_score,
    grade_letter,
    partial_credit,
)

QUIZ_FIELDS = [
    {"id": "capital", "label": "Capital of France", "type": "short-answer", "quizConfig": {"correctAnswer": "Paris", "points": 2}},
    {"id": "sum", "label": "2 + 2", "type": "number", "quizConfig": {"correctAnswer": 4}},
    {
        "id": "primes",
        "label": "Pick the primes",
        "type": "checkboxes",
        "quizConfig": {"correctAnswer": ["2", "3"], "points": 2, "acceptPartialCredit": True},
    },
    {"id": "notes", "label": "Notes", "type": "long-answer"},
]


def test_text_matching_is_case_insensitive_by_default():
    assert answers_match(" paris ", "Paris", "short-answer") is True
    assert answers_match("paris", "Paris", "short-answer", case_sensitive=True) is False
    assert answers_match("I think Paris", "paris", "short-answer", match_type="contains") is True


def test_number_and_multi_choice_matching():
    assert answers_match("4", 4, "number") is True
    assert answers_match("four", 4, "number") is False
    assert answers_match(["b", "A"], ["a", "B"], "checkboxes") is True
    assert answers_match("a", ["a"], "checkboxes") is False
    assert answers_match(None, "x", "multiple-choice") is False


def test_partial_credit_penalises_wrong_picks():
    assert partial_credit(["2"], ["2", "3"], 2) == 1.0
    assert partial_credit(["2", "4"], ["2", "3"], 2) == 0.0
    assert partial_credit("2", ["2"], 2) == 0.0


def test_grade_boundaries():
    assert [grade_letter(p) for p in (95, 85, 75, 65, 10)] == ["A", "B", "C", "D", "F"]


def test_quiz_disabled_or_unscorable_returns_none():
    assert calculate_quiz_score(QUIZ_FIELDS, {}, None) is None
    assert calculate_quiz_score(QUIZ_FIELDS, {}, {"enabled": False}) is None
    assert calculate_quiz_score([QUIZ_FIELDS[3]], {}, {"enabled": True}) is None


def test_full_quiz_score():
    answers = {"capital": "paris", "sum": "5", "primes": ["2"]}
    score = calculate_quiz_score(QUIZ_FIELDS, answers, {"enabled": True, "passingScore": 50})
    assert score["totalPoints"] == 5
    assert score["earnedPoints"] == 3
    assert score["percentage"] == 60
    assert score["passed"] is True
    assert score["grade"] == "D"
    assert [q["fieldId"] for q in score["questionScores"]] == ["capital", "sum", "primes"]
    assert score["questionScores"][2]["pointsEarned"] == 1.0


def test_default_passing_score_is_seventy():
    score = calculate_quiz_score(QUIZ_FIELDS, {"capital": "Paris"}, {"enabled": True})
    assert score["percentage"] == 40
    assert score["passed"] is False


def test_format_score():
    assert format_score({"earnedPoints": 2, "totalPoints": 3.0, "percentage": 66.666}) == "2.0 / 3 (66.7%)"
