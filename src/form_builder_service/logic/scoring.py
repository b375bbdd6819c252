from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from form_builder_service.logic.values import as_number, as_text

TEXT_TYPES = {"short-answer", "long-answer", "text", "textarea", "email", "url", "tel"}
NUMBER_TYPES = {"number", "currency"}
SINGLE_CHOICE_TYPES = {"multiple-choice", "choices", "radio", "dropdown", "select"}
MULTI_CHOICE_TYPES = {"checkboxes", "multiselect"}


def _norm(value: Any) -> str:
    return as_text(value).strip().lower()


def answers_match(
    user_answer: Any,
    correct_answer: Any,
    field_type: str,
    *,
    case_sensitive: bool = False,
    match_type: str = "exact",
) -> bool:
    if user_answer is None or correct_answer is None:
        return False

    if field_type in TEXT_TYPES:
        user = as_text(user_answer).strip()
        correct = as_text(correct_answer).strip()
        if not case_sensitive:
            user, correct = user.lower(), correct.lower()
        if match_type == "contains":
            return correct in user
        return user == correct

    if field_type in NUMBER_TYPES:
        a, b = as_number(user_answer), as_number(correct_answer)
        return a is not None and b is not None and a == b

    if field_type in MULTI_CHOICE_TYPES:
        if not isinstance(user_answer, list) or not isinstance(correct_answer, list):
            return False
        return {_norm(v) for v in user_answer} == {_norm(v) for v in correct_answer}

    # dates, single choice and anything else
    return _norm(user_answer) == _norm(correct_answer)


def partial_credit(user_answer: Any, correct_answer: Any, points: float) -> float:
    if not isinstance(user_answer, list) or not isinstance(correct_answer, list) or not correct_answer:
        return 0.0
    user = {_norm(v) for v in user_answer}
    correct = {_norm(v) for v in correct_answer}
    right = len(user & correct)
    wrong = len(user - correct)
    return max(0.0, (right - wrong) / len(correct)) * points


def _has_correct_answer(field: Mapping[str, Any]) -> bool:
    ans = (field.get("quizConfig") or {}).get("correctAnswer")
    if ans is None:
        return False
    if isinstance(ans, str) and ans.strip() == "":
        return False
    if isinstance(ans, list) and not ans:
        return False
    return True


def score_question(field: Mapping[str, Any], user_answer: Any) -> Dict[str, Any]:
    cfg = field.get("quizConfig") or {}
    points = float(cfg.get("points") or 1)
    correct_answer = cfg.get("correctAnswer")
    ftype = str(field.get("type") or "")
    base = {
        "fieldId": field.get("id"),
        "fieldLabel": field.get("label"),
        "userAnswer": user_answer,
        "correctAnswer": correct_answer,
        "explanation": cfg.get("explanation"),
    }
    is_correct = answers_match(
        user_answer,
        correct_answer,
        ftype,
        case_sensitive=bool(cfg.get("caseSensitive")),
        match_type=str(cfg.get("matchType") or "exact"),
    )
    if ftype in MULTI_CHOICE_TYPES and cfg.get("acceptPartialCredit") and not is_correct:
        return {**base, "isCorrect": False, "pointsEarned": partial_credit(user_answer, correct_answer, points), "pointsPossible": points}
    return {**base, "isCorrect": is_correct, "pointsEarned": points if is_correct else 0.0, "pointsPossible": points}


def grade_letter(percentage: float) -> str:
    if percentage >= 90:
        return "A"
    if percentage >= 80:
        return "B"
    if percentage >= 70:
        return "C"
    if percentage >= 60:
        return "D"
    return "F"


def calculate_quiz_score(
    fields: List[Dict[str, Any]],
    answers: Mapping[str, Any],
    quiz_mode: Optional[Mapping[str, Any]],
) -> Optional[Dict[str, Any]]:
    """
    Score a submission. Returns None when quiz mode is off or nothing is scorable.
    """
    if not quiz_mode or not quiz_mode.get("enabled"):
        return None
    scorable = [f for f in fields if _has_correct_answer(f)]
    if not scorable:
        return None

    questions = [score_question(f, answers.get(str(f.get("id")))) for f in scorable]
    total = sum(q["pointsPossible"] for q in questions)
    earned = sum(q["pointsEarned"] for q in questions)
    percentage = (earned / total) * 100 if total > 0 else 0.0
    passing = float(quiz_mode.get("passingScore") or 70)
    return {
        "totalPoints": total,
        "earnedPoints": earned,
        "percentage": percentage,
        "passed": percentage >= passing,
        "grade": grade_letter(percentage),
        "questionScores": questions,
    }


def format_score(score: Mapping[str, Any]) -> str:
    return f"{float(score['earnedPoints']):.1f} / {score['totalPoints']:g} ({float(score['percentage']):.1f}%)"
