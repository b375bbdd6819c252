from __future__ import annotations

from typing import Any, Dict, List, Mapping

from form_builder_service.logic.values import as_number, as_text, is_empty


def evaluate_condition(operator: str, field_value: Any, target_value: Any) -> bool:
    if operator == "isEmpty":
        return is_empty(field_value)
    if operator == "isNotEmpty":
        return not is_empty(field_value)

    field_str = as_text(field_value)
    target_str = as_text(target_value)

    if operator == "equals":
        return field_str == target_str
    if operator == "notEquals":
        return field_str != target_str
    if operator == "contains":
        return target_str.lower() in field_str.lower()
    if operator in ("greaterThan", "lessThan"):
        a = as_number(field_value)
        b = as_number(target_value)
        if a is None or b is None:
            return False
        return a > b if operator == "greaterThan" else a < b
    return False


def _rule_passes(rule: Mapping[str, Any], answers: Mapping[str, Any]) -> bool:
    met = evaluate_condition(
        str(rule.get("operator") or ""),
        answers.get(str(rule.get("sourceFieldId") or "")),
        rule.get("value"),
    )
    return met if (rule.get("action") or "show") == "show" else not met


def evaluate_rules(rules: List[Mapping[str, Any]], answers: Mapping[str, Any]) -> bool:
    """
    AND rules must all pass and at least one OR rule must pass (when any exist).

    No rules means visible.
    """
    if not rules:
        return True
    and_rules = [r for r in rules if r.get("logicOperator") != "OR"]
    or_rules = [r for r in rules if r.get("logicOperator") == "OR"]
    and_ok = all(_rule_passes(r, answers) for r in and_rules)
    or_ok = not or_rules or any(_rule_passes(r, answers) for r in or_rules)
    return and_ok and or_ok


def visible_fields(fields: List[Dict[str, Any]], answers: Mapping[str, Any]) -> List[str]:
    return [
        str(f.get("id"))
        for f in fields
        if evaluate_rules(list(f.get("conditionalLogic") or []), answers)
    ]
