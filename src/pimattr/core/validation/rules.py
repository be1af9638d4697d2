"""Pure checks over rule sets: applicability, consistency, submission policy."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, ValidationError

from pimattr.core.errors import ConsistencyError, FieldValidationError
from pimattr.core.registries.type_registry import coerce_type, legal_rule_keys, rule_model_for
from pimattr.core.types import AttributeType, SubmissionPolicy
from pimattr.core.validation.rule_sets import PAIRED_BOUNDS, NumberRules, ValidationRuleSet

MAX_EXACT_DIGITS = 20

_POLICY_BY_TYPE: Dict[AttributeType, SubmissionPolicy] = {
    AttributeType.NUMBER: SubmissionPolicy.HARD_REQUIRE_NONEMPTY,
    AttributeType.TEXT: SubmissionPolicy.SOFT_WARN_IF_EMPTY,
    AttributeType.DATE: SubmissionPolicy.SOFT_WARN_IF_EMPTY,
    AttributeType.MULTISELECT: SubmissionPolicy.SOFT_WARN_IF_EMPTY,
}

_POLICY_MESSAGES: Dict[AttributeType, str] = {
    AttributeType.NUMBER: "Numeric attributes need at least one validation rule (min, max, ...).",
    AttributeType.TEXT: "No validation rules were set for this text attribute. Continue anyway?",
    AttributeType.DATE: "No validation rules were set for this date attribute. Continue anyway?",
    AttributeType.MULTISELECT: "No selection limits were set for this multi-select attribute. Continue anyway?",
}


class PolicyCheck(BaseModel):
    """Outcome of applying the submission policy to a draft's rules."""

    attr_type: AttributeType
    policy: SubmissionPolicy
    triggered: bool = False
    message: Optional[str] = None

    @property
    def blocking(self) -> bool:
        return self.triggered and self.policy == SubmissionPolicy.HARD_REQUIRE_NONEMPTY

    @property
    def needs_confirmation(self) -> bool:
        return self.triggered and self.policy == SubmissionPolicy.SOFT_WARN_IF_EMPTY


# ---------------------------------------------------------------------------
# Construction boundary
# ---------------------------------------------------------------------------


def empty_rules(attr_type: Any) -> ValidationRuleSet:
    return rule_model_for(attr_type)()


def _is_unset(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def build_rule_set(attr_type: Any, raw: Mapping[str, Any] | ValidationRuleSet | None) -> ValidationRuleSet:
    """Build the typed rule set for ``attr_type`` from a loose mapping.

    Raises:
        FieldValidationError: keyed by rule key, for keys that are not legal
            for the type or values that fail the variant's constraints.
    """
    resolved = coerce_type(attr_type)
    model = rule_model_for(resolved)
    if isinstance(raw, ValidationRuleSet):
        raw = raw.to_payload()
    cleaned = {key: value for key, value in (raw or {}).items() if not _is_unset(value)}

    illegal = sorted(key for key in cleaned if model.field_name_for(key) is None)
    if illegal:
        raise FieldValidationError(
            {key: f"'{key}' is not a valid rule for type {resolved.value}" for key in illegal}
        )

    try:
        return model.model_validate(cleaned)
    except ValidationError as exc:
        raise FieldValidationError(_errors_by_rule_key(model, exc)) from exc


def _errors_by_rule_key(model: type, exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ("<root>",)
        name = model.field_name_for(str(loc[0]))
        key = str(loc[0])
        if name is not None:
            field = model.model_fields[name]
            key = field.alias or name
        errors.setdefault(key, err.get("msg") or "invalid value")
    return errors


def with_rule(rule_set: ValidationRuleSet, attr_type: Any, key: str, value: Any) -> ValidationRuleSet:
    """Return a copy of ``rule_set`` with one rule set (or cleared when value is empty)."""
    payload = rule_set.to_payload()
    if _is_unset(value):
        payload.pop(key, None)
    else:
        payload[key] = value
    return build_rule_set(attr_type, payload)


def reproject(rule_set: ValidationRuleSet, new_type: Any) -> Tuple[ValidationRuleSet, Tuple[str, ...]]:
    """Carry the rules that are still legal over to ``new_type``'s variant.

    Returns the new rule set and the sorted keys that had to be dropped.
    """
    legal = legal_rule_keys(new_type)
    payload = rule_set.to_payload()
    kept = {key: value for key, value in payload.items() if key in legal}
    dropped: List[str] = [key for key in payload if key not in legal]
    while True:
        try:
            rebuilt = build_rule_set(new_type, kept)
            break
        except FieldValidationError as exc:
            failing = [key for key in exc.errors if key in kept]
            if not failing:
                raise
            for key in failing:
                kept.pop(key)
                dropped.append(key)
    return rebuilt, tuple(sorted(set(dropped)))


def exact_digits_rules(digits: int, base: Optional[ValidationRuleSet] = None) -> NumberRules:
    """Rules accepting integers with exactly ``digits`` digits.

    One digit allows 0-9, n > 1 digits allow 10**(n-1) .. 10**n - 1.
    """
    if digits < 1 or digits > MAX_EXACT_DIGITS:
        raise FieldValidationError({"exactDigits": f"digit count must be between 1 and {MAX_EXACT_DIGITS}"})
    payload = base.to_payload() if base is not None else {}
    payload.update(
        {
            "min": 0 if digits == 1 else 10 ** (digits - 1),
            "max": 10**digits - 1,
            "isInteger": True,
        }
    )
    return NumberRules.model_validate(payload)


# ---------------------------------------------------------------------------
# Checks
# ---------------------------------------------------------------------------


def applicability_errors(rule_set: ValidationRuleSet, attr_type: Any) -> Dict[str, str]:
    resolved = coerce_type(attr_type)
    legal = legal_rule_keys(resolved)
    return {
        key: f"'{key}' is not a valid rule for type {resolved.value}"
        for key in sorted(rule_set.keys())
        if key not in legal
    }


def is_applicable(rule_set: ValidationRuleSet, attr_type: Any) -> bool:
    return not applicability_errors(rule_set, attr_type)


def consistency_errors(rule_set: ValidationRuleSet) -> Dict[str, str]:
    errors: Dict[str, str] = {}

    for lower_key, upper_key in PAIRED_BOUNDS:
        lower, upper = rule_set.get(lower_key), rule_set.get(upper_key)
        if lower is not None and upper is not None and lower > upper:
            errors[upper_key] = f"{upper_key} ({upper}) must not be less than {lower_key} ({lower})"

    positive = rule_set.get("isPositive") is True
    negative = rule_set.get("isNegative") is True
    zero = rule_set.get("isZero") is True
    if positive and negative:
        errors["isNegative"] = "isPositive and isNegative cannot both be set"
    if zero and (positive or negative):
        errors["isZero"] = "isZero cannot be combined with isPositive or isNegative"

    upper_bound = rule_set.get("max")
    if positive and upper_bound is not None and upper_bound <= 0:
        errors.setdefault("max", f"max ({upper_bound}) leaves no positive values")
    lower_bound = rule_set.get("min")
    if negative and lower_bound is not None and lower_bound >= 0:
        errors.setdefault("min", f"min ({lower_bound}) leaves no negative values")

    pattern = rule_set.get("pattern")
    if pattern is not None:
        try:
            re.compile(pattern)
        except re.error as exc:
            errors["pattern"] = f"invalid regular expression: {exc}"

    return errors


def is_internally_consistent(rule_set: ValidationRuleSet) -> bool:
    return not consistency_errors(rule_set)


def ensure_consistent(rule_set: ValidationRuleSet) -> None:
    errors = consistency_errors(rule_set)
    if errors:
        raise ConsistencyError(errors)


def submission_policy(attr_type: Any, rule_set: Optional[ValidationRuleSet] = None) -> SubmissionPolicy:
    """Policy applied at submit time; it depends on the type alone."""
    return _POLICY_BY_TYPE.get(coerce_type(attr_type), SubmissionPolicy.OPTIONAL)


def check_submission_policy(attr_type: Any, rule_set: ValidationRuleSet) -> PolicyCheck:
    resolved = coerce_type(attr_type)
    policy = submission_policy(resolved)
    if resolved == AttributeType.MULTISELECT:
        triggered = not (rule_set.has("minSelections") or rule_set.has("maxSelections"))
    elif policy == SubmissionPolicy.OPTIONAL:
        triggered = False
    else:
        triggered = rule_set.is_empty()
    return PolicyCheck(
        attr_type=resolved,
        policy=policy,
        triggered=triggered,
        message=_POLICY_MESSAGES.get(resolved) if triggered else None,
    )


__all__ = [
    "PolicyCheck",
    "empty_rules",
    "build_rule_set",
    "with_rule",
    "reproject",
    "exact_digits_rules",
    "applicability_errors",
    "is_applicable",
    "consistency_errors",
    "is_internally_consistent",
    "ensure_consistent",
    "submission_policy",
    "check_submission_policy",
    "MAX_EXACT_DIGITS",
]
