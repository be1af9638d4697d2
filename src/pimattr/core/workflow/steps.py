"""Authoring steps and their validators.

Each validator inspects the draft and returns field errors keyed by field
(or rule) name. An empty mapping means the step may be left forward.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Tuple

from pimattr.core.attributes.draft import CODE_PATTERN, AttributeDraft
from pimattr.core.registries.type_registry import coerce_type, is_enumerable

StepErrors = Dict[str, str]
StepValidator = Callable[[AttributeDraft, str], StepErrors]


class StepId(str, Enum):
    GENERAL = "general"
    TYPE = "type"
    PROPERTIES = "properties"
    VALIDATION = "validation"
    REVIEW = "review"


STEP_ORDER: Tuple[StepId, ...] = tuple(StepId)


def validate_general(draft: AttributeDraft, language: str) -> StepErrors:
    errors: StepErrors = {}
    if not draft.current_name(language).strip():
        errors["name"] = f"Name ({language}) is required"
    code = draft.code.strip()
    if not code:
        errors["code"] = "Code is required"
    elif not CODE_PATTERN.fullmatch(code):
        errors["code"] = "Code may only contain letters, digits and underscores"
    return errors


def validate_type(draft: AttributeDraft, language: str) -> StepErrors:
    # the type defaults to TEXT; an unknown value is fatal, not a field error
    coerce_type(draft.type)
    return {}


def validate_properties(draft: AttributeDraft, language: str) -> StepErrors:
    if is_enumerable(draft.type) and not draft.options:
        return {"options": "Select at least one option"}
    return {}


def validate_rules_step(draft: AttributeDraft, language: str) -> StepErrors:
    # consistency is checked live while editing and again on submit
    return {}


def validate_review(draft: AttributeDraft, language: str) -> StepErrors:
    return {}


STEP_VALIDATORS: Dict[StepId, StepValidator] = {
    StepId.GENERAL: validate_general,
    StepId.TYPE: validate_type,
    StepId.PROPERTIES: validate_properties,
    StepId.VALIDATION: validate_rules_step,
    StepId.REVIEW: validate_review,
}


__all__ = [
    "StepId",
    "STEP_ORDER",
    "STEP_VALIDATORS",
    "StepErrors",
    "StepValidator",
    "validate_general",
    "validate_type",
    "validate_properties",
    "validate_rules_step",
    "validate_review",
]
