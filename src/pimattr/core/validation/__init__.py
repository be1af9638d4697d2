"""Validation rule sets. Checks over them live in ``pimattr.core.validation.rules``."""

from .rule_sets import (
    PAIRED_BOUNDS,
    DateRules,
    NoRules,
    NumberRules,
    SelectionRules,
    TextRules,
    ValidationRuleSet,
)

__all__ = [
    "ValidationRuleSet",
    "DateRules",
    "NoRules",
    "NumberRules",
    "SelectionRules",
    "TextRules",
    "PAIRED_BOUNDS",
]
