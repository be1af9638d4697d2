from .attribute import (
    DEFAULT_LANGUAGE,
    Attribute,
    AttributeGroup,
    AttributePage,
    AttributeQuery,
    OptionCandidate,
    localized,
)
from .draft import CODE_PATTERN, AttributeDraft

__all__ = [
    "DEFAULT_LANGUAGE",
    "Attribute",
    "AttributeDraft",
    "AttributeGroup",
    "AttributePage",
    "AttributeQuery",
    "OptionCandidate",
    "CODE_PATTERN",
    "localized",
]
