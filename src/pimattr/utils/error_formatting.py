"""Shared error message formatting utilities."""

from typing import Any, List, Mapping

BOUND_SYMBOLS = {
    "min": ">=",
    "max": "<=",
    "minLength": "len >=",
    "maxLength": "len <=",
    "minDate": ">=",
    "maxDate": "<=",
    "minSelections": "count >=",
    "maxSelections": "count <=",
}


def format_rule(key: str, value: Any) -> str:
    """
    Format one validation rule for display.

    Args:
        key: Rule key (e.g., "maxLength")
        value: Rule value

    Returns:
        Formatted text like "len <= 40" or "isInteger" for boolean flags
    """
    if isinstance(value, bool):
        return key if value else f"not {key}"
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(v) for v in value)
    symbol = BOUND_SYMBOLS.get(key)
    if symbol:
        return f"{symbol} {value}"
    return f"{key}={value}"


def format_field_errors(errors: Mapping[str, str]) -> List[str]:
    """Render a field error mapping as sorted ``key: message`` lines."""
    return [f"{key}: {errors[key]}" for key in sorted(errors)]


def parse_rule_assignment(text: str) -> tuple:
    """Split ``key=value`` CLI input; the value is kept as text."""
    key, sep, value = text.partition("=")
    if not sep or not key.strip():
        raise ValueError(f"expected key=value, got '{text}'")
    return key.strip(), value.strip()
