"""Error taxonomy shared by the authoring core."""

from __future__ import annotations

from typing import Dict, Mapping, Optional


class PimAttrError(Exception):
    """Base class for recoverable authoring errors."""


class FieldValidationError(PimAttrError):
    """One or more fields (or rule keys) hold invalid values.

    Always locally recoverable: the user edits the offending value.
    """

    def __init__(self, errors: Mapping[str, str], message: Optional[str] = None):
        self.errors: Dict[str, str] = dict(errors)
        super().__init__(message or self._summarize(self.errors))

    @staticmethod
    def _summarize(errors: Mapping[str, str]) -> str:
        if not errors:
            return "validation failed"
        return "; ".join(f"{key}: {msg}" for key, msg in errors.items())


class ConsistencyError(FieldValidationError):
    """A rule set contradicts itself (e.g. min > max)."""


class TransportError(PimAttrError):
    """An external service call failed.

    Carries the channel/operation so the UI layer can offer a retry.
    """

    def __init__(self, operation: str, *, channel: Optional[str] = None, cause: Optional[BaseException] = None):
        self.operation = operation
        self.channel = channel
        self.cause = cause
        super().__init__(self._build_message())

    def _build_message(self) -> str:
        where = f"{self.operation} on channel '{self.channel}'" if self.channel else self.operation
        if self.cause is not None:
            return f"{where} failed: {self.cause}"
        return f"{where} failed"


class FatalTypeError(TypeError):
    """An attribute type outside the closed enumeration reached the registry."""


__all__ = [
    "PimAttrError",
    "FieldValidationError",
    "ConsistencyError",
    "TransportError",
    "FatalTypeError",
]
