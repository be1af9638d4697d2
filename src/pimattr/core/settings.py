from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pimattr.core.attributes.attribute import DEFAULT_LANGUAGE
from pimattr.core.fetch.coordinator import DEFAULT_DEBOUNCE_SECONDS, DEFAULT_MIN_INTERVAL_SECONDS
from pimattr.core.options.resolver import DEFAULT_POOL_LIMIT


class AuthoringSettings(BaseModel):
    """Tunables of an authoring session (kb/settings.yaml)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    language: str = DEFAULT_LANGUAGE
    debounce_seconds: float = Field(default=DEFAULT_DEBOUNCE_SECONDS, ge=0)
    min_interval_seconds: float = Field(default=DEFAULT_MIN_INTERVAL_SECONDS, ge=0)
    page_size: int = Field(default=20, ge=1, le=500)
    pool_limit: int = Field(default=DEFAULT_POOL_LIMIT, ge=1, le=500)


__all__ = ["AuthoringSettings"]
