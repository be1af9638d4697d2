"""Options Resolver: candidate pool and selection for enumerable drafts.

Enumerable attributes (SELECT/MULTISELECT) reference other attribute records
as their options. Only read-only enumerants are eligible; the pool is fetched
through the FetchCoordinator so repeated loads are coalesced.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from pimattr.core.attributes.attribute import DEFAULT_LANGUAGE, AttributePage, AttributeQuery, OptionCandidate
from pimattr.core.errors import FieldValidationError, TransportError
from pimattr.core.fetch.coordinator import FetchCoordinator, FetchStatus
from pimattr.core.registries.type_registry import is_enumerable, is_readonly_enumerant
from pimattr.core.types import AttributeType

if TYPE_CHECKING:
    from pimattr.services.catalog_service import AttributeLookupService

logger = logging.getLogger(__name__)

POOL_CHANNEL = "options-pool"
DEFAULT_POOL_LIMIT = 100


class OptionsResolver:
    """Single writer of the option pool and of the draft's selection subset."""

    def __init__(
        self,
        lookup: AttributeLookupService,
        coordinator: Optional[FetchCoordinator[AttributeQuery, AttributePage]] = None,
        *,
        channel: str = POOL_CHANNEL,
        language: str = DEFAULT_LANGUAGE,
        pool_limit: int = DEFAULT_POOL_LIMIT,
    ):
        self.lookup = lookup
        self.coordinator = coordinator or FetchCoordinator(lookup.list_attributes, operation="list_attributes")
        self.channel = channel
        self.language = language
        self.pool_limit = pool_limit
        self.error: Optional[TransportError] = None
        self.pool_loaded = False
        # search term the current pool answers
        self.filter: Optional[str] = None
        self._pool: List[OptionCandidate] = []
        self._known: Dict[str, OptionCandidate] = {}
        self._selected: List[str] = []
        self._seeded: frozenset = frozenset()
        self._last_removed: Optional[Tuple[str, int]] = None

    @property
    def pool(self) -> Tuple[OptionCandidate, ...]:
        return tuple(self._pool)

    @property
    def selected(self) -> Tuple[str, ...]:
        return tuple(self._selected)

    def seed(self, option_ids: List[str]) -> None:
        """Start from an existing selection (edit sessions)."""
        self._selected = list(dict.fromkeys(option_ids))
        self._seeded = frozenset(self._selected)
        self._last_removed = None

    async def load_pool(self, filter: Optional[str] = None) -> List[OptionCandidate]:
        """Fetch read-only enumerants, optionally narrowed by a search term.

        A load dropped by the minimum interval returns the current pool;
        compare ``filter`` with the requested term to know whether it answers
        the request.

        Raises:
            TransportError: the lookup failed; the previous pool is kept.
        """
        query = AttributeQuery(
            type=AttributeType.READONLY,
            is_active=True,
            search=filter,
            page=1,
            limit=self.pool_limit,
        )
        outcome = await self.coordinator.run(self.channel, query)
        if outcome.status == FetchStatus.FAILED:
            self.error = outcome.error
            raise outcome.error
        if outcome.status != FetchStatus.APPLIED:
            logger.debug("Pool load on %s %s; keeping current pool", self.channel, outcome.status.value)
            return list(self._pool)

        self._apply(outcome.data, outcome.params)
        return list(self._pool)

    def _apply(self, page: AttributePage, query: AttributeQuery) -> None:
        candidates: Dict[str, OptionCandidate] = {}
        for attribute in page.items:
            if not is_readonly_enumerant(attribute.type) or attribute.id in candidates:
                continue
            candidates[attribute.id] = OptionCandidate.from_attribute(attribute, self.language)
        self._pool = list(candidates.values())
        self.filter = query.search
        self._known.update(candidates)
        self.error = None
        self.pool_loaded = True
        logger.debug("Option pool on %s now holds %d candidate(s)", self.channel, len(self._pool))

    async def on_type_change(self, new_type: AttributeType) -> None:
        if not is_enumerable(new_type):
            if self._selected:
                logger.debug("Type %s is not enumerable; clearing %d option(s)", new_type, len(self._selected))
            self._selected.clear()
            self._last_removed = None
            return
        if not self.pool_loaded:
            await self.load_pool()

    def toggle(self, option_id: str) -> Tuple[str, ...]:
        """Add or remove ``option_id``; toggling twice restores the prior selection."""
        if option_id in self._selected:
            index = self._selected.index(option_id)
            self._selected.pop(index)
            self._last_removed = (option_id, index)
            return self.selected

        if self.pool_loaded and option_id not in self._known and option_id not in self._seeded:
            raise FieldValidationError({"options": f"'{option_id}' is not an eligible option"})
        if self._last_removed is not None and self._last_removed[0] == option_id:
            self._selected.insert(min(self._last_removed[1], len(self._selected)), option_id)
        else:
            self._selected.append(option_id)
        self._last_removed = None
        return self.selected

    def candidate(self, option_id: str) -> Optional[OptionCandidate]:
        return self._known.get(option_id)

    async def resolve_selected(self) -> List[OptionCandidate]:
        """Selected options as candidates, in selection order.

        Ids never seen in a pool are looked up individually and must be
        read-only enumerants as well.
        """
        resolved: List[OptionCandidate] = []
        for option_id in dict.fromkeys(self._selected):
            candidate = self._known.get(option_id)
            if candidate is None:
                attribute = await self.lookup.get_attribute_by_id(option_id)
                if not is_readonly_enumerant(attribute.type):
                    raise FieldValidationError(
                        {"options": f"'{attribute.code}' ({attribute.type.value}) cannot be used as an option"}
                    )
                candidate = OptionCandidate.from_attribute(attribute, self.language)
                self._known[option_id] = candidate
            resolved.append(candidate)
        return resolved

    def close(self) -> None:
        self.coordinator.cancel(self.channel)


__all__ = ["OptionsResolver", "POOL_CHANNEL", "DEFAULT_POOL_LIMIT"]
