"""Paginated attribute selector backed by a coalesced query channel."""

from __future__ import annotations

from typing import Iterable, List, Optional

from pimattr.core.attributes.attribute import Attribute, AttributePage, AttributeQuery
from pimattr.core.fetch.coordinator import FetchCoordinator, FetchOutcome, QueryState
from pimattr.core.types import AttributeType

LIST_CHANNEL = "attribute-list"


class PaginatedAttributeSelector:
    """Search, paging and group filter state for an incremental attribute list.

    Every parameter change is debounced through the coordinator; the visible
    page is whatever the channel last applied.
    """

    def __init__(
        self,
        coordinator: FetchCoordinator[AttributeQuery, AttributePage],
        *,
        channel: str = LIST_CHANNEL,
        page_size: int = 20,
        attr_type: Optional[AttributeType] = None,
        is_active: Optional[bool] = None,
        exclude_ids: Iterable[str] = (),
    ):
        self.coordinator = coordinator
        self.channel = channel
        self.page_size = page_size
        self.attr_type = attr_type
        self.is_active = is_active
        self.exclude_ids = frozenset(exclude_ids)
        self.search: Optional[str] = None
        self.group_id: Optional[str] = None
        self.page = 1

    def query(self) -> AttributeQuery:
        return AttributeQuery(
            type=self.attr_type,
            is_active=self.is_active,
            group_id=self.group_id,
            search=self.search,
            page=self.page,
            limit=self.page_size,
        )

    def set_search(self, text: Optional[str]) -> None:
        self.search = text
        self.page = 1
        self._schedule()

    def set_group(self, group_id: Optional[str]) -> None:
        self.group_id = group_id
        self.page = 1
        self._schedule()

    def set_page(self, page: int) -> None:
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        self.page = page
        self._schedule()

    def next_page(self) -> bool:
        page = self.state.data
        if page is not None and self.page >= page.total_pages:
            return False
        self.set_page(self.page + 1)
        return True

    def previous_page(self) -> bool:
        if self.page <= 1:
            return False
        self.set_page(self.page - 1)
        return True

    async def refresh(self) -> FetchOutcome[AttributePage]:
        """Issue the current query immediately."""
        return await self.coordinator.run(self.channel, self.query())

    def _schedule(self) -> None:
        self.coordinator.schedule(self.channel, self.query())

    @property
    def state(self) -> QueryState[AttributePage]:
        return self.coordinator.snapshot(self.channel)

    @property
    def items(self) -> List[Attribute]:
        page = self.state.data
        if page is None:
            return []
        return [item for item in page.items if item.id not in self.exclude_ids]

    @property
    def total(self) -> int:
        page = self.state.data
        return page.total if page is not None else 0

    def close(self) -> None:
        self.coordinator.cancel(self.channel)


__all__ = ["PaginatedAttributeSelector", "LIST_CHANNEL"]
