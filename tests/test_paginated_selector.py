"""Tests for the paginated attribute selector."""

import asyncio

import pytest

from pimattr.core.fetch.coordinator import FetchCoordinator
from pimattr.core.selectors.paginated import PaginatedAttributeSelector


def _selector(service, clock, *, min_interval=0.0, **kwargs):
    coordinator = FetchCoordinator(
        service.list_attributes,
        debounce_seconds=0.01,
        min_interval_seconds=min_interval,
        clock=clock,
    )
    return PaginatedAttributeSelector(coordinator, **kwargs)


def test_typing_is_debounced_into_one_query(service, clock):
    selector = _selector(service, clock)

    async def scenario():
        for text in ("r", "re", "red"):
            selector.set_search(text)
        await selector.coordinator.wait(selector.channel)

    asyncio.run(scenario())

    assert len(service.calls) == 1
    assert service.calls[0][1].search == "red"
    assert [item.id for item in selector.items] == ["red"]


def test_paging_through_results(service, clock):
    selector = _selector(service, clock, page_size=2)

    async def scenario():
        await selector.refresh()
        first = [item.id for item in selector.items]
        assert selector.next_page()
        await selector.coordinator.wait(selector.channel)
        second = [item.id for item in selector.items]
        at_end = selector.next_page()
        return first, second, at_end

    first, second, at_end = asyncio.run(scenario())

    assert first == ["red", "blue"]
    assert second == ["weight", "color"]
    assert selector.total == 4
    assert at_end is False
    assert selector.page == 2


def test_search_resets_page(service, clock):
    selector = _selector(service, clock, page_size=2)

    async def scenario():
        selector.set_page(2)
        selector.set_search("blue")
        await selector.coordinator.wait(selector.channel)

    asyncio.run(scenario())

    assert selector.page == 1
    assert [item.id for item in selector.items] == ["blue"]


def test_group_filter(service, clock):
    selector = _selector(service, clock)

    async def scenario():
        selector.set_group("appearance")
        await selector.coordinator.wait(selector.channel)

    asyncio.run(scenario())

    assert [item.id for item in selector.items] == ["color"]


def test_excluded_ids_are_hidden(service, clock):
    selector = _selector(service, clock, exclude_ids=["color"])

    asyncio.run(selector.refresh())

    assert "color" not in [item.id for item in selector.items]
    assert selector.total == 4


def test_page_change_within_min_interval_keeps_current_page(service, clock):
    selector = _selector(service, clock, min_interval=1.0, page_size=2)

    async def scenario():
        await selector.refresh()
        selector.set_page(2)
        await selector.coordinator.wait(selector.channel)

    asyncio.run(scenario())

    assert len(service.calls) == 1
    assert [item.id for item in selector.items] == ["red", "blue"]
    assert not selector.state.loading


def test_previous_page_stops_at_first(service, clock):
    selector = _selector(service, clock)

    assert selector.previous_page() is False
    with pytest.raises(ValueError):
        selector.set_page(0)
