"""Unit tests for PaginatedListings."""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.application.interfaces.listings_gateway import ListingsGatewayError
from src.application.pagination.paginated_listings import PaginatedListings
from tests.unit.factories import make_draft, make_gateway


async def _seeded_gateway(titles: str = "ABCDE", **overrides):  # type: ignore[no-untyped-def]
    gateway = make_gateway()
    for title in titles:
        await gateway.create(make_draft(title, **overrides))
    return gateway


def _titles(pagination: PaginatedListings) -> list[str]:
    return [listing.title for listing in pagination.items]


class GatedGateway:
    """Wraps a gateway so each fetch_page call waits until released."""

    def __init__(self, inner) -> None:  # type: ignore[no-untyped-def]
        self._inner = inner
        self.gates: list[asyncio.Event] = []
        self.calls: list[tuple] = []  # type: ignore[type-arg]

    async def fetch_page(self, page, page_size, **kwargs):  # type: ignore[no-untyped-def]
        gate = asyncio.Event()
        self.gates.append(gate)
        self.calls.append((page, page_size, kwargs.get("category"), kwargs.get("search_text")))
        await gate.wait()
        return await self._inner.fetch_page(page, page_size, **kwargs)


class TestPaging:
    @pytest.mark.asyncio
    async def test_five_listings_page_size_two(self) -> None:
        pagination = PaginatedListings(await _seeded_gateway(), 2)

        await pagination.load()
        assert _titles(pagination) == ["E", "D"]
        assert pagination.has_more is True

        assert await pagination.load_more() is True
        assert _titles(pagination) == ["E", "D", "C", "B"]
        assert pagination.has_more is True

        assert await pagination.load_more() is True
        assert _titles(pagination) == ["E", "D", "C", "B", "A"]
        assert pagination.has_more is False
        assert pagination.page == 2

    @pytest.mark.asyncio
    async def test_first_load_more_on_fresh_pager_fetches_page_zero(self) -> None:
        pagination = PaginatedListings(await _seeded_gateway(), 2)
        snapshots = []

        for _ in range(3):
            assert await pagination.load_more() is True
            snapshots.append((_titles(pagination), pagination.has_more))

        assert snapshots == [
            (["E", "D"], True),
            (["E", "D", "C", "B"], True),
            (["E", "D", "C", "B", "A"], False),
        ]

    def test_fresh_pager_reports_nothing_loaded(self) -> None:
        pagination = PaginatedListings(MagicMock(), 2)

        assert pagination.items == []
        assert pagination.has_more is False
        assert pagination.loading_initial is False

    @pytest.mark.asyncio
    async def test_concurrent_load_more_on_fresh_pager_fetches_once(self) -> None:
        gated = GatedGateway(await _seeded_gateway())
        pagination = PaginatedListings(gated, 2)

        first = asyncio.create_task(pagination.load_more())
        await asyncio.sleep(0)
        assert await pagination.load_more() is False
        gated.gates[0].set()
        await first

        assert gated.calls == [(0, 2, "All", "")]
        assert _titles(pagination) == ["E", "D"]

    @pytest.mark.asyncio
    async def test_load_more_is_noop_once_exhausted(self) -> None:
        gateway = await _seeded_gateway("ABC")
        gateway.fetch_page = AsyncMock(wraps=gateway.fetch_page)
        pagination = PaginatedListings(gateway, 5)

        await pagination.load()
        assert pagination.has_more is False
        assert await pagination.load_more() is False

        assert gateway.fetch_page.await_count == 1

    @pytest.mark.asyncio
    async def test_exact_multiple_costs_one_empty_fetch(self) -> None:
        pagination = PaginatedListings(await _seeded_gateway("ABCD"), 2)

        await pagination.load()
        await pagination.load_more()
        assert pagination.has_more is True

        assert await pagination.load_more() is True
        assert pagination.has_more is False
        assert len(pagination.items) == 4

    @pytest.mark.asyncio
    @pytest.mark.parametrize("total,page_size,calls", [(7, 3, 1), (7, 3, 2), (7, 3, 3), (2, 4, 2)])
    async def test_accumulates_min_of_total_and_pages_loaded(self, total, page_size, calls) -> None:  # type: ignore[no-untyped-def]
        gateway = make_gateway()
        for i in range(total):
            await gateway.create(make_draft(f"Item {i}"))
        pagination = PaginatedListings(gateway, page_size)

        await pagination.load()
        for _ in range(calls - 1):
            await pagination.load_more()

        assert len(pagination.items) == min(total, calls * page_size)

    def test_rejects_non_positive_page_size(self) -> None:
        with pytest.raises(ValueError):
            PaginatedListings(MagicMock(), 0)


class TestFilterChanges:
    @pytest.mark.asyncio
    async def test_changing_category_resets_and_refetches(self) -> None:
        gateway = make_gateway()
        for title in "ABC":
            await gateway.create(make_draft(title, category=["Furniture"]))
        await gateway.create(make_draft("Phone", category=["Electronics"]))
        pagination = PaginatedListings(gateway, 2)
        await pagination.load()
        await pagination.load_more()

        await pagination.set_filter(category="Electronics")

        assert _titles(pagination) == ["Phone"]
        assert pagination.page == 0
        assert pagination.has_more is False

    @pytest.mark.asyncio
    async def test_changing_back_refetches_instead_of_restoring(self) -> None:
        gateway = await _seeded_gateway("ABC")
        gateway.fetch_page = AsyncMock(wraps=gateway.fetch_page)
        pagination = PaginatedListings(gateway, 2)
        await pagination.load()

        await pagination.set_filter(search_text="A")
        await pagination.set_filter(search_text="")

        assert _titles(pagination) == ["C", "B"]
        assert gateway.fetch_page.await_count == 3

    @pytest.mark.asyncio
    async def test_unchanged_filter_does_not_reload(self) -> None:
        gateway = await _seeded_gateway("AB")
        gateway.fetch_page = AsyncMock(wraps=gateway.fetch_page)
        pagination = PaginatedListings(gateway, 2)
        await pagination.load()

        await pagination.set_filter(page_size=2, category="All", search_text="")

        assert gateway.fetch_page.await_count == 1

    @pytest.mark.asyncio
    async def test_search_is_passed_through_to_gateway(self) -> None:
        gateway = await _seeded_gateway("AB")
        gateway.fetch_page = AsyncMock(wraps=gateway.fetch_page)
        pagination = PaginatedListings(gateway, 2, homepage_only=False)

        await pagination.set_filter(search_text="b")

        gateway.fetch_page.assert_awaited_with(
            0, 2, category="All", search_text="b", homepage_only=False
        )
        assert _titles(pagination) == ["B"]


class TestConcurrency:
    @pytest.mark.asyncio
    async def test_load_more_while_in_flight_is_suppressed(self) -> None:
        gated = GatedGateway(await _seeded_gateway())
        pagination = PaginatedListings(gated, 2)
        initial = asyncio.create_task(pagination.load())
        await asyncio.sleep(0)
        gated.gates[0].set()
        await initial

        first = asyncio.create_task(pagination.load_more())
        await asyncio.sleep(0)
        assert pagination.loading_more is True
        assert await pagination.load_more() is False
        gated.gates[1].set()

        assert await first is True
        assert len(gated.calls) == 2
        assert _titles(pagination) == ["E", "D", "C", "B"]

    @pytest.mark.asyncio
    async def test_load_more_during_initial_load_is_suppressed(self) -> None:
        gated = GatedGateway(await _seeded_gateway())
        pagination = PaginatedListings(gated, 2)
        initial = asyncio.create_task(pagination.load())
        await asyncio.sleep(0)

        assert pagination.loading_initial is True
        assert await pagination.load_more() is False
        gated.gates[0].set()
        await initial

        assert len(gated.calls) == 1

    @pytest.mark.asyncio
    async def test_result_for_old_filter_is_discarded(self) -> None:
        inner = make_gateway()
        await inner.create(make_draft("Sofa", category=["Furniture"]))
        await inner.create(make_draft("Phone", category=["Electronics"]))
        gated = GatedGateway(inner)
        pagination = PaginatedListings(gated, 2)

        old = asyncio.create_task(pagination.load())
        await asyncio.sleep(0)
        new = asyncio.create_task(pagination.set_filter(category="Electronics"))
        await asyncio.sleep(0)

        gated.gates[1].set()
        await new
        gated.gates[0].set()
        await old

        assert _titles(pagination) == ["Phone"]
        assert pagination.filter.category == "Electronics"
        assert pagination.loading_initial is False

    @pytest.mark.asyncio
    async def test_stale_load_more_does_not_append(self) -> None:
        gated = GatedGateway(await _seeded_gateway())
        pagination = PaginatedListings(gated, 2)
        initial = asyncio.create_task(pagination.load())
        await asyncio.sleep(0)
        gated.gates[0].set()
        await initial

        more = asyncio.create_task(pagination.load_more())
        await asyncio.sleep(0)
        reload = asyncio.create_task(pagination.set_filter(search_text="A"))
        await asyncio.sleep(0)
        gated.gates[2].set()
        await reload
        gated.gates[1].set()

        assert await more is False
        assert _titles(pagination) == ["A"]


class TestFailures:
    @pytest.mark.asyncio
    async def test_initial_failure_clears_flag_and_propagates(self) -> None:
        gateway = MagicMock()
        gateway.fetch_page = AsyncMock(side_effect=ListingsGatewayError("down"))
        pagination = PaginatedListings(gateway, 2)

        with pytest.raises(ListingsGatewayError):
            await pagination.load()

        assert pagination.loading_initial is False
        assert pagination.items == []
        assert pagination.has_more is False

    @pytest.mark.asyncio
    async def test_load_more_failure_keeps_items_and_allows_retry(self) -> None:
        gateway = await _seeded_gateway()
        pagination = PaginatedListings(gateway, 2)
        await pagination.load()
        real_fetch = gateway.fetch_page
        gateway.fetch_page = AsyncMock(side_effect=ListingsGatewayError("down"))

        with pytest.raises(ListingsGatewayError):
            await pagination.load_more()

        assert pagination.loading_more is False
        assert _titles(pagination) == ["E", "D"]
        assert pagination.page == 0

        gateway.fetch_page = real_fetch
        assert await pagination.load_more() is True
        assert _titles(pagination) == ["E", "D", "C", "B"]


class TestClose:
    @pytest.mark.asyncio
    async def test_in_flight_result_is_ignored_after_close(self) -> None:
        gated = GatedGateway(await _seeded_gateway())
        pagination = PaginatedListings(gated, 2)
        initial = asyncio.create_task(pagination.load())
        await asyncio.sleep(0)

        pagination.close()
        gated.gates[0].set()
        await initial

        assert pagination.items == []
        assert pagination.loading_initial is False
        assert await pagination.load_more() is False

    @pytest.mark.asyncio
    async def test_load_after_close_raises(self) -> None:
        pagination = PaginatedListings(MagicMock(), 2)
        pagination.close()
        with pytest.raises(RuntimeError):
            await pagination.load()
