"""
Infinite-scroll pagination over the listings gateway.

State is scoped to one (page_size, category, search_text) filter. Changing
the filter discards everything accumulated so far and fetches page 0 again.
Results of fetches started under an earlier filter are dropped on arrival:
each fetch remembers the generation it started in and only applies its
result if that generation is still current.
"""
from dataclasses import dataclass

import structlog

from src.application.interfaces.listings_gateway import ListingsGateway, ListingsGatewayError
from src.domain.entities.listing import ALL_CATEGORIES, Listing

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ListingFilter:
    page_size: int
    category: str = ALL_CATEGORIES
    search_text: str = ""


class PaginatedListings:
    def __init__(
        self,
        gateway: ListingsGateway,
        page_size: int,
        *,
        category: str = ALL_CATEGORIES,
        search_text: str = "",
        homepage_only: bool = True,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be positive.")
        self._gateway = gateway
        self._filter = ListingFilter(page_size=page_size, category=category, search_text=search_text)
        self._homepage_only = homepage_only
        self._generation = 0
        self._closed = False

        self.items: list[Listing] = []
        self.page = 0
        self.has_more = False
        self.loading_initial = False
        self.loading_more = False

    @property
    def filter(self) -> ListingFilter:
        return self._filter

    @property
    def closed(self) -> bool:
        return self._closed

    async def set_filter(
        self,
        *,
        page_size: int | None = None,
        category: str | None = None,
        search_text: str | None = None,
    ) -> None:
        """Switch to a new filter and reload page 0. A no-op if nothing changed."""
        new_filter = ListingFilter(
            page_size=page_size if page_size is not None else self._filter.page_size,
            category=category if category is not None else self._filter.category,
            search_text=search_text if search_text is not None else self._filter.search_text,
        )
        if new_filter.page_size < 1:
            raise ValueError("page_size must be positive.")
        if new_filter == self._filter:
            return
        self._filter = new_filter
        await self.load()

    async def load(self) -> None:
        """Discard accumulated items and fetch page 0 for the current filter."""
        self._ensure_open()
        self._generation += 1
        generation = self._generation
        current = self._filter

        self.items = []
        self.page = 0
        self.has_more = False
        self.loading_initial = True
        self.loading_more = False

        try:
            result = await self._fetch(0, current)
        except ListingsGatewayError:
            if generation != self._generation:
                logger.debug("stale_page_failure_discarded", page=0)
                return
            self.loading_initial = False
            raise

        if generation != self._generation:
            logger.debug("stale_page_discarded", page=0, category=current.category)
            return

        self.items = list(result)
        self.page = 0
        self.has_more = len(result) == current.page_size
        self.loading_initial = False

    async def load_more(self) -> bool:
        """
        Fetch and append the next page.

        Before anything has been loaded this fetches page 0 instead. Returns
        False without fetching while another load is in flight or once a
        short page has been seen.
        """
        if not self._closed and self._generation == 0:
            await self.load()
            return True
        if self._closed or self.loading_initial or self.loading_more or not self.has_more:
            return False

        generation = self._generation
        current = self._filter
        next_page = self.page + 1
        self.loading_more = True

        try:
            result = await self._fetch(next_page, current)
        except ListingsGatewayError:
            if generation != self._generation:
                logger.debug("stale_page_failure_discarded", page=next_page)
                return False
            self.loading_more = False
            raise

        if generation != self._generation:
            logger.debug("stale_page_discarded", page=next_page, category=current.category)
            return False

        self.items = [*self.items, *result]
        self.page = next_page
        # A full page is taken to mean there may be more, even if it was the last one.
        self.has_more = len(result) == current.page_size
        self.loading_more = False
        return True

    def close(self) -> None:
        """Stop accepting results; any fetch still in flight is ignored when it lands."""
        self._generation += 1
        self._closed = True
        self.loading_initial = False
        self.loading_more = False

    async def _fetch(self, page: int, current: ListingFilter) -> list[Listing]:
        logger.debug(
            "fetching_listings_page",
            page=page,
            page_size=current.page_size,
            category=current.category,
            search_text=current.search_text,
        )
        return await self._gateway.fetch_page(
            page,
            current.page_size,
            category=current.category,
            search_text=current.search_text,
            homepage_only=self._homepage_only,
        )

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Pagination has been closed.")
