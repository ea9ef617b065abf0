import asyncio

import structlog

from src.application.interfaces.listings_gateway import ListingsGateway
from src.application.pagination.paginated_listings import ListingFilter, PaginatedListings
from src.application.utils.debounce import DebouncedValue
from src.domain.entities.listing import ALL_CATEGORIES, Listing

logger = structlog.get_logger(__name__)


class ListingFeed:
    """
    Homepage feed: debounced search text and a category selection driving
    one PaginatedListings instance.

    Raw keystrokes go to ``type_search``; only the settled text reaches the
    pagination filter, and each settled change reloads from page 0.
    """

    def __init__(
        self,
        gateway: ListingsGateway,
        *,
        page_size: int,
        debounce_ms: int,
        category: str = ALL_CATEGORIES,
    ) -> None:
        self._pagination = PaginatedListings(gateway, page_size, category=category)
        self._search = DebouncedValue("", debounce_ms, on_change=self._on_search_settled)
        self._reload: asyncio.Task[None] | None = None
        self.raw_search = ""
        self._started = False

    @property
    def pagination(self) -> PaginatedListings:
        return self._pagination

    @property
    def filter(self) -> ListingFilter:
        return self._pagination.filter

    @property
    def items(self) -> list[Listing]:
        return self._pagination.items

    @property
    def started(self) -> bool:
        return self._started

    @property
    def search_pending(self) -> bool:
        return self._search.pending

    async def start(self) -> None:
        """Load page 0 for the current filter; also serves as a manual retry."""
        self._started = True
        await self._pagination.load()

    def type_search(self, text: str) -> None:
        self.raw_search = text
        self._search.set(text)

    async def apply_search(self, text: str) -> None:
        """Skip the debounce delay and reload for ``text`` right away."""
        self.raw_search = text
        self._search.set_now(text)
        await self.settle()

    async def select_category(self, category: str) -> None:
        if not self._started and category == self.filter.category:
            await self.start()
            return
        self._started = True
        await self._pagination.set_filter(category=category)

    async def load_more(self) -> bool:
        if not self._started:
            await self.start()
            return True
        return await self._pagination.load_more()

    async def settle(self) -> None:
        """Wait for the reload triggered by the last settled search, if any."""
        if self._reload is not None:
            task, self._reload = self._reload, None
            await task

    async def close(self) -> None:
        self._search.close()
        self._pagination.close()
        if self._reload is not None and not self._reload.done():
            self._reload.cancel()
        self._reload = None

    def _on_search_settled(self, text: str) -> None:
        logger.debug("search_settled", search_text=text)
        self._started = True
        self._reload = asyncio.create_task(self._pagination.set_filter(search_text=text))
        self._reload.add_done_callback(_log_reload_failure)


def _log_reload_failure(task: "asyncio.Task[None]") -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("feed_reload_failed", error=str(exc))
