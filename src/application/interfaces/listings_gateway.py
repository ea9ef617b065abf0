from abc import ABC, abstractmethod
from uuid import UUID

from src.domain.entities.listing import ALL_CATEGORIES, Listing, NewListing


class ListingsGatewayError(Exception):
    """Transport or storage failure talking to the relational store."""


class ListingsGateway(ABC):
    """
    Port translating listing operations into relational-store queries.

    Implementations hold no state and perform no caching or retries; any
    transport failure is raised as ListingsGatewayError.
    """

    @abstractmethod
    async def fetch_page(
        self,
        page: int,
        page_size: int,
        *,
        category: str = ALL_CATEGORIES,
        search_text: str = "",
        homepage_only: bool = True,
    ) -> list[Listing]:
        """Return rows [page * page_size, page * page_size + page_size - 1], newest first."""
        ...

    @abstractmethod
    async def fetch_all(self, *, limit: int | None = None) -> list[Listing]:
        ...

    @abstractmethod
    async def fetch_by_id(self, listing_id: UUID) -> Listing | None:
        ...

    @abstractmethod
    async def fetch_by_user(self, user_id: str) -> list[Listing]:
        ...

    @abstractmethod
    async def create(self, listing: NewListing) -> Listing:
        ...

    @abstractmethod
    async def update(self, listing_id: UUID, owner_id: str, fields: dict) -> int:  # type: ignore[type-arg]
        """Apply ``fields`` to the row matching both id and owner; return rows matched."""
        ...

    @abstractmethod
    async def delete(self, listing_id: UUID) -> None:
        ...

    @abstractmethod
    async def count_by_user(self, user_id: str) -> int:
        ...

    @abstractmethod
    async def fetch_categories(self) -> list[str]:
        """Category vocabulary ordered by name."""
        ...
