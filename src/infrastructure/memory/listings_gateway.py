"""
In-memory listings gateway, used in tests and for local development
without a database. Mirrors the query semantics of the SQL gateway.
"""
from collections.abc import Callable
from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import structlog

from src.application.interfaces.listings_gateway import ListingsGateway
from src.domain.entities.listing import ALL_CATEGORIES, Listing, NewListing

logger = structlog.get_logger(__name__)

DEFAULT_CATEGORIES = ["Clothing", "Electronics", "Furniture", "Home Goods", "Other", "Services"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryListingsGateway(ListingsGateway):
    def __init__(
        self,
        categories: list[str] | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._categories = list(categories if categories is not None else DEFAULT_CATEGORIES)
        self._clock = clock
        self._rows: dict[UUID, Listing] = {}
        # Insertion sequence breaks created_at ties so ordering stays deterministic
        self._sequence: dict[UUID, int] = {}

    def _newest_first(self, rows: list[Listing]) -> list[Listing]:
        return sorted(rows, key=lambda row: (row.created_at, self._sequence[row.id]), reverse=True)

    async def fetch_page(
        self,
        page: int,
        page_size: int,
        *,
        category: str = ALL_CATEGORIES,
        search_text: str = "",
        homepage_only: bool = True,
    ) -> list[Listing]:
        rows = list(self._rows.values())
        if homepage_only:
            rows = [row for row in rows if row.show_in_homepage]
        if category and category != ALL_CATEGORIES:
            rows = [row for row in rows if category in row.category]
        if search_text:
            rows = [row for row in rows if row.matches_text(search_text)]

        start = page * page_size
        return self._newest_first(rows)[start : start + page_size]

    async def fetch_all(self, *, limit: int | None = None) -> list[Listing]:
        rows = self._newest_first(list(self._rows.values()))
        return rows if limit is None else rows[:limit]

    async def fetch_by_id(self, listing_id: UUID) -> Listing | None:
        return self._rows.get(listing_id)

    async def fetch_by_user(self, user_id: str) -> list[Listing]:
        return self._newest_first([row for row in self._rows.values() if row.user_id == user_id])

    async def create(self, listing: NewListing) -> Listing:
        now = self._clock()
        row = Listing(
            id=uuid4(),
            title=listing.title.strip(),
            description=listing.description.strip(),
            price=Decimal(str(listing.price)),
            category=tuple(listing.category),
            images=tuple(listing.images),
            user_id=listing.user_id,
            show_in_homepage=listing.show_in_homepage,
            created_at=now,
            updated_at=now,
        )
        self._rows[row.id] = row
        self._sequence[row.id] = len(self._sequence)
        logger.debug("memory_listing_inserted", listing_id=str(row.id))
        return row

    async def update(self, listing_id: UUID, owner_id: str, fields: dict) -> int:  # type: ignore[type-arg]
        row = self._rows.get(listing_id)
        if row is None or row.user_id != owner_id:
            return 0

        values = dict(fields)
        for name in ("category", "images"):
            if name in values:
                values[name] = tuple(values[name])
        if "price" in values:
            values["price"] = Decimal(str(values["price"]))
        self._rows[listing_id] = replace(row, **values, updated_at=self._clock())
        return 1

    async def delete(self, listing_id: UUID) -> None:
        self._rows.pop(listing_id, None)

    async def count_by_user(self, user_id: str) -> int:
        return sum(1 for row in self._rows.values() if row.user_id == user_id)

    async def fetch_categories(self) -> list[str]:
        return sorted(self._categories)
