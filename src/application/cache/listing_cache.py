"""
Time-expiring cache of listing snapshots keyed by listing id.

Owned by the ListingsStore; nothing else mutates it. There is no size bound,
which is fine for a single neighbourhood's listing volume.
"""
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from uuid import UUID

from src.domain.entities.listing import Listing

DEFAULT_TTL_SECONDS = 300.0


@dataclass(frozen=True)
class CacheEntry:
    listing: Listing
    fetched_at: float


class ListingCache:
    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[UUID, CacheEntry] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, listing_id: UUID) -> Listing | None:
        """Return the snapshot if present and younger than the TTL, otherwise None (a miss)."""
        entry = self._entries.get(listing_id)
        if entry is None:
            return None
        if self._clock() - entry.fetched_at >= self._ttl:
            return None
        return entry.listing

    def put(self, listing: Listing) -> None:
        self._entries[listing.id] = CacheEntry(listing=listing, fetched_at=self._clock())

    def put_many(self, listings: Iterable[Listing]) -> None:
        now = self._clock()
        for listing in listings:
            self._entries[listing.id] = CacheEntry(listing=listing, fetched_at=now)

    def invalidate(self, listing_id: UUID) -> None:
        self._entries.pop(listing_id, None)

    def clear(self) -> None:
        self._entries.clear()

    def replace_all(self, listings: Iterable[Listing]) -> None:
        """Clear and rebuild from a full-list fetch in one step."""
        self._entries.clear()
        self.put_many(listings)

    def __contains__(self, listing_id: object) -> bool:
        return listing_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)
