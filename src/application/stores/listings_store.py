"""
Authoritative in-memory listing state for one client session.

All mutation of the listing collection and the cache goes through this
class. ``user_listings`` is always recomputed from ``listings`` rather than
kept separately, so the two can never disagree.
"""
import asyncio
from collections.abc import Callable
from uuid import UUID

import structlog

from src.application.cache.listing_cache import ListingCache
from src.application.interfaces.identity_provider import (
    AuthenticationRequiredError,
    IdentityProvider,
)
from src.application.interfaces.image_storage import ImageStorage, ImageStorageError
from src.application.interfaces.listings_gateway import ListingsGateway, ListingsGatewayError
from src.application.use_cases.create_listing import CreateListing, CreateListingInput
from src.application.use_cases.toggle_listing_visibility import (
    ToggleListingVisibility,
    ToggleListingVisibilityInput,
)
from src.application.use_cases.update_listing import UpdateListing, UpdateListingInput
from src.domain.entities.listing import Listing, NewListing

logger = structlog.get_logger(__name__)


class ListingNotFoundError(Exception):
    def __init__(self, listing_id: UUID) -> None:
        self.listing_id = listing_id
        super().__init__(f"Listing {listing_id} not found.")


class ListingDeleteFailedError(Exception):
    def __init__(self, listing_id: UUID) -> None:
        self.listing_id = listing_id
        super().__init__(f"Failed to delete listing {listing_id}.")


class ListingOwnershipError(Exception):
    def __init__(self, listing_id: UUID | None, user_id: str) -> None:
        self.listing_id = listing_id
        self.user_id = user_id
        super().__init__(f"User {user_id} does not own this listing.")


class ListingsStore:
    def __init__(
        self,
        gateway: ListingsGateway,
        storage: ImageStorage,
        *,
        cache: ListingCache | None = None,
        max_listings_per_user: int = 5,
    ) -> None:
        self._gateway = gateway
        self._storage = storage
        self._cache = cache if cache is not None else ListingCache()
        self._max_listings = max_listings_per_user

        self.listings: list[Listing] = []
        self.categories: list[str] = []
        self.current_user_id: str | None = None

        # Latches suppressing duplicate concurrent fetches; a second call is dropped, not queued.
        self._fetching_listings = False
        self._fetching_categories = False

    # -------------------------------------------------------------------------
    # Derived state
    # -------------------------------------------------------------------------

    @property
    def user_listings(self) -> list[Listing]:
        if self.current_user_id is None:
            return []
        return [listing for listing in self.listings if listing.user_id == self.current_user_id]

    @property
    def cache(self) -> ListingCache:
        return self._cache

    @property
    def is_loading(self) -> bool:
        return self._fetching_listings

    @property
    def is_fetching_categories(self) -> bool:
        return self._fetching_categories

    # -------------------------------------------------------------------------
    # Synchronisation
    # -------------------------------------------------------------------------

    async def refresh(self) -> bool:
        """
        Replace the listing collection and rebuild the cache from a full fetch.

        Returns False when suppressed because a refresh is already in flight.
        On failure the previous collection and cache are left untouched.
        """
        if self._fetching_listings:
            logger.debug("listings_refresh_suppressed")
            return False

        self._fetching_listings = True
        try:
            listings = await self._gateway.fetch_all()
            self.listings = list(listings)
            self._cache.replace_all(self.listings)
            logger.info("listings_refreshed", count=len(self.listings))
            return True
        except ListingsGatewayError:
            logger.exception("listings_refresh_failed")
            raise
        finally:
            self._fetching_listings = False

    async def fetch_categories(self) -> bool:
        if self._fetching_categories:
            logger.debug("categories_fetch_suppressed")
            return False

        self._fetching_categories = True
        try:
            self.categories = await self._gateway.fetch_categories()
            logger.info("categories_fetched", count=len(self.categories))
            return True
        except ListingsGatewayError:
            logger.exception("categories_fetch_failed")
            raise
        finally:
            self._fetching_categories = False

    async def on_session_change(self, user_id: str | None) -> None:
        """Re-synchronise whenever the signed-in user becomes set or changes."""
        previous = self.current_user_id
        self.current_user_id = user_id
        if user_id is None or user_id == previous:
            return

        logger.info("session_user_changed", user_id=user_id)
        results = await asyncio.gather(
            self.refresh(), self.fetch_categories(), return_exceptions=True
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result

    async def attach(self, identity: IdentityProvider) -> Callable[[], None]:
        return await identity.subscribe(self.on_session_change)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        cached = self._cache.get(listing_id)
        if cached is not None:
            logger.debug("listing_cache_hit", listing_id=str(listing_id))
            return cached

        listing = await self._gateway.fetch_by_id(listing_id)
        if listing is not None:
            self._cache.put(listing)
        return listing

    def search_listings(self, query: str) -> list[Listing]:
        if not query:
            return list(self.listings)
        return [listing for listing in self.listings if listing.matches_text(query)]

    def filter_listings_by_category(self, category: str) -> list[Listing]:
        return [listing for listing in self.listings if listing.has_category(category)]

    # -------------------------------------------------------------------------
    # Writes (local state changes only after the remote call succeeds)
    # -------------------------------------------------------------------------

    async def create_listing(self, draft: NewListing) -> Listing:
        owner_id = self._require_user_id()
        if draft.user_id != owner_id:
            raise ListingOwnershipError(None, owner_id)
        output = await CreateListing(self._gateway, self._max_listings).execute(
            CreateListingInput(draft=draft)
        )
        listing = output.listing
        self.listings = [listing, *(item for item in self.listings if item.id != listing.id)]
        self._cache.put(listing)
        return listing

    async def update_listing(self, listing_id: UUID, fields: dict) -> Listing | None:  # type: ignore[type-arg]
        owner_id = self._require_user_id()
        await UpdateListing(self._gateway).execute(
            UpdateListingInput(listing_id=listing_id, owner_id=owner_id, fields=fields)
        )
        return await self._resync(listing_id)

    async def toggle_visibility(self, listing_id: UUID) -> Listing | None:
        # Bypass the cache: the flip must start from the stored value.
        listing = await self._gateway.fetch_by_id(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)

        owner_id = self._require_user_id()
        await ToggleListingVisibility(self._gateway).execute(
            ToggleListingVisibilityInput(
                listing_id=listing_id,
                owner_id=owner_id,
                current_value=listing.show_in_homepage,
            )
        )
        return await self._resync(listing_id)

    async def delete_listing(self, listing_id: UUID) -> None:
        listing = await self.get_by_id(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        owner_id = self._require_user_id()
        if listing.user_id != owner_id:
            logger.warning(
                "listing_delete_not_owner", listing_id=str(listing_id), user_id=owner_id
            )
            raise ListingOwnershipError(listing_id, owner_id)

        # Images go first and independently; a failed image never blocks the row delete.
        for url in listing.images:
            try:
                await self._storage.delete(url, listing.user_id)
            except ImageStorageError as exc:
                logger.warning(
                    "listing_image_cleanup_failed",
                    listing_id=str(listing_id),
                    image_url=url,
                    error=str(exc),
                )

        try:
            await self._gateway.delete(listing_id)
        except ListingsGatewayError as exc:
            logger.error("listing_delete_failed", listing_id=str(listing_id), error=str(exc))
            raise ListingDeleteFailedError(listing_id) from exc

        self._forget(listing_id)
        logger.info("listing_deleted", listing_id=str(listing_id))

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _require_user_id(self) -> str:
        if self.current_user_id is None:
            raise AuthenticationRequiredError()
        return self.current_user_id

    def _forget(self, listing_id: UUID) -> None:
        self.listings = [item for item in self.listings if item.id != listing_id]
        self._cache.invalidate(listing_id)

    async def _resync(self, listing_id: UUID) -> Listing | None:
        """Re-read one row after a successful write and fold it into local state."""
        listing = await self._gateway.fetch_by_id(listing_id)
        if listing is None:
            self._forget(listing_id)
            return None

        self.listings = [listing if item.id == listing_id else item for item in self.listings]
        self._cache.put(listing)
        return listing
