"""
FastAPI dependency wiring.

The store, feed and identity provider hold one client session's state, so
they are process-wide singletons; tests swap them via
``app.dependency_overrides``.
"""
from functools import lru_cache

from fastapi import Depends

from src.application.cache.listing_cache import ListingCache
from src.application.interfaces.identity_provider import IdentityProvider
from src.application.interfaces.image_storage import ImageStorage
from src.application.interfaces.listings_gateway import ListingsGateway
from src.application.pagination.listing_feed import ListingFeed
from src.application.stores.listings_store import ListingsStore
from src.config import settings
from src.infrastructure.identity.local_identity import LocalIdentityProvider
from src.infrastructure.memory.image_storage import InMemoryImageStorage
from src.infrastructure.memory.listings_gateway import InMemoryListingsGateway
from src.infrastructure.storage.supabase_storage import SupabaseImageStorage


# ---- Collaborators ---------------------------------------------------------

@lru_cache
def get_gateway() -> ListingsGateway:
    if settings.listings_backend == "memory":
        return InMemoryListingsGateway()

    from src.infrastructure.database.connection import AsyncSessionLocal
    from src.infrastructure.database.repositories.listings_gateway import (
        SqlAlchemyListingsGateway,
    )

    return SqlAlchemyListingsGateway(AsyncSessionLocal)


@lru_cache
def get_image_storage() -> ImageStorage:
    if settings.listings_backend == "memory":
        return InMemoryImageStorage(bucket=settings.storage_bucket)
    return SupabaseImageStorage()


@lru_cache
def get_identity() -> IdentityProvider:
    return LocalIdentityProvider()


# ---- Session state ---------------------------------------------------------

@lru_cache
def get_store() -> ListingsStore:
    return ListingsStore(
        get_gateway(),
        get_image_storage(),
        cache=ListingCache(ttl_seconds=settings.cache_ttl_seconds),
        max_listings_per_user=settings.max_listings_per_user,
    )


@lru_cache
def get_feed() -> ListingFeed:
    return ListingFeed(
        get_gateway(),
        page_size=settings.page_size,
        debounce_ms=settings.search_debounce_ms,
    )


def get_current_user_id(identity: IdentityProvider = Depends(get_identity)) -> str:
    return identity.require_user_id()
