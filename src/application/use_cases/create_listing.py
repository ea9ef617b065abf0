from dataclasses import dataclass

import structlog

from src.application.interfaces.listings_gateway import ListingsGateway
from src.domain.entities.listing import Listing, ListingQuotaExceededError, NewListing

logger = structlog.get_logger(__name__)


@dataclass
class CreateListingInput:
    draft: NewListing


@dataclass
class CreateListingOutput:
    listing: Listing


class CreateListing:
    """
    Use case: Publish a new listing for its owner.

    Field checks run first and never touch the store. The per-user quota is
    then checked with a single count query; only after both pass is the row
    inserted.
    """

    def __init__(self, gateway: ListingsGateway, max_listings_per_user: int) -> None:
        self._gateway = gateway
        self._max_listings = max_listings_per_user

    async def execute(self, input_data: CreateListingInput) -> CreateListingOutput:
        draft = input_data.draft
        draft.validate()

        owned = await self._gateway.count_by_user(draft.user_id)
        if owned >= self._max_listings:
            logger.info(
                "listing_quota_exceeded",
                user_id=draft.user_id,
                owned=owned,
                limit=self._max_listings,
            )
            raise ListingQuotaExceededError(draft.user_id, self._max_listings)

        listing = await self._gateway.create(draft)

        logger.info("listing_created", listing_id=str(listing.id), user_id=listing.user_id)
        return CreateListingOutput(listing=listing)
