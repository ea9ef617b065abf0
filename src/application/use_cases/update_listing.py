from dataclasses import dataclass, field
from uuid import UUID

import structlog

from src.application.interfaces.listings_gateway import ListingsGateway
from src.domain.entities.listing import (
    EDITABLE_FIELDS,
    ListingValidationError,
    validate_listing_fields,
)

logger = structlog.get_logger(__name__)


@dataclass
class UpdateListingInput:
    listing_id: UUID
    owner_id: str
    fields: dict = field(default_factory=dict)  # type: ignore[type-arg]


@dataclass
class UpdateListingOutput:
    listing_id: UUID
    rows_matched: int


class UpdateListing:
    """
    Use case: Apply a partial edit to a listing on behalf of its owner.

    Ownership is enforced by the update predicate itself (id AND user_id), so
    an edit issued by anyone else matches zero rows and changes nothing.
    """

    def __init__(self, gateway: ListingsGateway) -> None:
        self._gateway = gateway

    async def execute(self, input_data: UpdateListingInput) -> UpdateListingOutput:
        unknown = set(input_data.fields) - EDITABLE_FIELDS
        if unknown:
            raise ListingValidationError(
                {name: "Field cannot be edited." for name in sorted(unknown)}
            )
        errors = validate_listing_fields(input_data.fields)
        if errors:
            raise ListingValidationError(errors)

        rows = await self._gateway.update(
            input_data.listing_id, input_data.owner_id, input_data.fields
        )

        if rows == 0:
            logger.warning(
                "listing_update_matched_no_rows",
                listing_id=str(input_data.listing_id),
                owner_id=input_data.owner_id,
            )
        else:
            logger.info(
                "listing_updated",
                listing_id=str(input_data.listing_id),
                fields=sorted(input_data.fields),
            )
        return UpdateListingOutput(listing_id=input_data.listing_id, rows_matched=rows)
