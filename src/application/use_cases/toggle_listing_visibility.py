from dataclasses import dataclass
from uuid import UUID

import structlog

from src.application.interfaces.listings_gateway import ListingsGateway

logger = structlog.get_logger(__name__)


@dataclass
class ToggleListingVisibilityInput:
    listing_id: UUID
    owner_id: str
    current_value: bool


@dataclass
class ToggleListingVisibilityOutput:
    listing_id: UUID
    show_in_homepage: bool
    rows_matched: int


class ToggleListingVisibility:
    """Use case: Flip a listing's homepage visibility, scoped to its owner."""

    def __init__(self, gateway: ListingsGateway) -> None:
        self._gateway = gateway

    async def execute(
        self, input_data: ToggleListingVisibilityInput
    ) -> ToggleListingVisibilityOutput:
        new_value = not input_data.current_value
        rows = await self._gateway.update(
            input_data.listing_id,
            input_data.owner_id,
            {"show_in_homepage": new_value},
        )
        logger.info(
            "listing_visibility_toggled",
            listing_id=str(input_data.listing_id),
            show_in_homepage=new_value,
            rows_matched=rows,
        )
        return ToggleListingVisibilityOutput(
            listing_id=input_data.listing_id,
            show_in_homepage=new_value,
            rows_matched=rows,
        )
