from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel


class ListingResponse(BaseModel):
    id: UUID
    title: str
    description: str
    price: Decimal
    category: list[str]
    images: list[str]
    user_id: str
    show_in_homepage: bool
    created_at: datetime
    updated_at: datetime
    was_edited: bool

    model_config = {"from_attributes": True}


class ListingPageResponse(BaseModel):
    listings: list[ListingResponse]
    page: int
    page_size: int
    has_more: bool


class ListingCollectionResponse(BaseModel):
    listings: list[ListingResponse]
    total: int


class CreateListingRequest(BaseModel):
    title: str
    description: str
    price: Decimal
    category: list[str]
    images: list[str]
    show_in_homepage: bool = True


class UpdateListingRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    price: Decimal | None = None
    category: list[str] | None = None
    images: list[str] | None = None
    show_in_homepage: bool | None = None


class CategoriesResponse(BaseModel):
    categories: list[str]


class SessionRequest(BaseModel):
    user_id: str


class SessionResponse(BaseModel):
    user_id: str | None
    listings: int


class FeedFilterRequest(BaseModel):
    category: str | None = None
    search: str | None = None
    debounce: bool = False


class FeedStateResponse(BaseModel):
    listings: list[ListingResponse]
    page: int
    page_size: int
    has_more: bool
    loading_initial: bool
    loading_more: bool
    category: str
    search: str
    raw_search: str
    search_pending: bool


class ImageUploadResponse(BaseModel):
    url: str


class ValidationErrorResponse(BaseModel):
    detail: str
    errors: dict[str, str]
