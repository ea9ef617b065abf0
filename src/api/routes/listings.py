from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from src.api.dependencies import (
    get_current_user_id,
    get_gateway,
    get_image_storage,
    get_store,
)
from src.api.schemas.listing_schemas import (
    CategoriesResponse,
    CreateListingRequest,
    ImageUploadResponse,
    ListingCollectionResponse,
    ListingPageResponse,
    ListingResponse,
    UpdateListingRequest,
    ValidationErrorResponse,
)
from src.application.interfaces.image_storage import ImageStorage
from src.application.interfaces.listings_gateway import ListingsGateway
from src.application.stores.listings_store import (
    ListingDeleteFailedError,
    ListingNotFoundError,
    ListingsStore,
)
from src.config import settings
from src.domain.entities.listing import ALL_CATEGORIES, Listing, NewListing

router = APIRouter(tags=["listings"])


def listing_to_response(listing: Listing) -> ListingResponse:
    return ListingResponse(
        id=listing.id,
        title=listing.title,
        description=listing.description,
        price=listing.price,
        category=list(listing.category),
        images=list(listing.images),
        user_id=listing.user_id,
        show_in_homepage=listing.show_in_homepage,
        created_at=listing.created_at,
        updated_at=listing.updated_at,
        was_edited=listing.was_edited,
    )


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Listing not found.")


@router.get("/categories", response_model=CategoriesResponse)
async def list_categories(store: ListingsStore = Depends(get_store)) -> CategoriesResponse:
    if not store.categories:
        await store.fetch_categories()
    return CategoriesResponse(categories=store.categories)


@router.get("/listings", response_model=ListingPageResponse)
async def list_listings(
    page: int = Query(default=0, ge=0),
    page_size: int = Query(default=settings.page_size, ge=1, le=100),
    category: str = Query(default=ALL_CATEGORIES),
    search: str = Query(default=""),
    homepage_only: bool = Query(default=True),
    gateway: ListingsGateway = Depends(get_gateway),
) -> ListingPageResponse:
    """One page of listings, newest first, filtered server-side."""
    listings = await gateway.fetch_page(
        page,
        page_size,
        category=category,
        search_text=search.strip(),
        homepage_only=homepage_only,
    )
    return ListingPageResponse(
        listings=[listing_to_response(listing) for listing in listings],
        page=page,
        page_size=page_size,
        has_more=len(listings) == page_size,
    )


@router.get("/listings/{listing_id}", response_model=ListingResponse)
async def get_listing(
    listing_id: UUID,
    store: ListingsStore = Depends(get_store),
) -> ListingResponse:
    listing = await store.get_by_id(listing_id)
    if listing is None:
        raise _not_found()
    return listing_to_response(listing)


@router.post(
    "/listings",
    status_code=status.HTTP_201_CREATED,
    response_model=ListingResponse,
    responses={
        status.HTTP_409_CONFLICT: {"model": ValidationErrorResponse},
        status.HTTP_422_UNPROCESSABLE_ENTITY: {"model": ValidationErrorResponse},
    },
)
async def create_listing(
    body: CreateListingRequest,
    user_id: str = Depends(get_current_user_id),
    store: ListingsStore = Depends(get_store),
) -> ListingResponse:
    listing = await store.create_listing(
        NewListing(
            title=body.title,
            description=body.description,
            price=body.price,
            category=body.category,
            images=body.images,
            user_id=user_id,
            show_in_homepage=body.show_in_homepage,
        )
    )
    return listing_to_response(listing)


@router.patch("/listings/{listing_id}", response_model=ListingResponse)
async def update_listing(
    listing_id: UUID,
    body: UpdateListingRequest,
    user_id: str = Depends(get_current_user_id),
    store: ListingsStore = Depends(get_store),
) -> ListingResponse:
    listing = await store.update_listing(listing_id, body.model_dump(exclude_unset=True))
    if listing is None:
        raise _not_found()
    return listing_to_response(listing)


@router.post("/listings/{listing_id}/visibility", response_model=ListingResponse)
async def toggle_visibility(
    listing_id: UUID,
    user_id: str = Depends(get_current_user_id),
    store: ListingsStore = Depends(get_store),
) -> ListingResponse:
    try:
        listing = await store.toggle_visibility(listing_id)
    except ListingNotFoundError:
        raise _not_found()
    if listing is None:
        raise _not_found()
    return listing_to_response(listing)


@router.delete("/listings/{listing_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_listing(
    listing_id: UUID,
    user_id: str = Depends(get_current_user_id),
    store: ListingsStore = Depends(get_store),
) -> Response:
    try:
        await store.delete_listing(listing_id)
    except ListingNotFoundError:
        raise _not_found()
    except ListingDeleteFailedError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me/listings", response_model=ListingCollectionResponse)
async def my_listings(
    user_id: str = Depends(get_current_user_id),
    store: ListingsStore = Depends(get_store),
) -> ListingCollectionResponse:
    listings = store.user_listings
    return ListingCollectionResponse(
        listings=[listing_to_response(listing) for listing in listings],
        total=len(listings),
    )


@router.post(
    "/images",
    status_code=status.HTTP_201_CREATED,
    response_model=ImageUploadResponse,
)
async def upload_image(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    storage: ImageStorage = Depends(get_image_storage),
) -> ImageUploadResponse:
    """Upload the raw request body as one listing image for the current user."""
    data = await request.body()
    if not data:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Empty image.")
    content_type = request.headers.get("content-type", "image/jpeg")
    url = await storage.upload(data, user_id, content_type=content_type)
    return ImageUploadResponse(url=url)
