from fastapi import APIRouter, Depends

from src.api.dependencies import get_feed
from src.api.routes.listings import listing_to_response
from src.api.schemas.listing_schemas import FeedFilterRequest, FeedStateResponse
from src.application.pagination.listing_feed import ListingFeed

router = APIRouter(prefix="/feed", tags=["feed"])


def _feed_state(feed: ListingFeed) -> FeedStateResponse:
    pagination = feed.pagination
    return FeedStateResponse(
        listings=[listing_to_response(listing) for listing in pagination.items],
        page=pagination.page,
        page_size=pagination.filter.page_size,
        has_more=pagination.has_more,
        loading_initial=pagination.loading_initial,
        loading_more=pagination.loading_more,
        category=pagination.filter.category,
        search=pagination.filter.search_text,
        raw_search=feed.raw_search,
        search_pending=feed.search_pending,
    )


@router.get("", response_model=FeedStateResponse)
async def get_feed_state(feed: ListingFeed = Depends(get_feed)) -> FeedStateResponse:
    if not feed.started:
        await feed.start()
    return _feed_state(feed)


@router.put("/filter", response_model=FeedStateResponse)
async def set_feed_filter(
    body: FeedFilterRequest,
    feed: ListingFeed = Depends(get_feed),
) -> FeedStateResponse:
    """
    Change the category and/or search text.

    With ``debounce`` set the search text is treated as a keystroke and only
    applied once typing pauses; otherwise the feed reloads before returning.
    """
    if body.category is not None:
        await feed.select_category(body.category)
    if body.search is not None:
        if body.debounce:
            feed.type_search(body.search)
        else:
            await feed.apply_search(body.search)
    return _feed_state(feed)


@router.post("/more", response_model=FeedStateResponse)
async def load_more(feed: ListingFeed = Depends(get_feed)) -> FeedStateResponse:
    await feed.load_more()
    return _feed_state(feed)


@router.post("/reload", response_model=FeedStateResponse)
async def reload_feed(feed: ListingFeed = Depends(get_feed)) -> FeedStateResponse:
    await feed.start()
    return _feed_state(feed)
