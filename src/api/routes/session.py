from fastapi import APIRouter, Depends

from src.api.dependencies import get_identity, get_store
from src.api.schemas.listing_schemas import SessionRequest, SessionResponse
from src.application.stores.listings_store import ListingsStore
from src.infrastructure.identity.local_identity import LocalIdentityProvider

router = APIRouter(prefix="/session", tags=["session"])


@router.get("", response_model=SessionResponse)
async def get_session(
    identity: LocalIdentityProvider = Depends(get_identity),
    store: ListingsStore = Depends(get_store),
) -> SessionResponse:
    return SessionResponse(user_id=identity.current_user_id, listings=len(store.user_listings))


@router.post("", response_model=SessionResponse)
async def sign_in(
    body: SessionRequest,
    identity: LocalIdentityProvider = Depends(get_identity),
    store: ListingsStore = Depends(get_store),
) -> SessionResponse:
    """Start a session; the store re-synchronises listings and categories for the new user."""
    await identity.sign_in(body.user_id)
    return SessionResponse(user_id=identity.current_user_id, listings=len(store.user_listings))


@router.delete("", response_model=SessionResponse)
async def sign_out(
    identity: LocalIdentityProvider = Depends(get_identity),
    store: ListingsStore = Depends(get_store),
) -> SessionResponse:
    await identity.sign_out()
    return SessionResponse(user_id=None, listings=len(store.user_listings))
