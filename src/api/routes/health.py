from fastapi import APIRouter, Depends

from src.api.dependencies import get_gateway
from src.application.interfaces.listings_gateway import ListingsGateway, ListingsGatewayError

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(gateway: ListingsGateway = Depends(get_gateway)) -> dict:  # type: ignore[type-arg]
    """Liveness + relational store health check."""
    store_status = "connected"
    try:
        await gateway.fetch_categories()
    except ListingsGatewayError as exc:
        store_status = f"error: {exc}"

    return {
        "status": "healthy" if store_status == "connected" else "degraded",
        "store": store_status,
    }
