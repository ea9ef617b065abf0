"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.dependencies import get_feed, get_identity, get_store
from src.api.routes import feed, health, listings, session
from src.application.interfaces.identity_provider import AuthenticationRequiredError
from src.application.interfaces.image_storage import ImageStorageError
from src.application.interfaces.listings_gateway import ListingsGatewayError
from src.application.stores.listings_store import ListingOwnershipError
from src.config import settings
from src.domain.entities.listing import ListingQuotaExceededError, ListingValidationError
from src.infrastructure.logging_config import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    configure_logging(settings.log_level)
    logger.info("classifieds_starting", backend=settings.listings_backend)
    unsubscribe = await get_store().attach(get_identity())
    yield
    unsubscribe()
    await get_feed().close()
    logger.info("classifieds_stopping")


async def _validation_failed(request: Request, exc: ListingValidationError) -> JSONResponse:
    code = (
        status.HTTP_409_CONFLICT
        if isinstance(exc, ListingQuotaExceededError)
        else status.HTTP_422_UNPROCESSABLE_ENTITY
    )
    return JSONResponse(status_code=code, content={"detail": str(exc), "errors": exc.errors})


async def _authentication_required(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"detail": str(exc)})


async def _not_owner(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


async def _upstream_failed(request: Request, exc: Exception) -> JSONResponse:
    logger.error("upstream_failure", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content={"detail": "Upstream service failed; please retry."},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Neighborhood Classifieds",
        description="Listings cache, pagination and store for a neighbourhood marketplace.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ListingValidationError, _validation_failed)  # type: ignore[arg-type]
    app.add_exception_handler(AuthenticationRequiredError, _authentication_required)
    app.add_exception_handler(ListingOwnershipError, _not_owner)
    app.add_exception_handler(ListingsGatewayError, _upstream_failed)
    app.add_exception_handler(ImageStorageError, _upstream_failed)

    app.include_router(health.router)
    app.include_router(session.router)
    app.include_router(listings.router)
    app.include_router(feed.router)

    return app


app = create_app()
