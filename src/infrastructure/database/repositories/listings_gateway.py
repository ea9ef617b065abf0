from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import structlog
from sqlalchemy import Delete, Select, Update, delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.application.interfaces.listings_gateway import ListingsGateway, ListingsGatewayError
from src.domain.entities.listing import ALL_CATEGORIES, Listing, NewListing
from src.infrastructure.database.models import CategoryModel, PostModel

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_domain(model: PostModel) -> Listing:
    return Listing(
        id=model.id,
        title=model.title,
        description=model.description,
        price=Decimal(str(model.price)),
        category=tuple(model.category or ()),
        images=tuple(model.images or ()),
        user_id=model.user_id,
        show_in_homepage=model.show_in_homepage,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _to_model(draft: NewListing) -> PostModel:
    now = _utcnow()
    return PostModel(
        id=uuid4(),
        title=draft.title.strip(),
        description=draft.description.strip(),
        price=Decimal(str(draft.price)),
        category=list(draft.category),
        images=list(draft.images),
        user_id=draft.user_id,
        show_in_homepage=draft.show_in_homepage,
        created_at=now,
        updated_at=now,
    )


def build_page_query(
    page: int,
    page_size: int,
    *,
    category: str = ALL_CATEGORIES,
    search_text: str = "",
    homepage_only: bool = True,
) -> Select:  # type: ignore[type-arg]
    """Filtered, newest-first query for rows [page * page_size, page * page_size + page_size - 1]."""
    query = select(PostModel)

    if homepage_only:
        query = query.where(PostModel.show_in_homepage.is_(True))
    if category and category != ALL_CATEGORIES:
        query = query.where(PostModel.category.contains([category]))
    if search_text:
        query = query.where(
            or_(
                PostModel.title.icontains(search_text, autoescape=True),
                PostModel.description.icontains(search_text, autoescape=True),
            )
        )

    return (
        query.order_by(PostModel.created_at.desc())
        .offset(page * page_size)
        .limit(page_size)
    )


def build_owner_update(listing_id: UUID, owner_id: str, fields: dict) -> Update:  # type: ignore[type-arg]
    values = dict(fields)
    if "category" in values:
        values["category"] = list(values["category"])
    if "images" in values:
        values["images"] = list(values["images"])
    if "price" in values:
        values["price"] = Decimal(str(values["price"]))
    values["updated_at"] = func.now()

    return (
        update(PostModel)
        .where(PostModel.id == listing_id, PostModel.user_id == owner_id)
        .values(**values)
    )


def build_delete(listing_id: UUID) -> Delete:
    return delete(PostModel).where(PostModel.id == listing_id)


class SqlAlchemyListingsGateway(ListingsGateway):
    """SQLAlchemy implementation of the listings gateway over ``posts``/``categories``."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_maker() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("listings_query_failed", operation=operation, error=str(exc))
            raise ListingsGatewayError(f"{operation} failed: {exc}") from exc

    async def fetch_page(
        self,
        page: int,
        page_size: int,
        *,
        category: str = ALL_CATEGORIES,
        search_text: str = "",
        homepage_only: bool = True,
    ) -> list[Listing]:
        query = build_page_query(
            page,
            page_size,
            category=category,
            search_text=search_text,
            homepage_only=homepage_only,
        )
        async with self._session("fetch_page") as session:
            result = await session.execute(query)
            return [_to_domain(m) for m in result.scalars().all()]

    async def fetch_all(self, *, limit: int | None = None) -> list[Listing]:
        query = select(PostModel).order_by(PostModel.created_at.desc())
        if limit is not None:
            query = query.limit(limit)
        async with self._session("fetch_all") as session:
            result = await session.execute(query)
            return [_to_domain(m) for m in result.scalars().all()]

    async def fetch_by_id(self, listing_id: UUID) -> Listing | None:
        async with self._session("fetch_by_id") as session:
            model = await session.get(PostModel, listing_id)
            return _to_domain(model) if model is not None else None

    async def fetch_by_user(self, user_id: str) -> list[Listing]:
        query = (
            select(PostModel)
            .where(PostModel.user_id == user_id)
            .order_by(PostModel.created_at.desc())
        )
        async with self._session("fetch_by_user") as session:
            result = await session.execute(query)
            return [_to_domain(m) for m in result.scalars().all()]

    async def create(self, listing: NewListing) -> Listing:
        model = _to_model(listing)
        async with self._session("create") as session:
            session.add(model)
            await session.commit()
            return _to_domain(model)

    async def update(self, listing_id: UUID, owner_id: str, fields: dict) -> int:  # type: ignore[type-arg]
        async with self._session("update") as session:
            result = await session.execute(build_owner_update(listing_id, owner_id, fields))
            await session.commit()
            return result.rowcount

    async def delete(self, listing_id: UUID) -> None:
        async with self._session("delete") as session:
            await session.execute(build_delete(listing_id))
            await session.commit()

    async def count_by_user(self, user_id: str) -> int:
        query = select(func.count()).select_from(PostModel).where(PostModel.user_id == user_id)
        async with self._session("count_by_user") as session:
            result = await session.execute(query)
            return result.scalar_one()

    async def fetch_categories(self) -> list[str]:
        query = select(CategoryModel.name).order_by(CategoryModel.name)
        async with self._session("fetch_categories") as session:
            result = await session.execute(query)
            return list(result.scalars().all())
