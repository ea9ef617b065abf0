from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from src.config import settings


def async_database_url(url: str) -> str:
    """Force the asyncpg driver onto plain ``postgresql://`` URLs."""
    return url.replace("postgresql://", "postgresql+asyncpg://", 1)


def build_engine(url: str = settings.database_url) -> AsyncEngine:
    return create_async_engine(
        async_database_url(url),
        echo=False,
        pool_pre_ping=True,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )


engine = build_engine()

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    autoflush=False,
)


class Base(DeclarativeBase):
    """Declarative base for the ``posts`` and ``categories`` tables."""
