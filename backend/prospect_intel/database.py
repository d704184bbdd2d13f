"""Database connection and session management."""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from prospect_intel.config import settings

# Convert postgresql:// to postgresql+asyncpg://
database_url = settings.DATABASE_URL.replace(
    "postgresql://", "postgresql+asyncpg://"
)


def create_engine_for(url: str, **kwargs):
    """Create an async engine; pool sizing only applies to server databases."""
    if not url.startswith("sqlite"):
        kwargs.setdefault("pool_size", settings.DB_POOL_SIZE)
        kwargs.setdefault("max_overflow", settings.DB_MAX_OVERFLOW)
        kwargs.setdefault("pool_pre_ping", True)
    return create_async_engine(
        url,
        echo=settings.LOG_LEVEL == "DEBUG",
        **kwargs
    )


def create_session_factory(bind) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False
    )


# Create async engine
engine = create_engine_for(database_url)

# Create session factory
AsyncSessionLocal = create_session_factory(engine)

# Base class for models
Base = declarative_base()
