from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool
from sqlalchemy import event
from newsletter.config import get_settings
import os
import logging
import asyncio

logger = logging.getLogger(__name__)


def create_engine_for_database():
    """Create the appropriate async engine based on database configuration."""
    settings = get_settings()
    if settings.use_sqlite:
        # SQLite configuration (for local development and testing)
        is_memory = ":memory:" in settings.database_url
        if not is_memory:
            os.makedirs("data", exist_ok=True)
        logger.info("Using SQLite database for local development")
        engine_kwargs = dict(
            echo=settings.app_debug,
            future=True,
            connect_args={
                "check_same_thread": False,
            },
        )
        if is_memory:
            # In-memory SQLite needs StaticPool so all connections share
            # the same database (otherwise each connection gets its own).
            engine_kwargs["poolclass"] = StaticPool
        else:
            engine_kwargs["connect_args"]["timeout"] = 30
        return create_async_engine(settings.database_url, **engine_kwargs)
    else:
        logger.info(f"Connecting to PostgreSQL at {settings.postgres_host}:{settings.postgres_port}")
        connect_args = {"timeout": settings.db_pool_timeout}
        if settings.postgres_require_ssl:
            connect_args["ssl"] = "require"
        return create_async_engine(
            settings.database_url,
            echo=settings.app_debug,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            pool_pre_ping=True,  # Verify connections before using
            pool_recycle=settings.db_pool_recycle,
            connect_args=connect_args,
        )


# Lazy engine initialization
_engine = None


def get_engine():
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        _engine = create_engine_for_database()

        if get_settings().use_sqlite:

            @event.listens_for(_engine.sync_engine, "connect")
            def set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

    return _engine


_session_maker = None


def _get_session_maker():
    """Get or create the async session maker (lazy initialization)."""
    global _session_maker
    if _session_maker is None:
        _session_maker = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _session_maker


def AsyncSessionLocal():
    """Get a new async session (lazy initialization).

    Usage: async with AsyncSessionLocal() as session: ...
    """
    return _get_session_maker()()


# Base class for models
Base = declarative_base()


async def get_db():
    """Dependency to get database session.

    Services that own a transaction boundary commit or roll back themselves;
    anything left pending when the request finishes is rolled back.
    """
    session_maker = _get_session_maker()
    async with session_maker() as session:
        yield session


async def init_db():
    """Create tables with retry logic.

    In production with PostgreSQL, prefer the Alembic migrations; this is
    used for SQLite development databases and the test suite.
    """
    # Register models on Base.metadata
    import newsletter.models  # noqa: F401

    max_retries = 5
    base_delay = 2

    for attempt in range(max_retries):
        try:
            engine = get_engine()
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables initialized")
            return
        except Exception as e:
            if attempt < max_retries - 1:
                delay = base_delay * (2 ** attempt)
                logger.warning(f"Database connection attempt {attempt + 1}/{max_retries} failed: {e}. Retrying in {delay}s...")
                await asyncio.sleep(delay)
            else:
                logger.error(f"Database initialization failed after {max_retries} attempts: {e}")
                raise


async def dispose_engine():
    """Close all pooled connections and forget the engine."""
    global _engine, _session_maker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_maker = None
