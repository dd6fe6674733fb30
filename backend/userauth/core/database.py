"""Async database engine and session management.

Configures the SQLAlchemy async engine with a bounded connection pool,
provides dependency injection for database sessions, and the
``store_operation`` guard that bounds every credential store call.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from userauth.core.config import Settings, settings
from userauth.core.errors import StoreTimeoutError, translate_db_error

logger = logging.getLogger(__name__)


def build_engine(config: Settings) -> AsyncEngine:
    """Create an async engine whose pool honours the configured caps.

    pool_size is the idle ceiling; overflow makes up the difference to the
    open-connection cap. Connections older than the lifetime are recycled.

    Args:
        config: Application settings.

    Returns:
        Configured AsyncEngine.
    """
    return create_async_engine(
        config.database_url,
        echo=config.environment == "development" and config.log_level == "DEBUG",
        pool_pre_ping=True,
        pool_size=config.db_max_idle_connections,
        max_overflow=config.db_max_open_connections - config.db_max_idle_connections,
        pool_recycle=config.db_connection_max_lifetime_seconds,
        pool_timeout=config.db_timeout_seconds,
    )


engine = build_engine(settings)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency that provides a database session."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def store_operation(timeout: float | None = None) -> AsyncIterator[None]:
    """Bound a unit of store work by a time budget.

    Everything inside the block shares one budget. Driver errors are
    translated to the persistence taxonomy so callers never see raw
    SQLAlchemy exceptions.

    Args:
        timeout: Budget in seconds. Defaults to settings.db_timeout_seconds.

    Raises:
        StoreTimeoutError: If the block does not finish within the budget.
        PersistenceError: If the store raises.
    """
    try:
        async with asyncio.timeout(timeout or settings.db_timeout_seconds):
            yield
    except TimeoutError as exc:
        raise StoreTimeoutError from exc
    except SQLAlchemyError as exc:
        raise translate_db_error(exc) from exc


async def check_connection(bind: AsyncEngine) -> bool:
    """Ping the database.

    Returns:
        True if ``SELECT 1`` succeeded, False otherwise.
    """
    try:
        async with bind.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.error("Error while pinging database: %s", exc)
        return False
    logger.info("Pinged database successfully")
    return True
