import asyncio
from typing import Any, AsyncIterator

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from catalog.logging import logger
from catalog.settings import app_settings


def engine_options() -> dict[str, Any]:
    """
    Engine keyword arguments for the configured database.

    SQLite runs without a connection pool, so the pool settings only
    apply to server databases.
    """
    if app_settings.is_sqlite:
        return {}
    return {
        "pool_size": app_settings.DB_POOL_SIZE,
        "max_overflow": app_settings.DB_MAX_OVERFLOW,
        "pool_recycle": app_settings.DB_POOL_RECYCLE,
        "pool_pre_ping": app_settings.DB_POOL_PRE_PING,
    }


engine: AsyncEngine = create_async_engine(
    app_settings.DATABASE_URL,
    echo=False,
    **engine_options(),
)
async_session = async_sessionmaker(
    engine, expire_on_commit=False, class_=AsyncSession
)


async def create_tables(bind: AsyncEngine | None = None) -> None:
    """
    Create every table registered on the SQLModel metadata.

    Args:
        bind: Engine to create the tables on. Defaults to the module engine.
    """
    # Register the table models on the metadata
    import catalog.models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def wait_and_init_db(
    retry_interval: int | None = None,
    max_retries: int | None = None,
) -> None:
    """
    Wait until the database is available, then create missing tables.

    Args:
        retry_interval: Time in seconds between retries.
            Defaults to app_settings.DB_INIT_RETRY_INTERVAL
        max_retries: Maximum number of retries before giving up.
            Defaults to app_settings.DB_INIT_MAX_RETRIES

    Raises:
        RuntimeError: If the database is still unreachable after the last
            attempt.
    """
    if retry_interval is None:
        retry_interval = app_settings.DB_INIT_RETRY_INTERVAL
    if max_retries is None:
        max_retries = app_settings.DB_INIT_MAX_RETRIES
    for attempt in range(max_retries):
        try:
            async with engine.connect() as conn:
                await conn.exec_driver_sql("SELECT 1")
            logger.info("Database is now ready.")
            await create_tables()
            return
        except OperationalError:
            logger.warning(
                f"Database not ready, retrying in {retry_interval} seconds... (Attempt {attempt + 1}/{max_retries})"
            )
            await asyncio.sleep(retry_interval)

    logger.error("Failed to connect to the database after multiple attempts.")
    raise RuntimeError("Database connection could not be established.")


async def get_session() -> AsyncIterator[AsyncSession]:
    """
    Get an asynchronous session from the session factory.

    Yields:
        AsyncSession: An asynchronous SQLAlchemy session.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except IntegrityError as ex:
            await session.rollback()
            logger.error(f"Database integrity error: {ex}")
            raise
        except SQLAlchemyError as ex:
            await session.rollback()
            logger.error(f"Database error: {ex}")
            raise
