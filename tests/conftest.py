"""
Pytest configuration and fixtures for testing.

This module provides shared fixtures for the database, mocked
collaborators and seeded authors and books.
"""

import os
import tempfile
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

# Set required environment variables for testing before importing catalog modules
_TMP_DIR = tempfile.mkdtemp(prefix="catalog-tests-")
os.environ.setdefault("DB_USER", "test-user")
os.environ.setdefault("DB_PASSWORD", "test-password")
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOG_FILE_PATH", os.path.join(_TMP_DIR, "errors.log"))
os.environ.setdefault("IMAGE_CACHE_PATH", os.path.join(_TMP_DIR, "cache"))
os.environ.setdefault("METADATA_PATH", os.path.join(_TMP_DIR, "items"))

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import select  # noqa: E402
from sqlmodel.ext.asyncio.session import AsyncSession  # noqa: E402

from catalog.models import Author, AuthorAlias, Book, BookAuthor  # noqa: E402
from catalog.storage.db import create_tables  # noqa: E402


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine with all tables, one per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory bound to the test engine."""
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )


@pytest.fixture
def notifier():
    """
    Mock notifier recording every notification.

    Returns:
        AsyncMock: ``notifier.notify`` is awaited with (event, data).
    """
    return AsyncMock()


@pytest.fixture
def image_cache():
    """Mock image cache."""
    return AsyncMock()


@pytest.fixture
def metadata_writer():
    """Mock metadata writer."""
    return AsyncMock()


@pytest.fixture
def make_author(session_factory):
    """
    Factory fixture that inserts an author and returns it.

    Example:
        author = await make_author("Jane Doe", image_path="/img/jane.jpg")
    """

    async def _make(name: str, library_id: str = "lib-1", **kwargs) -> Author:
        async with session_factory() as session:
            author = Author(name=name, library_id=library_id, **kwargs)
            session.add(author)
            await session.commit()
            await session.refresh(author)
            return author

    return _make


@pytest.fixture
def make_book(session_factory):
    """
    Factory fixture that inserts a book linked to the given authors.

    Example:
        book = await make_book("Dune", [author.id])
    """

    async def _make(
        title: str, author_ids: list[int], library_id: str = "lib-1"
    ) -> Book:
        async with session_factory() as session:
            book = Book(title=title, library_id=library_id)
            session.add(book)
            await session.flush()
            for author_id in author_ids:
                session.add(BookAuthor(book_id=book.id, author_id=author_id))
            await session.commit()
            await session.refresh(book)
            return book

    return _make


@pytest.fixture
def fetch_author(session_factory):
    """Factory fixture that reloads an author from the database."""

    async def _fetch(author_id: int) -> Author | None:
        async with session_factory() as session:
            return await session.get(Author, author_id)

    return _fetch


@pytest.fixture
def fetch_edges(session_factory):
    """Factory fixture returning every alias edge as (origin, alias) pairs."""

    async def _fetch() -> set[tuple[int, int]]:
        async with session_factory() as session:
            result = await session.exec(select(AuthorAlias))
            return {(e.origin_id, e.alias_id) for e in result.all()}

    return _fetch


@pytest.fixture
def fetch_book_authors(session_factory):
    """Factory fixture returning the author IDs linked to a book."""

    async def _fetch(book_id: int) -> list[int]:
        async with session_factory() as session:
            result = await session.exec(
                select(BookAuthor.author_id)
                .where(BookAuthor.book_id == book_id)
                .order_by(BookAuthor.author_id)
            )
            return list(result.all())

    return _fetch
