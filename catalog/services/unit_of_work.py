"""
Transaction scope shared by the alias resolver, merger and commands.

Each mutating operation opens one session, runs inside ``session.begin()``
and gets all repositories bound to that session. Leaving the block
commits; an exception rolls everything back.

Example:
    ```python
    async with transaction(async_session) as uow:
        authors = await lock_authors(uow, origin_id, alias_id)
        ...
    ```
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from catalog.exceptions import NotFoundError
from catalog.fields import utc_now
from catalog.models.author import Author
from catalog.protocols import AliasEdgeStore, AuthorStore
from catalog.repositories.alias_repository import AliasEdgeRepository
from catalog.repositories.author_repository import AuthorRepository
from catalog.repositories.book_repository import BookAuthorRepository
from catalog.schemas.author import AuthorSummary
from catalog.schemas.book import BookRead

SessionFactory = async_sessionmaker[AsyncSession]


class UnitOfWork:
    """
    Repositories bound to one open transaction.

    Args:
        session: The open session.
        authors: Author store; defaults to an AuthorRepository on ``session``.
        edges: Edge store; defaults to an AliasEdgeRepository on ``session``.
    """

    def __init__(
        self,
        session: AsyncSession,
        authors: AuthorStore | None = None,
        edges: AliasEdgeStore | None = None,
    ):
        self.session = session
        self.authors: AuthorStore = authors or AuthorRepository(session)
        self.edges: AliasEdgeStore = edges or AliasEdgeRepository(session)
        self.books = BookAuthorRepository(session)

    async def save_author(self, author: Author) -> Author:
        """Persist author changes and bump its update time."""
        author.updated_at = utc_now()
        return await self.authors.update(author)


@asynccontextmanager
async def transaction(session_factory: SessionFactory) -> AsyncIterator[UnitOfWork]:
    """Open a session and a transaction around it."""
    async with session_factory() as session:
        async with session.begin():
            yield UnitOfWork(session)


@asynccontextmanager
async def read_only(session_factory: SessionFactory) -> AsyncIterator[UnitOfWork]:
    """Open a session for queries; nothing is committed."""
    async with session_factory() as session:
        yield UnitOfWork(session)


async def lock_authors(uow: UnitOfWork, *author_ids: int) -> dict[int, Author]:
    """
    Load and row-lock authors, in ascending ID order.

    A fixed lock order keeps two concurrent operations on the same pair of
    authors from deadlocking.

    Raises:
        NotFoundError: For the first requested ID (in argument order) that
            does not exist.
    """
    found: dict[int, Author] = {}
    for author_id in sorted(set(author_ids)):
        author = await uow.authors.get_for_update(author_id)
        if author is not None:
            found[author_id] = author

    for author_id in author_ids:
        if author_id not in found:
            raise NotFoundError(f"Author with ID {author_id} not found")
    return found


async def load_book_snapshots(
    uow: UnitOfWork, book_ids: list[int]
) -> list[dict[str, Any]]:
    """JSON-ready snapshots of books with their current author lists."""
    snapshots = []
    for book in await uow.books.get_books(book_ids):
        authors = await uow.books.get_authors_for_book(book.id)
        snapshots.append(
            BookRead(
                id=book.id,
                title=book.title,
                library_id=book.library_id,
                authors=[AuthorSummary.model_validate(a) for a in authors],
            ).model_dump(mode="json")
        )
    return snapshots
