"""Repository for books and book ↔ author associations."""

from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from catalog.models.author import Author
from catalog.models.book import Book, BookAuthor
from catalog.repositories.base import BaseRepository


class BookAuthorRepository(BaseRepository[BookAuthor]):
    """
    Repository for BookAuthor associations.

    Also answers the book-side reads needed when an author's name or
    identity changes.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize association repository.

        Args:
            session: Database session for executing queries.
        """
        super().__init__(session, BookAuthor)

    async def get_book_ids_for_author(self, author_id: int) -> list[int]:
        """IDs of every book associated with the author, ascending."""
        stmt = (
            select(BookAuthor.book_id)
            .where(BookAuthor.author_id == author_id)
            .order_by(BookAuthor.book_id)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def count_for_author(self, author_id: int) -> int:
        """Number of books associated with the author."""
        stmt = select(func.count()).select_from(BookAuthor).where(
            BookAuthor.author_id == author_id
        )
        result = await self.session.exec(stmt)
        return result.one()

    async def link_exists(self, book_id: int, author_id: int) -> bool:
        return await self.session.get(BookAuthor, (book_id, author_id)) is not None

    async def add_link(self, book_id: int, author_id: int) -> BookAuthor:
        """Associate an author with a book."""
        return await self.create(BookAuthor(book_id=book_id, author_id=author_id))

    async def remove_link(self, book_id: int, author_id: int) -> None:
        """Remove a book ↔ author association if present."""
        link = await self.session.get(BookAuthor, (book_id, author_id))
        if link is not None:
            await self.delete(link)

    async def get_books(self, book_ids: list[int]) -> list[Book]:
        """Books by primary keys, ordered by ID."""
        if not book_ids:
            return []
        stmt = select(Book).where(col(Book.id).in_(book_ids)).order_by(Book.id)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_authors_for_book(self, book_id: int) -> list[Author]:
        """Authors of one book in association order."""
        stmt = (
            select(Author)
            .join(BookAuthor, col(BookAuthor.author_id) == col(Author.id))
            .where(BookAuthor.book_id == book_id)
            .order_by(BookAuthor.created_at, Author.id)
        )
        result = await self.session.exec(stmt)
        return list(result.all())
