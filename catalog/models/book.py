from datetime import datetime

from sqlmodel import Field

from catalog.fields import UnixTimestampField
from catalog.models.base import BaseModel


class Book(BaseModel, table=True):
    """
    A cataloged book.

    Attributes:
        id: Primary key identifier for the book
        title: Book title
        library_id: Owning library (collection)
        created_at: Creation time (UTC)
        updated_at: Last update time (UTC)
    """

    __table_args__ = {"extend_existing": True}

    id: int | None = Field(default=None, primary_key=True)
    title: str
    library_id: str = Field(index=True)
    created_at: datetime = UnixTimestampField()
    updated_at: datetime = UnixTimestampField()


class BookAuthor(BaseModel, table=True):
    """Association between a book and one of its authors."""

    __tablename__ = "book_author"
    __table_args__ = {"extend_existing": True}

    book_id: int = Field(foreign_key="book.id", primary_key=True)
    author_id: int = Field(foreign_key="author.id", primary_key=True)
    created_at: datetime = UnixTimestampField()
