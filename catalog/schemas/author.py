"""Read models for authors as sent to API clients and subscribers."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from catalog.models.author import Author
from catalog.schemas.alias import AliasState


class AuthorSummary(BaseModel):  # type: ignore[misc]
    """Minimal author reference used in alias listings."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class AuthorRead(BaseModel):  # type: ignore[misc]
    """
    Full author snapshot.

    ``num_books`` is only filled in where the caller counted the author's
    books (update and merge notifications, single-author reads).
    """

    id: int
    name: str
    description: str | None = None
    asin: str | None = None
    image_path: str | None = None
    library_id: str
    alias_state: AliasState
    created_at: datetime
    updated_at: datetime
    num_books: int | None = None

    @classmethod
    def from_author(
        cls, author: Author, num_books: int | None = None
    ) -> "AuthorRead":
        return cls(
            id=author.id,
            name=author.name,
            description=author.description,
            asin=author.asin,
            image_path=author.image_path,
            library_id=author.library_id,
            alias_state=author.alias_state,
            created_at=author.created_at,
            updated_at=author.updated_at,
            num_books=num_books,
        )


class AuthorUpdateResult(BaseModel):  # type: ignore[misc]
    """Outcome of an author update; ``merged`` is set when it was merged away."""

    author: AuthorRead
    updated: bool = False
    merged: bool = False


class MergeResult(BaseModel):  # type: ignore[misc]
    """Outcome of an identity merge."""

    author: AuthorRead
    merged: bool = True
    removed_author_id: int
    affected_book_ids: list[int]


def dump_author(author: Author, num_books: int | None = None) -> dict[str, Any]:
    """JSON-ready author snapshot for notifications."""
    return AuthorRead.from_author(author, num_books).model_dump(mode="json")
