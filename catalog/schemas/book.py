from pydantic import BaseModel

from catalog.schemas.author import AuthorSummary


class BookRead(BaseModel):  # type: ignore[misc]
    """Book snapshot with its current author list."""

    id: int
    title: str
    library_id: str
    authors: list[AuthorSummary]
