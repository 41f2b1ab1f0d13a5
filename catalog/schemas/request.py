"""Request bodies of the author HTTP endpoints."""

from pydantic import BaseModel, Field


class AuthorUpdateRequest(BaseModel):  # type: ignore[misc]
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    asin: str | None = None
    image_path: str | None = Field(
        default=None, description="Ignored, images are managed separately"
    )


class AuthorIdsRequest(BaseModel):  # type: ignore[misc]
    ids: list[int] = Field(default_factory=list)


class AddAliasesRequest(BaseModel):  # type: ignore[misc]
    aliases: list[int] | None = None


class MakeAliasRequest(BaseModel):  # type: ignore[misc]
    alias_id: int | None = None


class SetOriginsRequest(BaseModel):  # type: ignore[misc]
    original_authors: list[int] | None = None


class UnlinkAliasRequest(BaseModel):  # type: ignore[misc]
    id: int
