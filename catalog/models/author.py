from datetime import datetime

from sqlmodel import Field

from catalog.fields import UnixTimestampField
from catalog.models.base import BaseModel
from catalog.schemas.alias import (
    AliasKind,
    AliasState,
    CombinedAlias,
    Original,
    SimpleAlias,
)


class Author(BaseModel, table=True):
    """
    SQLModel representing a cataloged author identity.

    This is a clean data model without Active Record methods.
    Use AuthorRepository for all database operations.

    The alias state is persisted as a discriminator column plus an inline
    origin pointer that is only set for simple aliases. Read it through
    ``alias_state`` and change it only through the ``set_*`` methods so
    the two columns never disagree.

    Attributes:
        id: Primary key identifier for the author
        name: Display name of the author
        description: Free-form biography
        asin: Optional external catalog identifier
        image_path: Path of the author image on disk, if any
        library_id: Owning library (collection)
        alias_kind: Discriminator of the alias state
        alias_of_id: Origin author of a simple alias
        created_at: Creation time (UTC)
        updated_at: Last update time (UTC)
    """

    __table_args__ = {"extend_existing": True}

    id: int | None = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    description: str | None = None
    asin: str | None = None
    image_path: str | None = None
    library_id: str = Field(index=True)
    alias_kind: AliasKind = Field(default=AliasKind.ORIGINAL)
    alias_of_id: int | None = Field(
        default=None, foreign_key="author.id", index=True
    )
    created_at: datetime = UnixTimestampField()
    updated_at: datetime = UnixTimestampField()

    @property
    def alias_state(self) -> AliasState:
        """Alias state as a tagged variant."""
        if self.alias_kind == AliasKind.SIMPLE:
            return SimpleAlias(origin_id=self.alias_of_id)
        if self.alias_kind == AliasKind.COMBINED:
            return CombinedAlias()
        return Original()

    @property
    def is_original(self) -> bool:
        return self.alias_kind == AliasKind.ORIGINAL

    def set_original(self) -> None:
        self.alias_kind = AliasKind.ORIGINAL
        self.alias_of_id = None

    def set_simple_alias(self, origin_id: int) -> None:
        self.alias_kind = AliasKind.SIMPLE
        self.alias_of_id = origin_id

    def set_combined_alias(self) -> None:
        self.alias_kind = AliasKind.COMBINED
        self.alias_of_id = None
