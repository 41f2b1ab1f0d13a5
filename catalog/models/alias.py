from datetime import datetime

from sqlmodel import Field

from catalog.fields import UnixTimestampField
from catalog.models.base import BaseModel


class AuthorAlias(BaseModel, table=True):
    """
    Edge linking a combined alias to one of its origin authors.

    Only authors in the combined alias state have edges as ``alias_id``.
    The composite primary key makes every (origin, alias) pair unique.

    Attributes:
        origin_id: The origin (original) author
        alias_id: The combined alias author
        created_at: When the link was created (UTC)
    """

    __tablename__ = "author_alias"
    __table_args__ = {"extend_existing": True}

    origin_id: int = Field(foreign_key="author.id", primary_key=True)
    alias_id: int = Field(foreign_key="author.id", primary_key=True)
    created_at: datetime = UnixTimestampField()
