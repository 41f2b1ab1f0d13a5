"""
Base model for all database tables with async relationship support.

SQLModel combined with SQLAlchemy's AsyncAttrs mixin, so lazy-loaded
relationships can be awaited through ``awaitable_attrs`` without
MissingGreenlet errors.
"""

from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlmodel import SQLModel


class BaseModel(SQLModel, AsyncAttrs):  # type: ignore[misc]
    """
    Base model for all database tables.

    All table models in the application inherit from this class to get
    consistent async behavior.
    """

    pass
