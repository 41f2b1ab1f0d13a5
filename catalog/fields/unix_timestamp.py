"""
Timestamp columns stored as Unix seconds.

Author, book and alias-edge records keep their creation/update times as
BIGINT seconds since epoch; Python code always sees timezone-aware UTC
datetimes.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import BigInteger, TypeDecorator
from sqlmodel import Field


def utc_now() -> datetime:
    """Current time as an aware UTC datetime truncated to whole seconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


class UnixTimestampType(TypeDecorator):  # type: ignore[misc]
    """
    SQLAlchemy type that persists datetimes as integer Unix seconds.

    Naive datetimes are treated as UTC on the way in; values always come
    back as UTC-aware datetimes.
    """

    impl = BigInteger
    cache_ok = True

    def process_bind_param(
        self, value: datetime | None, dialect: Any
    ) -> int | None:
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return int(value.timestamp())

    def process_result_value(
        self, value: int | None, dialect: Any
    ) -> datetime | None:
        if value is None:
            return None
        return datetime.fromtimestamp(value, tz=timezone.utc)


def UnixTimestampField(
    *,
    default_factory: Any | None = utc_now,
    nullable: bool = False,
    index: bool = False,
    **kwargs: Any,
) -> datetime:
    """
    Create a SQLModel field backed by UnixTimestampType.

    Args:
        default_factory: Callable producing the default value; pass None to
            make the column default to NULL (requires nullable=True).
        nullable: Whether the column can be NULL.
        index: Whether to index the column.
        **kwargs: Additional Field arguments (description, etc.)

    Returns:
        A Field configured for Unix timestamp storage.

    Example:
        created_at: datetime = UnixTimestampField()
        deleted_at: datetime | None = UnixTimestampField(
            default_factory=None, nullable=True
        )
    """
    field_kwargs: dict[str, Any] = {
        "sa_type": UnixTimestampType(),
        "sa_column_kwargs": {"nullable": nullable, "index": index},
        **kwargs,
    }
    if default_factory is not None:
        field_kwargs["default_factory"] = default_factory
    else:
        field_kwargs["default"] = None

    return Field(**field_kwargs)
