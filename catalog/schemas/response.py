from typing import Any

from pydantic import BaseModel, Field


class BroadcastDataModel(BaseModel):  # type: ignore[misc]
    """
    Change notification pushed to every websocket subscriber.

    Attributes:
        event: Event name (author_updated, author_removed, items_updated).
        data: Snapshot of the affected entity, or a list of snapshots.
    """

    event: str = Field(frozen=True)
    data: dict[str, Any] | list[dict[str, Any]]


class DeletedAuthorsModel(BaseModel):  # type: ignore[misc]
    """IDs of the authors removed by a delete request, in request order."""

    deleted: list[int]
