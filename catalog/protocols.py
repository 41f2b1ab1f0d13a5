"""
Protocol classes for the stores and collaborators the services depend on.

Protocols define interfaces without requiring explicit inheritance, so
tests can pass mocks and deployments can swap implementations.

Example:
    ```python
    from catalog.protocols import Notifier


    async def announce(notifier: Notifier, author: Author) -> None:
        await notifier.notify("author_updated", dump_author(author))
    ```
"""

from typing import Any, Protocol, runtime_checkable

from catalog.models.alias import AuthorAlias
from catalog.models.author import Author


@runtime_checkable
class AuthorStore(Protocol):
    """Data access for author records."""

    async def get_by_id(self, id: int) -> Author | None: ...

    async def get_for_update(self, id: int) -> Author | None: ...

    async def get_by_name(
        self,
        name: str,
        library_id: str | None = None,
        exclude_id: int | None = None,
    ) -> Author | None: ...

    async def get_all(self, **filters: Any) -> list[Author]: ...

    async def get_by_ids(self, ids: list[int]) -> list[Author]: ...

    async def get_direct_aliases(self, origin_id: int) -> list[Author]: ...

    async def has_direct_aliases(self, origin_id: int) -> bool: ...

    async def create(self, entity: Author) -> Author: ...

    async def update(self, entity: Author) -> Author: ...

    async def delete(self, entity: Author) -> None: ...


@runtime_checkable
class AliasEdgeStore(Protocol):
    """Data access for combined-alias edges."""

    async def find_edges(
        self, origin_id: int | None = None, alias_id: int | None = None
    ) -> list[AuthorAlias]: ...

    async def has_edges(
        self, origin_id: int | None = None, alias_id: int | None = None
    ) -> bool: ...

    async def edge_exists(self, origin_id: int, alias_id: int) -> bool: ...

    async def insert_edge(self, origin_id: int, alias_id: int) -> AuthorAlias: ...

    async def delete_edges(
        self, origin_id: int | None = None, alias_id: int | None = None
    ) -> list[AuthorAlias]: ...


@runtime_checkable
class Notifier(Protocol):
    """
    Fire-and-forget broadcast of committed changes.

    Implementations must not raise; a failed broadcast is logged and
    dropped.
    """

    async def notify(
        self, event: str, data: dict[str, Any] | list[dict[str, Any]]
    ) -> None: ...


@runtime_checkable
class ImageCache(Protocol):
    """Cache of resized author images."""

    async def purge(self, author_id: int) -> None: ...


@runtime_checkable
class MetadataWriter(Protocol):
    """Writer of the per-book metadata files kept next to the media."""

    async def save_metadata(self, book_id: int) -> None: ...
