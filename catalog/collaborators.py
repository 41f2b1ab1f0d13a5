"""
Default implementations of the notifier, image cache and metadata writer.

All three are invoked only after a state change has been committed. Their
failures must never be reported as a failure of that change, so services
call them through ``run_best_effort``.
"""

import asyncio
import os
from pathlib import Path
from typing import Any, Awaitable

from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from catalog.constants import AUTHOR_IMAGE_CACHE_PREFIX, METADATA_FILE_NAME
from catalog.logging import logger
from catalog.managers.websocket_connection_manager import (
    ConnectionManager,
    connection_manager,
)
from catalog.repositories.book_repository import BookAuthorRepository
from catalog.schemas.response import BroadcastDataModel
from catalog.settings import app_settings
from catalog.utils.file_io import write_json_file


async def run_best_effort(description: str, awaitable: Awaitable[Any]) -> bool:
    """
    Await a collaborator call, logging instead of raising on failure.

    Args:
        description: What the call does, for the log line.
        awaitable: The collaborator call.

    Returns:
        True if the call completed, False if it failed.
    """
    try:
        await awaitable
        return True
    except Exception as ex:
        logger.warning(
            f"Best-effort call failed ({description}): {ex}",
            extra={"exception_type": type(ex).__name__},
        )
        return False


class SocketNotifier:
    """Broadcasts change events to every websocket subscriber."""

    def __init__(self, manager: ConnectionManager = connection_manager):
        self.manager = manager

    async def notify(
        self, event: str, data: dict[str, Any] | list[dict[str, Any]]
    ) -> None:
        logger.debug(f"Broadcasting {event} to {len(self.manager.connections)} subscribers")
        await self.manager.broadcast(BroadcastDataModel(event=event, data=data))


class FileImageCache:
    """
    On-disk cache of resized author images.

    Cached files are named ``author_<id>_<variant>``; purging removes every
    variant of one author.
    """

    def __init__(self, cache_path: str | None = None):
        self.cache_path = Path(cache_path or app_settings.IMAGE_CACHE_PATH)

    def _purge(self, author_id: int) -> int:
        if not self.cache_path.is_dir():
            return 0
        removed = 0
        for path in self.cache_path.glob(
            f"{AUTHOR_IMAGE_CACHE_PREFIX}{author_id}_*"
        ):
            path.unlink(missing_ok=True)
            removed += 1
        return removed

    async def purge(self, author_id: int) -> None:
        removed = await asyncio.to_thread(self._purge, author_id)
        logger.debug(f"Purged {removed} cached image(s) of author {author_id}")


class FileMetadataWriter:
    """
    Writes ``<METADATA_PATH>/<book_id>/metadata.json`` for a book.

    Reads the book and its current author list in a fresh session, so it
    always reflects committed state.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        metadata_path: str | None = None,
    ):
        self.session_factory = session_factory
        self.metadata_path = metadata_path or app_settings.METADATA_PATH

    async def save_metadata(self, book_id: int) -> None:
        async with self.session_factory() as session:
            repo = BookAuthorRepository(session)
            books = await repo.get_books([book_id])
            if not books:
                logger.warning(f"Cannot save metadata, book {book_id} not found")
                return
            book = books[0]
            authors = await repo.get_authors_for_book(book_id)

        content = {
            "id": book.id,
            "title": book.title,
            "library_id": book.library_id,
            "authors": [author.name for author in authors],
        }
        file_path = os.path.join(
            self.metadata_path, str(book_id), METADATA_FILE_NAME
        )
        await asyncio.to_thread(write_json_file, file_path, content)
