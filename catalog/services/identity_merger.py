"""
Identity merging of duplicate authors.

When an author is renamed to a name another author already holds, the two
records denote the same person and are merged: every book of the renamed
author (the loser) moves to the existing author (the winner) along with
the loser's alias relations where the winner can take them, and the
loser is deleted. Unlike alias linking this is irreversible.

The merge runs inside the caller's transaction (``apply``) and publishes
its side effects only after commit (``publish``); ``merge`` does both.
"""

from dataclasses import dataclass, field
from typing import Any

from catalog.collaborators import run_best_effort
from catalog.constants import (
    AUTHOR_REMOVED_EVENT,
    AUTHOR_UPDATED_EVENT,
    ITEMS_UPDATED_EVENT,
)
from catalog.exceptions import ConflictError, NotFoundError
from catalog.logging import logger
from catalog.models.author import Author
from catalog.protocols import ImageCache, MetadataWriter, Notifier
from catalog.schemas.author import AuthorRead, MergeResult, dump_author
from catalog.services.alias_resolver import transfer_alias_links
from catalog.services.unit_of_work import (
    SessionFactory,
    UnitOfWork,
    load_book_snapshots,
    lock_authors,
    transaction,
)
from catalog.settings import app_settings


@dataclass
class MergeOutcome:
    """Committed-state facts a merge publishes after commit."""

    result: MergeResult
    winner: Author
    loser_snapshot: dict[str, Any]
    loser_had_image: bool
    book_snapshots: list[dict[str, Any]] = field(default_factory=list)
    relinked: list[Author] = field(default_factory=list)


class IdentityMerger:
    """
    Merges a duplicate author into the author that already holds its name.

    Args:
        session_factory: Factory of sessions for standalone merges.
        notifier: Receives items_updated, author_removed, author_updated.
        image_cache: Purged for the loser when it had an image.
        metadata_writer: Rewrites metadata of every reassigned book.
        scoped_to_library: Only consider authors of the renamed author's
            library as merge targets. Defaults to
            MERGE_LOOKUP_SCOPED_TO_LIBRARY.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        notifier: Notifier | None = None,
        image_cache: ImageCache | None = None,
        metadata_writer: MetadataWriter | None = None,
        scoped_to_library: bool | None = None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.image_cache = image_cache
        self.metadata_writer = metadata_writer
        self.scoped_to_library = (
            app_settings.MERGE_LOOKUP_SCOPED_TO_LIBRARY
            if scoped_to_library is None
            else scoped_to_library
        )

    def _holds_name(self, candidate: Author, author: Author, new_name: str) -> bool:
        if candidate.name != new_name:
            return False
        return (
            not self.scoped_to_library
            or candidate.library_id == author.library_id
        )

    async def find_merge_target(
        self, uow: UnitOfWork, author: Author, new_name: str
    ) -> Author | None:
        """
        Author that already holds ``new_name``, other than ``author``.

        Both ``author`` and the target are row-locked in ascending ID order,
        and the target is checked again once locked: a target renamed by a
        concurrent transaction in the meantime no longer counts. Without a
        target only ``author`` is locked.

        Raises:
            NotFoundError: If ``author`` was deleted concurrently.
        """
        library_id = author.library_id if self.scoped_to_library else None
        candidate = await uow.authors.get_by_name(
            new_name, library_id=library_id, exclude_id=author.id
        )
        if candidate is None:
            await lock_authors(uow, author.id)
            return None

        # One ascending pass over both rows, as in lock_authors
        locked = {
            author_id: await uow.authors.get_for_update(author_id)
            for author_id in sorted((author.id, candidate.id))
        }
        if locked[author.id] is None:
            raise NotFoundError(f"Author with ID {author.id} not found")
        target = locked[candidate.id]
        if target is None or not self._holds_name(
            target, locked[author.id], new_name
        ):
            logger.info(
                f'Author {candidate.id} no longer holds "{new_name}", renaming '
                f"author {author.id} without a merge"
            )
            return None
        return target

    async def apply(
        self, uow: UnitOfWork, loser: Author, winner: Author
    ) -> MergeOutcome:
        """
        Merge ``loser`` into ``winner`` inside an open transaction.

        Book links are rewritten before the loser is deleted, so nothing
        references the loser once the transaction commits.

        Raises:
            ConflictError: If both are the same author.
        """
        if loser.id == winner.id:
            raise ConflictError("Cannot merge an author into itself")

        logger.info(f'Merging author "{loser.name}" ({loser.id}) into "{winner.name}" ({winner.id})')

        book_ids = await uow.books.get_book_ids_for_author(loser.id)
        for book_id in book_ids:
            await uow.books.remove_link(book_id, loser.id)
            if not await uow.books.link_exists(book_id, winner.id):
                await uow.books.add_link(book_id, winner.id)

        relinked = await transfer_alias_links(uow, loser, winner)

        loser_id = loser.id
        loser_snapshot = dump_author(loser)
        loser_had_image = bool(loser.image_path)
        await uow.authors.delete(loser)

        num_books = await uow.books.count_for_author(winner.id)
        book_snapshots = await load_book_snapshots(uow, book_ids)

        return MergeOutcome(
            result=MergeResult(
                author=AuthorRead.from_author(winner, num_books),
                removed_author_id=loser_id,
                affected_book_ids=book_ids,
            ),
            winner=winner,
            loser_snapshot=loser_snapshot,
            loser_had_image=loser_had_image,
            book_snapshots=book_snapshots,
            relinked=relinked,
        )

    async def publish(self, outcome: MergeOutcome) -> None:
        """Run the post-commit side effects of a merge."""
        result = outcome.result

        if self.metadata_writer is not None:
            for book_id in result.affected_book_ids:
                await run_best_effort(
                    f"save metadata of book {book_id}",
                    self.metadata_writer.save_metadata(book_id),
                )

        if self.image_cache is not None and outcome.loser_had_image:
            await run_best_effort(
                f"purge image cache of author {result.removed_author_id}",
                self.image_cache.purge(result.removed_author_id),
            )

        if self.notifier is None:
            return

        if outcome.book_snapshots:
            await run_best_effort(
                f"notify {ITEMS_UPDATED_EVENT}",
                self.notifier.notify(ITEMS_UPDATED_EVENT, outcome.book_snapshots),
            )
        await run_best_effort(
            f"notify {AUTHOR_REMOVED_EVENT}",
            self.notifier.notify(AUTHOR_REMOVED_EVENT, outcome.loser_snapshot),
        )
        for author in outcome.relinked:
            await run_best_effort(
                f"notify {AUTHOR_UPDATED_EVENT} for author {author.id}",
                self.notifier.notify(AUTHOR_UPDATED_EVENT, dump_author(author)),
            )
        await run_best_effort(
            f"notify {AUTHOR_UPDATED_EVENT} for author {result.author.id}",
            self.notifier.notify(
                AUTHOR_UPDATED_EVENT, result.author.model_dump(mode="json")
            ),
        )

    async def merge(self, loser_id: int, winner_id: int) -> MergeResult:
        """
        Merge two authors in a transaction of their own.

        Raises:
            NotFoundError: If either author does not exist.
            ConflictError: If both IDs are the same.
        """
        async with transaction(self.session_factory) as uow:
            authors = await lock_authors(uow, loser_id, winner_id)
            outcome = await self.apply(uow, authors[loser_id], authors[winner_id])

        await self.publish(outcome)
        return outcome.result
