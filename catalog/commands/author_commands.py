"""
Commands for Author business operations.

Alias transitions live in AliasResolver and duplicate merging in
IdentityMerger; these commands cover the rest of the author lifecycle
(create, read, update with rename propagation, delete, image removal) and
call into the merger where a rename reveals a duplicate.

Example:
    ```python
    command = UpdateAuthorCommand(async_session, merger, notifier=notifier)
    result = await command.execute(UpdateAuthorInput(id=4, name="Jane Doe"))
    if result.merged:
        print(f"merged into {result.author.id}")
    ```
"""

import asyncio
from typing import Any

from pydantic import BaseModel, Field

from catalog.collaborators import run_best_effort
from catalog.commands.base import BaseCommand
from catalog.constants import (
    AUTHOR_REMOVED_EVENT,
    AUTHOR_UPDATED_EVENT,
    ITEMS_UPDATED_EVENT,
)
from catalog.exceptions import ConflictError, NotFoundError, ValidationError
from catalog.logging import logger
from catalog.models.author import Author
from catalog.protocols import ImageCache, MetadataWriter, Notifier
from catalog.schemas.author import AuthorRead, AuthorUpdateResult, dump_author
from catalog.services.alias_resolver import release_alias_links
from catalog.services.identity_merger import IdentityMerger, MergeOutcome
from catalog.services.unit_of_work import (
    SessionFactory,
    load_book_snapshots,
    lock_authors,
    read_only,
    transaction,
)
from catalog.utils.file_io import remove_file


# ============================================================================
# Input Models
# ============================================================================


class CreateAuthorInput(BaseModel):  # type: ignore[misc]
    """Input model for creating an author."""

    name: str = Field(..., min_length=1, description="Author name")
    library_id: str = Field(..., min_length=1, description="Owning library")
    description: str | None = None
    asin: str | None = None


class UpdateAuthorInput(BaseModel):  # type: ignore[misc]
    """Input model for updating an author; None leaves a field unchanged."""

    id: int = Field(..., description="Author ID to update")
    name: str | None = Field(default=None, min_length=1)
    description: str | None = None
    asin: str | None = None
    image_path: str | None = Field(
        default=None, description="Not updatable here, ignored"
    )


# ============================================================================
# Side-effect helpers
# ============================================================================


async def _notify(
    notifier: Notifier | None,
    event: str,
    data: dict[str, Any] | list[dict[str, Any]],
) -> None:
    if notifier is not None:
        await run_best_effort(f"notify {event}", notifier.notify(event, data))


async def _save_metadata(
    metadata_writer: MetadataWriter | None, book_ids: list[int]
) -> None:
    if metadata_writer is None:
        return
    for book_id in book_ids:
        await run_best_effort(
            f"save metadata of book {book_id}",
            metadata_writer.save_metadata(book_id),
        )


# ============================================================================
# Commands
# ============================================================================


class GetAuthorCommand(BaseCommand[int, AuthorRead]):
    """Command to read one author together with its book count."""

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    async def execute(self, author_id: int) -> AuthorRead:
        """
        Raises:
            NotFoundError: If author not found.
        """
        async with read_only(self.session_factory) as uow:
            author = await uow.authors.get_by_id(author_id)
            if author is None:
                raise NotFoundError(f"Author with ID {author_id} not found")
            num_books = await uow.books.count_for_author(author_id)
            return AuthorRead.from_author(author, num_books)


class CreateAuthorCommand(BaseCommand[CreateAuthorInput, Author]):
    """
    Command to create a new author.

    New authors always start in the Original alias state.
    """

    def __init__(self, session_factory: SessionFactory):
        self.session_factory = session_factory

    async def execute(self, input_data: CreateAuthorInput) -> Author:
        """
        Execute command to create author.

        Returns:
            Created author with generated ID.

        Raises:
            ConflictError: If the library already has an author with the
                same name. Names are compared exactly, the same way a
                rename decides whether to merge.
        """
        async with transaction(self.session_factory) as uow:
            existing = await uow.authors.get_by_name(
                input_data.name, library_id=input_data.library_id
            )
            if existing:
                raise ConflictError(
                    f"Author with name '{input_data.name}' already exists"
                )
            author = await uow.authors.create(Author(**input_data.model_dump()))

        logger.info(f'Created author "{author.name}" ({author.id})')
        return author


class UpdateAuthorCommand(BaseCommand[UpdateAuthorInput, AuthorUpdateResult]):
    """
    Command to update an author.

    A rename to a name that another author already holds merges this
    author into that one (see IdentityMerger). Any other rename is
    propagated to the metadata of the author's books.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        merger: IdentityMerger,
        notifier: Notifier | None = None,
        metadata_writer: MetadataWriter | None = None,
    ):
        self.session_factory = session_factory
        self.merger = merger
        self.notifier = notifier
        self.metadata_writer = metadata_writer

    async def execute(self, input_data: UpdateAuthorInput) -> AuthorUpdateResult:
        """
        Execute command to update author.

        Returns:
            The updated author, or the author it was merged into.

        Raises:
            NotFoundError: If author not found.
        """
        if input_data.image_path is not None:
            logger.warning("Updating local author image_path is not supported")

        outcome: MergeOutcome | None = None
        changed = False
        book_ids: list[int] = []
        book_snapshots: list[dict[str, Any]] = []

        async with transaction(self.session_factory) as uow:
            author = await uow.authors.get_by_id(input_data.id)
            if author is None:
                raise NotFoundError(f"Author with ID {input_data.id} not found")
            name_update = (
                input_data.name is not None and input_data.name != author.name
            )

            # find_merge_target takes the row locks for a rename
            if name_update:
                existing = await self.merger.find_merge_target(
                    uow, author, input_data.name
                )
                if existing is not None:
                    outcome = await self.merger.apply(uow, author, existing)
            else:
                await lock_authors(uow, author.id)

            if outcome is None:
                for field_name in ("name", "description", "asin"):
                    value = getattr(input_data, field_name)
                    if value is not None and value != getattr(author, field_name):
                        setattr(author, field_name, value)
                        changed = True

                if changed:
                    await uow.save_author(author)
                    if name_update:
                        book_ids = await uow.books.get_book_ids_for_author(author.id)
                        book_snapshots = await load_book_snapshots(uow, book_ids)
                num_books = await uow.books.count_for_author(author.id)

        if outcome is not None:
            await self.merger.publish(outcome)
            return AuthorUpdateResult(author=outcome.result.author, merged=True)

        if changed:
            logger.info(f"Updated author {author.id}")
            await _save_metadata(self.metadata_writer, book_ids)
            if book_snapshots:
                await _notify(self.notifier, ITEMS_UPDATED_EVENT, book_snapshots)
            await _notify(
                self.notifier, AUTHOR_UPDATED_EVENT, dump_author(author, num_books)
            )

        return AuthorUpdateResult(
            author=AuthorRead.from_author(author, num_books), updated=changed
        )


class DeleteAuthorsCommand(BaseCommand[list[int], list[int]]):
    """
    Command to delete authors.

    Each author is deleted in its own transaction, in order. A missing ID
    stops the command; authors deleted before it stay deleted.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        notifier: Notifier | None = None,
        image_cache: ImageCache | None = None,
        metadata_writer: MetadataWriter | None = None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.image_cache = image_cache
        self.metadata_writer = metadata_writer

    async def execute(self, author_ids: list[int]) -> list[int]:
        """
        Execute command to delete authors.

        Returns:
            IDs of the deleted authors.

        Raises:
            ValidationError: If no IDs are given.
            NotFoundError: If an author does not exist.
        """
        if not author_ids:
            raise ValidationError("Missing author ids")

        deleted = []
        for author_id in author_ids:
            await self._delete_one(author_id)
            deleted.append(author_id)
        return deleted

    async def _delete_one(self, author_id: int) -> None:
        async with transaction(self.session_factory) as uow:
            author = (await lock_authors(uow, author_id))[author_id]
            demoted = await release_alias_links(uow, author)

            book_ids = await uow.books.get_book_ids_for_author(author_id)
            for book_id in book_ids:
                await uow.books.remove_link(book_id, author_id)

            snapshot = dump_author(author)
            had_image = bool(author.image_path)
            await uow.authors.delete(author)
            book_snapshots = await load_book_snapshots(uow, book_ids)

        logger.info(f'Removed author "{snapshot["name"]}" ({author_id})')

        if had_image and self.image_cache is not None:
            await run_best_effort(
                f"purge image cache of author {author_id}",
                self.image_cache.purge(author_id),
            )
        await _save_metadata(self.metadata_writer, book_ids)
        await _notify(self.notifier, AUTHOR_REMOVED_EVENT, snapshot)
        for alias in demoted:
            await _notify(self.notifier, AUTHOR_UPDATED_EVENT, dump_author(alias))
        if book_snapshots:
            await _notify(self.notifier, ITEMS_UPDATED_EVENT, book_snapshots)


class RemoveAuthorImageCommand(BaseCommand[int, AuthorRead]):
    """Command to remove an author's image and its cached variants."""

    def __init__(
        self,
        session_factory: SessionFactory,
        notifier: Notifier | None = None,
        image_cache: ImageCache | None = None,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.image_cache = image_cache

    async def execute(self, author_id: int) -> AuthorRead:
        """
        Raises:
            NotFoundError: If author not found.
            ValidationError: If the author has no image.
        """
        async with transaction(self.session_factory) as uow:
            author = (await lock_authors(uow, author_id))[author_id]
            if not author.image_path:
                raise ValidationError("Author has no image path set")
            image_path = author.image_path
            author.image_path = None
            await uow.save_author(author)
            num_books = await uow.books.count_for_author(author_id)

        logger.info(f'Removed image of author "{author.name}" at "{image_path}"')

        if self.image_cache is not None:
            await run_best_effort(
                f"purge image cache of author {author_id}",
                self.image_cache.purge(author_id),
            )
        await run_best_effort(
            f"remove image file {image_path}",
            asyncio.to_thread(remove_file, image_path),
        )
        snapshot = AuthorRead.from_author(author, num_books)
        await _notify(
            self.notifier, AUTHOR_UPDATED_EVENT, snapshot.model_dump(mode="json")
        )
        return snapshot
