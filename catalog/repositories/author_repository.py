"""
Repository for Author entity with alias-aware query methods.

Example:
    ```python
    from catalog.repositories.author_repository import AuthorRepository
    from catalog.storage.db import async_session

    async with async_session() as session:
        repo = AuthorRepository(session)
        author = await repo.get_by_name("Jane Doe", library_id="lib-1")
        aliases = await repo.get_direct_aliases(author.id)
    ```
"""

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from catalog.models.author import Author
from catalog.repositories.base import BaseRepository
from catalog.schemas.alias import AliasKind


class AuthorRepository(BaseRepository[Author]):
    """
    Repository for Author entity operations.

    Provides CRUD operations inherited from BaseRepository plus lookups
    used by alias resolution and identity merging.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize Author repository.

        Args:
            session: Database session for executing queries.
        """
        super().__init__(session, Author)

    async def get_by_name(
        self,
        name: str,
        library_id: str | None = None,
        exclude_id: int | None = None,
    ) -> Author | None:
        """
        Get author by exact name match.

        Args:
            name: Exact author name to search for.
            library_id: Restrict the lookup to one library; None searches
                every library.
            exclude_id: Author ID to ignore (typically the author being
                renamed).

        Returns:
            First matching author, None otherwise.
        """
        stmt = select(Author).where(Author.name == name)
        if library_id is not None:
            stmt = stmt.where(Author.library_id == library_id)
        if exclude_id is not None:
            stmt = stmt.where(Author.id != exclude_id)
        result = await self.session.exec(stmt.order_by(Author.id))
        return result.first()

    async def get_by_ids(self, ids: list[int]) -> list[Author]:
        """
        Get authors by primary keys, ordered by ID.

        Missing IDs are skipped.
        """
        if not ids:
            return []
        stmt = select(Author).where(col(Author.id).in_(ids)).order_by(Author.id)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def get_direct_aliases(self, origin_id: int) -> list[Author]:
        """
        Get simple aliases pointing at the given origin.

        Args:
            origin_id: ID of the origin author.

        Returns:
            Authors whose state is SimpleAlias(origin_id), ordered by ID.
        """
        stmt = (
            select(Author)
            .where(
                Author.alias_kind == AliasKind.SIMPLE,
                Author.alias_of_id == origin_id,
            )
            .order_by(Author.id)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def has_direct_aliases(self, origin_id: int) -> bool:
        """Check whether any simple alias points at the given origin."""
        stmt = select(Author.id).where(
            Author.alias_kind == AliasKind.SIMPLE,
            Author.alias_of_id == origin_id,
        )
        result = await self.session.exec(stmt)
        return result.first() is not None
