"""
Repository for combined-alias edges.

Edges are only ever written for authors in the combined alias state; the
alias resolver owns the state column and keeps both in step.
"""

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from catalog.models.alias import AuthorAlias
from catalog.repositories.base import BaseRepository


class AliasEdgeRepository(BaseRepository[AuthorAlias]):
    """Repository for AuthorAlias edge operations."""

    def __init__(self, session: AsyncSession):
        """
        Initialize edge repository.

        Args:
            session: Database session for executing queries.
        """
        super().__init__(session, AuthorAlias)

    async def find_edges(
        self, origin_id: int | None = None, alias_id: int | None = None
    ) -> list[AuthorAlias]:
        """
        Get edges filtered by origin and/or alias.

        Args:
            origin_id: Only edges from this origin.
            alias_id: Only edges to this alias.

        Returns:
            Matching edges in creation order.
        """
        stmt = select(AuthorAlias)
        if origin_id is not None:
            stmt = stmt.where(AuthorAlias.origin_id == origin_id)
        if alias_id is not None:
            stmt = stmt.where(AuthorAlias.alias_id == alias_id)
        stmt = stmt.order_by(
            AuthorAlias.created_at, AuthorAlias.origin_id, AuthorAlias.alias_id
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def has_edges(
        self, origin_id: int | None = None, alias_id: int | None = None
    ) -> bool:
        """Check whether at least one edge matches the filters."""
        stmt = select(AuthorAlias)
        if origin_id is not None:
            stmt = stmt.where(AuthorAlias.origin_id == origin_id)
        if alias_id is not None:
            stmt = stmt.where(AuthorAlias.alias_id == alias_id)
        result = await self.session.exec(stmt.limit(1))
        return result.first() is not None

    async def edge_exists(self, origin_id: int, alias_id: int) -> bool:
        """Check whether the (origin, alias) edge exists."""
        return await self.session.get(AuthorAlias, (origin_id, alias_id)) is not None

    async def insert_edge(self, origin_id: int, alias_id: int) -> AuthorAlias:
        """
        Insert the (origin, alias) edge unless it already exists.

        Returns:
            The new or existing edge.
        """
        existing = await self.session.get(AuthorAlias, (origin_id, alias_id))
        if existing is not None:
            return existing
        return await self.create(AuthorAlias(origin_id=origin_id, alias_id=alias_id))

    async def delete_edges(
        self, origin_id: int | None = None, alias_id: int | None = None
    ) -> list[AuthorAlias]:
        """
        Delete edges matching the filters.

        At least one filter is required so a call can never wipe the table.

        Returns:
            The deleted edges.

        Raises:
            ValueError: If neither filter is given.
        """
        if origin_id is None and alias_id is None:
            raise ValueError("delete_edges requires origin_id or alias_id")

        edges = await self.find_edges(origin_id=origin_id, alias_id=alias_id)
        for edge in edges:
            await self.session.delete(edge)
        if edges:
            await self.session.flush()
        return edges
