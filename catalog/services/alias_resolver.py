"""
Alias resolution: the author alias state machine.

An author is Original, SimpleAlias(origin) or CombinedAlias (origins kept
as edges). The resolver is the only writer of alias state and keeps these
rules true in every committed state:

- an origin is always Original when it gets linked (no alias chains);
- a combined alias has at least one edge, simple aliases and originals
  have none as alias;
- removing the last edge of a combined alias demotes it to Original;
- an author is never an alias of itself.

Every mutating operation validates before writing and runs in a single
transaction; subscribers are notified only after commit.

Example:
    ```python
    resolver = AliasResolver(async_session, notifier=SocketNotifier())
    await resolver.link_alias(origin_id=1, alias_id=2)   # 2 -> SimpleAlias(1)
    await resolver.link_alias(origin_id=3, alias_id=2)   # 2 -> CombinedAlias
    origins = await resolver.get_origins(2)              # [author 1, author 3]
    ```
"""

from catalog.collaborators import run_best_effort
from catalog.constants import AUTHOR_UPDATED_EVENT
from catalog.exceptions import (
    ConflictError,
    NotApplicableError,
    NotFoundError,
    ValidationError,
)
from catalog.logging import logger
from catalog.models.author import Author
from catalog.protocols import Notifier
from catalog.schemas.alias import CombinedAlias, Original, SimpleAlias
from catalog.schemas.author import dump_author
from catalog.services.unit_of_work import (
    SessionFactory,
    UnitOfWork,
    lock_authors,
    read_only,
    transaction,
)


async def release_alias_links(uow: UnitOfWork, author: Author) -> list[Author]:
    """
    Remove every alias relation of an author that is about to be deleted.

    Edges from or to the author are deleted, simple aliases pointing at it
    are demoted, and combined aliases left without edges are demoted.

    Args:
        uow: Open transaction.
        author: The author being removed.

    Returns:
        Authors demoted to Original, for notification after commit.
    """
    demoted: list[Author] = []

    outgoing = await uow.edges.delete_edges(origin_id=author.id)
    for alias_id in sorted({edge.alias_id for edge in outgoing}):
        if await uow.edges.has_edges(alias_id=alias_id):
            continue
        alias = await uow.authors.get_for_update(alias_id)
        if alias is not None:
            alias.set_original()
            demoted.append(await uow.save_author(alias))

    for alias in await uow.authors.get_direct_aliases(author.id):
        alias.set_original()
        demoted.append(await uow.save_author(alias))

    await uow.edges.delete_edges(alias_id=author.id)
    return demoted


async def transfer_alias_links(
    uow: UnitOfWork, loser: Author, winner: Author
) -> list[Author]:
    """
    Move the alias relations of a merged-away author to the one it merges into.

    Relations between the two authors are dropped first, which can turn
    ``winner`` back into an Original. An Original ``winner`` then takes over
    the simple aliases of ``loser`` and its edges to combined aliases.
    Whatever is left is released as on deletion (see release_alias_links).

    Args:
        uow: Open transaction with both authors locked.
        loser: The author being merged away.
        winner: The author that stays.

    Returns:
        Authors other than ``winner`` whose alias state or origins changed.
    """
    changed: dict[int, Author] = {}

    if winner.alias_of_id == loser.id:
        winner.set_original()
        await uow.save_author(winner)
    if await uow.edges.delete_edges(origin_id=loser.id, alias_id=winner.id):
        if not await uow.edges.has_edges(alias_id=winner.id):
            winner.set_original()
        await uow.save_author(winner)

    if winner.is_original:
        for alias in await uow.authors.get_direct_aliases(loser.id):
            alias.set_simple_alias(winner.id)
            changed[alias.id] = await uow.save_author(alias)

        for edge in await uow.edges.delete_edges(origin_id=loser.id):
            await uow.edges.insert_edge(winner.id, edge.alias_id)
            alias = await uow.authors.get_by_id(edge.alias_id)
            if alias is not None:
                changed[alias.id] = alias

    for author in await release_alias_links(uow, loser):
        changed[author.id] = author

    if changed:
        logger.info(
            f"Moved alias relations of author {loser.id} to {winner.id}: "
            f"{sorted(changed)}"
        )
    return [changed[author_id] for author_id in sorted(changed)]


class AliasResolver:
    """
    Validates and applies alias transitions and answers alias queries.

    Args:
        session_factory: Factory of sessions; each operation opens its own.
        notifier: Receives ``author_updated`` for every author whose alias
            state changed. Optional.
    """

    def __init__(
        self, session_factory: SessionFactory, notifier: Notifier | None = None
    ):
        self.session_factory = session_factory
        self.notifier = notifier

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_origin(origin: Author, alias: Author) -> None:
        if origin.id == alias.id:
            raise ConflictError(f"{alias.name} cannot be an alias of itself.")
        if not origin.is_original:
            raise ConflictError(f"{origin.name} is an alias of other author.")

    @staticmethod
    async def _check_not_an_origin(uow: UnitOfWork, alias: Author) -> None:
        if await uow.edges.has_edges(
            origin_id=alias.id
        ) or await uow.authors.has_direct_aliases(alias.id):
            raise ConflictError(
                f"{alias.name} is an original author of other alias."
            )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def _link(self, uow: UnitOfWork, origin: Author, alias: Author) -> bool:
        """Apply one origin -> alias link. Returns True if anything changed."""
        self._check_origin(origin, alias)
        state = alias.alias_state

        if isinstance(state, Original):
            await self._check_not_an_origin(uow, alias)
            alias.set_simple_alias(origin.id)
            await uow.save_author(alias)
            return True

        if isinstance(state, CombinedAlias):
            if await uow.edges.edge_exists(origin.id, alias.id):
                return False
            await uow.edges.insert_edge(origin.id, alias.id)
            await uow.save_author(alias)
            return True

        if state.origin_id == origin.id:
            return False

        # Second origin for a simple alias: promote to combined
        await uow.edges.insert_edge(state.origin_id, alias.id)
        await uow.edges.insert_edge(origin.id, alias.id)
        alias.set_combined_alias()
        await uow.save_author(alias)
        return True

    async def link_alias(self, origin_id: int, alias_id: int) -> Author:
        """
        Link one alias to one origin.

        Args:
            origin_id: The origin author; must be Original.
            alias_id: The author that denotes the same person.

        Returns:
            The alias author after the transition.

        Raises:
            NotFoundError: If either author does not exist.
            ConflictError: If the origin is an alias, the alias is itself an
                origin of other aliases, or both IDs are the same.
        """
        async with transaction(self.session_factory) as uow:
            authors = await lock_authors(uow, origin_id, alias_id)
            alias = authors[alias_id]
            changed = await self._link(uow, authors[origin_id], alias)

        if changed:
            logger.info(
                f"Linked alias {alias_id} to origin {origin_id}, "
                f"alias is now {alias.alias_kind.value}"
            )
            await self._notify_updated([alias])
        return alias

    async def link_alias_batch(
        self, origin_id: int, alias_ids: list[int]
    ) -> list[Author]:
        """
        Link several aliases to one origin, in order.

        Every alias is linked in its own transaction. The first failure is
        raised and the remaining IDs are not processed; aliases linked
        before it stay linked.

        Raises:
            ValidationError: If no alias IDs are given.
        """
        if not alias_ids:
            raise ValidationError("Missing alias ids")

        linked = []
        for alias_id in alias_ids:
            linked.append(await self.link_alias(origin_id, alias_id))
        return linked

    async def set_origins(self, alias_id: int, origin_ids: list[int]) -> Author:
        """
        Set the origins of an alias.

        - Original alias, one origin: becomes SimpleAlias(origin).
        - Original alias, several origins: becomes CombinedAlias with one
          edge per origin.
        - Aliased author, one origin: same as link_alias(origin, alias).
        - Aliased author, several origins: becomes CombinedAlias; a simple
          alias pointer is migrated into an edge, then one edge per
          requested origin is added.

        Existing origins are never removed. Duplicate IDs are ignored.
        All requested origins are validated before anything is written.

        Raises:
            ValidationError: If no origin IDs are given.
            NotFoundError: If the alias or an origin does not exist.
            ConflictError: If an origin is not Original, the alias is one
                of the origins, or an Original alias is itself an origin.
        """
        if not origin_ids:
            raise ValidationError("Missing original authors")
        requested = list(dict.fromkeys(origin_ids))

        async with transaction(self.session_factory) as uow:
            authors = await lock_authors(uow, alias_id, *requested)
            alias = authors[alias_id]
            origins = [authors[origin_id] for origin_id in requested]
            for origin in origins:
                self._check_origin(origin, alias)

            state = alias.alias_state
            if len(origins) == 1:
                changed = await self._link(uow, origins[0], alias)
            else:
                changed = not isinstance(state, CombinedAlias)
                if isinstance(state, Original):
                    await self._check_not_an_origin(uow, alias)
                elif isinstance(state, SimpleAlias):
                    await uow.edges.insert_edge(state.origin_id, alias.id)
                for origin in origins:
                    if not await uow.edges.edge_exists(origin.id, alias.id):
                        await uow.edges.insert_edge(origin.id, alias.id)
                        changed = True
                if changed:
                    alias.set_combined_alias()
                    await uow.save_author(alias)

        if changed:
            logger.info(f"Set origins {requested} for alias {alias_id}")
            await self._notify_updated([alias])
        return alias

    async def unlink(self, origin_id: int, alias_id: int) -> list[Author]:
        """
        Remove an origin <-> alias relation.

        What gets removed depends on the state of the record passed as
        ``origin_id``:

        - Original: a combined ``alias_id`` loses the edge from it (and is
          demoted when that was its last edge); a simple ``alias_id`` is
          demoted.
        - CombinedAlias: the record loses its edge from ``alias_id`` and is
          demoted when that was its last edge.
        - SimpleAlias: the record is demoted, ``alias_id`` is not consulted.

        Returns:
            Authors whose alias state or origin set changed.

        Raises:
            NotFoundError: If either author does not exist.
        """
        async with transaction(self.session_factory) as uow:
            authors = await lock_authors(uow, origin_id, alias_id)
            designated, other = authors[origin_id], authors[alias_id]
            changed: list[Author] = []
            state = designated.alias_state

            if isinstance(state, Original):
                other_state = other.alias_state
                if isinstance(other_state, CombinedAlias):
                    if await uow.edges.delete_edges(
                        origin_id=designated.id, alias_id=other.id
                    ):
                        if not await uow.edges.has_edges(alias_id=other.id):
                            other.set_original()
                        changed.append(await uow.save_author(other))
                elif isinstance(other_state, SimpleAlias):
                    other.set_original()
                    changed.append(await uow.save_author(other))

            elif isinstance(state, CombinedAlias):
                if await uow.edges.delete_edges(
                    origin_id=other.id, alias_id=designated.id
                ):
                    if not await uow.edges.has_edges(alias_id=designated.id):
                        designated.set_original()
                    changed.append(await uow.save_author(designated))

            else:
                designated.set_original()
                changed.append(await uow.save_author(designated))

        for author in changed:
            logger.info(
                f"Unlinked {origin_id} <-> {alias_id}, author {author.id} "
                f"is now {author.alias_kind.value}"
            )
        await self._notify_updated(changed)
        return changed

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def _get(self, uow: UnitOfWork, author_id: int) -> Author:
        author = await uow.authors.get_by_id(author_id)
        if author is None:
            raise NotFoundError(f"Author with ID {author_id} not found")
        return author

    async def get_origin(self, alias_id: int) -> Author | None:
        """
        Origin of a simple alias.

        Returns:
            The origin author, or None when the author is Original.

        Raises:
            NotFoundError: If the author (or its origin) does not exist.
            NotApplicableError: If the author is a combined alias; use
                get_origins instead.
        """
        async with read_only(self.session_factory) as uow:
            alias = await self._get(uow, alias_id)
            state = alias.alias_state
            if isinstance(state, Original):
                return None
            if isinstance(state, CombinedAlias):
                raise NotApplicableError(
                    f"{alias.name} is a combined alias, it has several origins"
                )
            return await self._get(uow, state.origin_id)

    async def get_origins(self, alias_id: int) -> list[Author]:
        """
        Origins of a combined alias.

        Raises:
            NotFoundError: If the author does not exist.
            NotApplicableError: If the author is not a combined alias.
        """
        async with read_only(self.session_factory) as uow:
            alias = await self._get(uow, alias_id)
            if not isinstance(alias.alias_state, CombinedAlias):
                raise NotApplicableError(f"{alias.name} is not a combined alias")
            edges = await uow.edges.find_edges(alias_id=alias_id)
            return await uow.authors.get_by_ids([e.origin_id for e in edges])

    async def get_combined_aliases_of(self, origin_id: int) -> list[Author]:
        """
        Combined aliases that have the given author among their origins.

        Simple aliases are not included, see get_direct_aliases_of.

        Raises:
            NotFoundError: If the author does not exist.
            NotApplicableError: If the author is not Original.
        """
        async with read_only(self.session_factory) as uow:
            origin = await self._get(uow, origin_id)
            if not origin.is_original:
                raise NotApplicableError(f"{origin.name} is not an original author")
            edges = await uow.edges.find_edges(origin_id=origin_id)
            return await uow.authors.get_by_ids([e.alias_id for e in edges])

    async def get_direct_aliases_of(self, origin_id: int) -> list[Author]:
        """
        Simple aliases pointing at the given author.

        Raises:
            NotFoundError: If the author does not exist.
        """
        async with read_only(self.session_factory) as uow:
            await self._get(uow, origin_id)
            return await uow.authors.get_direct_aliases(origin_id)

    async def _notify_updated(self, authors: list[Author]) -> None:
        if self.notifier is None:
            return
        for author in authors:
            await run_best_effort(
                f"notify {AUTHOR_UPDATED_EVENT} for author {author.id}",
                self.notifier.notify(AUTHOR_UPDATED_EVENT, dump_author(author)),
            )
