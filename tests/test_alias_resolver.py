"""
Tests for AliasResolver.

These tests run the resolver against an in-memory SQLite database and
check alias state, edge rows and notifications after every transition.
"""

import pytest

from catalog.constants import AUTHOR_UPDATED_EVENT
from catalog.exceptions import (
    ConflictError,
    NotApplicableError,
    NotFoundError,
    ValidationError,
)
from catalog.schemas.alias import AliasKind
from catalog.services.alias_resolver import AliasResolver


@pytest.fixture
def resolver(session_factory, notifier):
    return AliasResolver(session_factory, notifier=notifier)


@pytest.fixture
def assert_no_alias_chains(session_factory, fetch_edges):
    """Check that every origin referenced by an alias is Original."""
    from sqlmodel import select

    from catalog.models import Author

    async def _check():
        async with session_factory() as session:
            authors = {
                a.id: a for a in (await session.exec(select(Author))).all()
            }
        for author in authors.values():
            if author.alias_kind == AliasKind.SIMPLE:
                assert authors[author.alias_of_id].is_original
            else:
                assert author.alias_of_id is None
        edges = await fetch_edges()
        for origin_id, alias_id in edges:
            assert authors[origin_id].is_original
            assert authors[alias_id].alias_kind == AliasKind.COMBINED
        for author in authors.values():
            if author.alias_kind == AliasKind.COMBINED:
                assert any(alias_id == author.id for _, alias_id in edges)

    return _check


class TestLinkAlias:
    """Tests for AliasResolver.link_alias."""

    @pytest.mark.asyncio
    async def test_original_becomes_simple_alias(
        self, resolver, make_author, fetch_author, notifier
    ):
        origin = await make_author("Origin")
        alias = await make_author("Alias")

        result = await resolver.link_alias(origin.id, alias.id)

        assert result.alias_kind == AliasKind.SIMPLE
        assert result.alias_of_id == origin.id
        stored = await fetch_author(alias.id)
        assert stored.alias_kind == AliasKind.SIMPLE
        assert stored.alias_of_id == origin.id

        notifier.notify.assert_awaited_once()
        event, data = notifier.notify.await_args.args
        assert event == AUTHOR_UPDATED_EVENT
        assert data["id"] == alias.id
        assert data["alias_state"] == {"kind": "simple", "origin_id": origin.id}

    @pytest.mark.asyncio
    async def test_link_is_idempotent(
        self, resolver, make_author, fetch_author, fetch_edges, notifier
    ):
        origin = await make_author("Origin")
        alias = await make_author("Alias")

        await resolver.link_alias(origin.id, alias.id)
        await resolver.link_alias(origin.id, alias.id)

        stored = await fetch_author(alias.id)
        assert stored.alias_kind == AliasKind.SIMPLE
        assert stored.alias_of_id == origin.id
        assert await fetch_edges() == set()
        # Second call changed nothing and notified nothing
        assert notifier.notify.await_count == 1

    @pytest.mark.asyncio
    async def test_second_origin_promotes_to_combined(
        self, resolver, make_author, fetch_author, fetch_edges
    ):
        first = await make_author("First")
        second = await make_author("Second")
        alias = await make_author("Alias")

        await resolver.link_alias(first.id, alias.id)
        result = await resolver.link_alias(second.id, alias.id)

        assert result.alias_kind == AliasKind.COMBINED
        stored = await fetch_author(alias.id)
        assert stored.alias_kind == AliasKind.COMBINED
        assert stored.alias_of_id is None
        assert await fetch_edges() == {(first.id, alias.id), (second.id, alias.id)}

    @pytest.mark.asyncio
    async def test_combined_alias_gains_edge(
        self, resolver, make_author, fetch_edges
    ):
        a = await make_author("A")
        b = await make_author("B")
        c = await make_author("C")
        alias = await make_author("Alias")

        await resolver.link_alias(a.id, alias.id)
        await resolver.link_alias(b.id, alias.id)
        await resolver.link_alias(c.id, alias.id)
        await resolver.link_alias(c.id, alias.id)

        assert await fetch_edges() == {
            (a.id, alias.id),
            (b.id, alias.id),
            (c.id, alias.id),
        }

    @pytest.mark.asyncio
    async def test_origin_that_is_alias_conflicts(
        self, resolver, make_author, fetch_author, assert_no_alias_chains
    ):
        a = await make_author("A")
        b = await make_author("B")
        c = await make_author("C")
        await resolver.link_alias(a.id, b.id)

        with pytest.raises(ConflictError, match="B is an alias of other author"):
            await resolver.link_alias(b.id, c.id)

        assert (await fetch_author(c.id)).is_original
        await assert_no_alias_chains()

    @pytest.mark.asyncio
    async def test_alias_that_has_simple_aliases_conflicts(
        self, resolver, make_author, fetch_author
    ):
        a = await make_author("A")
        b = await make_author("B")
        x = await make_author("X")
        await resolver.link_alias(a.id, x.id)

        with pytest.raises(ConflictError, match="A is an original author"):
            await resolver.link_alias(b.id, a.id)

        assert (await fetch_author(a.id)).is_original

    @pytest.mark.asyncio
    async def test_alias_that_has_combined_aliases_conflicts(
        self, resolver, make_author
    ):
        a = await make_author("A")
        b = await make_author("B")
        c = await make_author("C")
        x = await make_author("X")
        await resolver.link_alias(a.id, x.id)
        await resolver.link_alias(b.id, x.id)

        with pytest.raises(ConflictError):
            await resolver.link_alias(c.id, a.id)

    @pytest.mark.asyncio
    async def test_self_alias_conflicts(self, resolver, make_author, notifier):
        a = await make_author("A")

        with pytest.raises(ConflictError, match="cannot be an alias of itself"):
            await resolver.link_alias(a.id, a.id)

        notifier.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_author_not_found(self, resolver, make_author):
        a = await make_author("A")

        with pytest.raises(NotFoundError):
            await resolver.link_alias(a.id, 999)
        with pytest.raises(NotFoundError):
            await resolver.link_alias(999, a.id)

    @pytest.mark.asyncio
    async def test_notifier_failure_does_not_fail_link(
        self, resolver, make_author, fetch_author, notifier
    ):
        notifier.notify.side_effect = RuntimeError("socket closed")
        origin = await make_author("Origin")
        alias = await make_author("Alias")

        await resolver.link_alias(origin.id, alias.id)

        assert (await fetch_author(alias.id)).alias_kind == AliasKind.SIMPLE


class TestLinkAliasBatch:
    """Tests for AliasResolver.link_alias_batch."""

    @pytest.mark.asyncio
    async def test_links_every_alias(self, resolver, make_author):
        origin = await make_author("Origin")
        x = await make_author("X")
        y = await make_author("Y")

        result = await resolver.link_alias_batch(origin.id, [x.id, y.id])

        assert [a.id for a in result] == [x.id, y.id]
        assert all(a.alias_of_id == origin.id for a in result)

    @pytest.mark.asyncio
    async def test_empty_batch_is_rejected(self, resolver, make_author):
        origin = await make_author("Origin")

        with pytest.raises(ValidationError):
            await resolver.link_alias_batch(origin.id, [])

    @pytest.mark.asyncio
    async def test_stops_at_first_failure(
        self, resolver, make_author, fetch_author
    ):
        origin = await make_author("Origin")
        x = await make_author("X")
        y = await make_author("Y")
        z = await make_author("Z")
        # y is an origin, so it cannot become an alias
        await resolver.link_alias(y.id, z.id)

        with pytest.raises(ConflictError):
            await resolver.link_alias_batch(origin.id, [x.id, y.id, 999])

        assert (await fetch_author(x.id)).alias_of_id == origin.id
        assert (await fetch_author(y.id)).is_original


class TestSetOrigins:
    """Tests for AliasResolver.set_origins."""

    @pytest.mark.asyncio
    async def test_empty_origins_rejected(self, resolver, make_author):
        alias = await make_author("Alias")

        with pytest.raises(ValidationError, match="Missing original authors"):
            await resolver.set_origins(alias.id, [])

    @pytest.mark.asyncio
    async def test_original_with_single_origin(
        self, resolver, make_author, fetch_author, fetch_edges
    ):
        origin = await make_author("Origin")
        alias = await make_author("Alias")

        await resolver.set_origins(alias.id, [origin.id])

        stored = await fetch_author(alias.id)
        assert stored.alias_kind == AliasKind.SIMPLE
        assert stored.alias_of_id == origin.id
        assert await fetch_edges() == set()

    @pytest.mark.asyncio
    async def test_original_with_several_origins(
        self, resolver, make_author, fetch_author, fetch_edges
    ):
        a = await make_author("A")
        b = await make_author("B")
        alias = await make_author("Alias")

        await resolver.set_origins(alias.id, [a.id, b.id, a.id])

        stored = await fetch_author(alias.id)
        assert stored.alias_kind == AliasKind.COMBINED
        assert await fetch_edges() == {(a.id, alias.id), (b.id, alias.id)}

    @pytest.mark.asyncio
    async def test_simple_alias_pointer_migrates_to_edge(
        self, resolver, make_author, fetch_author, fetch_edges, notifier
    ):
        a = await make_author("A")
        b = await make_author("B")
        c = await make_author("C")
        alias = await make_author("Alias")
        await resolver.link_alias(a.id, alias.id)

        await resolver.set_origins(alias.id, [b.id, c.id])

        stored = await fetch_author(alias.id)
        assert stored.alias_kind == AliasKind.COMBINED
        assert stored.alias_of_id is None
        assert await fetch_edges() == {
            (a.id, alias.id),
            (b.id, alias.id),
            (c.id, alias.id),
        }
        assert notifier.notify.await_count == 2

    @pytest.mark.asyncio
    async def test_combined_alias_keeps_existing_origins(
        self, resolver, make_author, fetch_edges, notifier
    ):
        a = await make_author("A")
        b = await make_author("B")
        c = await make_author("C")
        alias = await make_author("Alias")
        await resolver.set_origins(alias.id, [a.id, b.id])
        notifier.notify.reset_mock()

        await resolver.set_origins(alias.id, [b.id, c.id])
        await resolver.set_origins(alias.id, [b.id, c.id])

        assert await fetch_edges() == {
            (a.id, alias.id),
            (b.id, alias.id),
            (c.id, alias.id),
        }
        # The repeated call added nothing
        assert notifier.notify.await_count == 1

    @pytest.mark.asyncio
    async def test_aliased_origin_rejected_before_any_write(
        self, resolver, make_author, fetch_author, fetch_edges
    ):
        a = await make_author("A")
        b = await make_author("B")
        x = await make_author("X")
        alias = await make_author("Alias")
        await resolver.link_alias(a.id, b.id)

        with pytest.raises(ConflictError):
            await resolver.set_origins(alias.id, [x.id, b.id])

        assert (await fetch_author(alias.id)).is_original
        assert await fetch_edges() == set()

    @pytest.mark.asyncio
    async def test_alias_among_origins_rejected(self, resolver, make_author):
        a = await make_author("A")
        alias = await make_author("Alias")

        with pytest.raises(ConflictError):
            await resolver.set_origins(alias.id, [a.id, alias.id])

    @pytest.mark.asyncio
    async def test_original_that_is_an_origin_rejected(
        self, resolver, make_author
    ):
        a = await make_author("A")
        b = await make_author("B")
        alias = await make_author("Alias")
        x = await make_author("X")
        await resolver.link_alias(alias.id, x.id)

        with pytest.raises(ConflictError):
            await resolver.set_origins(alias.id, [a.id, b.id])

    @pytest.mark.asyncio
    async def test_missing_origin_not_found(self, resolver, make_author):
        a = await make_author("A")
        alias = await make_author("Alias")

        with pytest.raises(NotFoundError):
            await resolver.set_origins(alias.id, [a.id, 999])


class TestUnlink:
    """Tests for AliasResolver.unlink."""

    @pytest.mark.asyncio
    async def test_original_unlinks_simple_alias(
        self, resolver, make_author, fetch_author
    ):
        origin = await make_author("Origin")
        alias = await make_author("Alias")
        await resolver.link_alias(origin.id, alias.id)

        changed = await resolver.unlink(origin.id, alias.id)

        assert [a.id for a in changed] == [alias.id]
        assert (await fetch_author(alias.id)).is_original

    @pytest.mark.asyncio
    async def test_partial_removal_keeps_combined(
        self, resolver, make_author, fetch_author, fetch_edges
    ):
        a = await make_author("A")
        b = await make_author("B")
        alias = await make_author("Alias")
        await resolver.set_origins(alias.id, [a.id, b.id])

        await resolver.unlink(a.id, alias.id)

        assert (await fetch_author(alias.id)).alias_kind == AliasKind.COMBINED
        assert await fetch_edges() == {(b.id, alias.id)}

    @pytest.mark.asyncio
    async def test_last_edge_removal_demotes(
        self, resolver, make_author, fetch_author, fetch_edges
    ):
        a = await make_author("A")
        b = await make_author("B")
        alias = await make_author("Alias")
        await resolver.set_origins(alias.id, [a.id, b.id])

        await resolver.unlink(a.id, alias.id)
        await resolver.unlink(b.id, alias.id)

        stored = await fetch_author(alias.id)
        assert stored.is_original
        assert stored.alias_of_id is None
        assert await fetch_edges() == set()

    @pytest.mark.asyncio
    async def test_combined_alias_as_first_argument(
        self, resolver, make_author, fetch_author, fetch_edges
    ):
        a = await make_author("A")
        b = await make_author("B")
        alias = await make_author("Alias")
        await resolver.set_origins(alias.id, [a.id, b.id])

        changed = await resolver.unlink(alias.id, b.id)

        assert [c.id for c in changed] == [alias.id]
        assert await fetch_edges() == {(a.id, alias.id)}
        assert (await fetch_author(alias.id)).alias_kind == AliasKind.COMBINED

    @pytest.mark.asyncio
    async def test_original_demotes_simple_alias_of_another_origin(
        self, resolver, make_author, fetch_author
    ):
        x = await make_author("X")
        y = await make_author("Y")
        alias = await make_author("Alias")
        await resolver.link_alias(y.id, alias.id)

        changed = await resolver.unlink(x.id, alias.id)

        assert [c.id for c in changed] == [alias.id]
        stored = await fetch_author(alias.id)
        assert stored.is_original
        assert stored.alias_of_id is None

    @pytest.mark.asyncio
    async def test_combined_alias_as_first_argument_losing_last_edge(
        self, resolver, make_author, fetch_author, fetch_edges
    ):
        a = await make_author("A")
        b = await make_author("B")
        alias = await make_author("Alias")
        await resolver.set_origins(alias.id, [a.id, b.id])
        await resolver.unlink(alias.id, a.id)

        changed = await resolver.unlink(alias.id, b.id)

        assert [c.id for c in changed] == [alias.id]
        assert changed[0].is_original
        assert (await fetch_author(alias.id)).is_original
        assert await fetch_edges() == set()

    @pytest.mark.asyncio
    async def test_simple_alias_as_first_argument_demotes_itself(
        self, resolver, make_author, fetch_author
    ):
        origin = await make_author("Origin")
        alias = await make_author("Alias")
        unrelated = await make_author("Unrelated")
        await resolver.link_alias(origin.id, alias.id)

        changed = await resolver.unlink(alias.id, unrelated.id)

        assert [c.id for c in changed] == [alias.id]
        assert (await fetch_author(alias.id)).is_original

    @pytest.mark.asyncio
    async def test_unrelated_originals_change_nothing(
        self, resolver, make_author, notifier
    ):
        a = await make_author("A")
        b = await make_author("B")

        changed = await resolver.unlink(a.id, b.id)

        assert changed == []
        notifier.notify.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_author_not_found(self, resolver, make_author):
        a = await make_author("A")

        with pytest.raises(NotFoundError):
            await resolver.unlink(a.id, 999)


class TestQueries:
    """Tests for the alias query operations."""

    @pytest.mark.asyncio
    async def test_get_origin(self, resolver, make_author):
        origin = await make_author("Origin")
        alias = await make_author("Alias")
        await resolver.link_alias(origin.id, alias.id)

        assert (await resolver.get_origin(alias.id)).id == origin.id
        assert await resolver.get_origin(origin.id) is None

    @pytest.mark.asyncio
    async def test_get_origin_of_combined_not_applicable(
        self, resolver, make_author
    ):
        a = await make_author("A")
        b = await make_author("B")
        alias = await make_author("Alias")
        await resolver.set_origins(alias.id, [a.id, b.id])

        with pytest.raises(NotApplicableError):
            await resolver.get_origin(alias.id)

    @pytest.mark.asyncio
    async def test_get_origins(self, resolver, make_author):
        a = await make_author("A")
        b = await make_author("B")
        alias = await make_author("Alias")
        await resolver.set_origins(alias.id, [b.id, a.id])

        origins = await resolver.get_origins(alias.id)

        assert sorted(o.id for o in origins) == [a.id, b.id]

    @pytest.mark.asyncio
    async def test_get_origins_of_non_combined_not_applicable(
        self, resolver, make_author
    ):
        a = await make_author("A")

        with pytest.raises(NotApplicableError):
            await resolver.get_origins(a.id)

    @pytest.mark.asyncio
    async def test_get_combined_aliases_of(self, resolver, make_author):
        a = await make_author("A")
        b = await make_author("B")
        simple = await make_author("Simple")
        combined = await make_author("Combined")
        await resolver.link_alias(a.id, simple.id)
        await resolver.set_origins(combined.id, [a.id, b.id])

        result = await resolver.get_combined_aliases_of(a.id)

        assert [r.id for r in result] == [combined.id]

    @pytest.mark.asyncio
    async def test_get_combined_aliases_of_alias_not_applicable(
        self, resolver, make_author
    ):
        a = await make_author("A")
        alias = await make_author("Alias")
        await resolver.link_alias(a.id, alias.id)

        with pytest.raises(NotApplicableError):
            await resolver.get_combined_aliases_of(alias.id)

    @pytest.mark.asyncio
    async def test_get_direct_aliases_of(self, resolver, make_author):
        a = await make_author("A")
        x = await make_author("X")
        y = await make_author("Y")
        await resolver.link_alias_batch(a.id, [y.id, x.id])

        result = await resolver.get_direct_aliases_of(a.id)

        assert [r.id for r in result] == [x.id, y.id]

    @pytest.mark.asyncio
    async def test_queries_on_missing_author(self, resolver):
        with pytest.raises(NotFoundError):
            await resolver.get_origin(999)
        with pytest.raises(NotFoundError):
            await resolver.get_direct_aliases_of(999)


class TestAliasScenario:
    """A -> B -> C link and unlink sequence."""

    @pytest.mark.asyncio
    async def test_link_unlink_sequence(
        self,
        resolver,
        make_author,
        fetch_author,
        fetch_edges,
        assert_no_alias_chains,
    ):
        a = await make_author("A")
        b = await make_author("B")
        c = await make_author("C")

        await resolver.link_alias(a.id, b.id)
        with pytest.raises(ConflictError):
            await resolver.link_alias(b.id, c.id)
        await assert_no_alias_chains()

        await resolver.link_alias(a.id, c.id)
        await resolver.unlink(a.id, b.id)
        assert (await fetch_author(b.id)).is_original
        assert (await fetch_author(c.id)).alias_of_id == a.id

        await resolver.link_alias(b.id, c.id)
        assert (await fetch_author(c.id)).alias_kind == AliasKind.COMBINED
        assert await fetch_edges() == {(a.id, c.id), (b.id, c.id)}
        await assert_no_alias_chains()

        await resolver.unlink(a.id, c.id)
        assert (await fetch_author(c.id)).alias_kind == AliasKind.COMBINED
        await resolver.unlink(b.id, c.id)
        assert (await fetch_author(c.id)).is_original
        await assert_no_alias_chains()
