"""
Author endpoints using Command pattern + Dependency Injection.

CRUD goes through the author commands, alias transitions and queries
through AliasResolver. Errors raised by either are mapped to HTTP status
codes by handle_http_errors.

Example:
    POST /authors/1/make_alias
    {
        "alias_id": 2
    }
"""

from fastapi import APIRouter, status

from catalog.commands.author_commands import (
    CreateAuthorCommand,
    CreateAuthorInput,
    DeleteAuthorsCommand,
    GetAuthorCommand,
    RemoveAuthorImageCommand,
    UpdateAuthorCommand,
    UpdateAuthorInput,
)
from catalog.dependencies import (
    ImageCacheDep,
    MergerDep,
    MetadataWriterDep,
    NotifierDep,
    ResolverDep,
    SessionFactoryDep,
)
from catalog.exceptions import ValidationError
from catalog.schemas.author import AuthorRead, AuthorSummary, AuthorUpdateResult
from catalog.schemas.request import (
    AddAliasesRequest,
    AuthorIdsRequest,
    AuthorUpdateRequest,
    MakeAliasRequest,
    SetOriginsRequest,
    UnlinkAliasRequest,
)
from catalog.schemas.response import DeletedAuthorsModel
from catalog.utils.error_handler import handle_http_errors

router = APIRouter(prefix="/authors", tags=["authors"])


# ============================================================================
# Author CRUD
# ============================================================================


@router.post(
    "",
    response_model=AuthorRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new author",
)
@handle_http_errors
async def create_author(
    author_data: CreateAuthorInput,
    session_factory: SessionFactoryDep,
) -> AuthorRead:
    """
    Create a new author.

    Raises:
        HTTPException: 409 if the library already has an author with the
            same name.
    """
    author = await CreateAuthorCommand(session_factory).execute(author_data)
    return AuthorRead.from_author(author, num_books=0)


@router.get("/{author_id}", response_model=AuthorRead, summary="Get an author")
@handle_http_errors
async def get_author(
    author_id: int, session_factory: SessionFactoryDep
) -> AuthorRead:
    return await GetAuthorCommand(session_factory).execute(author_id)


@router.patch(
    "/{author_id}",
    response_model=AuthorUpdateResult,
    summary="Update an author",
)
@handle_http_errors
async def update_author(
    author_id: int,
    author_data: AuthorUpdateRequest,
    session_factory: SessionFactoryDep,
    merger: MergerDep,
    notifier: NotifierDep,
    metadata_writer: MetadataWriterDep,
) -> AuthorUpdateResult:
    """
    Update an author.

    Renaming an author to the name of another author merges the two; the
    response then carries the surviving author and ``merged: true``.

    Example:
        PATCH /authors/4
        {
            "name": "Jane Doe"
        }
    """
    command = UpdateAuthorCommand(
        session_factory,
        merger,
        notifier=notifier,
        metadata_writer=metadata_writer,
    )
    input_data = UpdateAuthorInput(id=author_id, **author_data.model_dump())
    return await command.execute(input_data)


@router.delete(
    "",
    response_model=DeletedAuthorsModel,
    summary="Delete several authors",
)
@handle_http_errors
async def delete_authors(
    data: AuthorIdsRequest,
    session_factory: SessionFactoryDep,
    notifier: NotifierDep,
    image_cache: ImageCacheDep,
    metadata_writer: MetadataWriterDep,
) -> DeletedAuthorsModel:
    """
    Delete authors in request order.

    Stops at the first missing author; authors before it stay deleted.
    """
    command = DeleteAuthorsCommand(
        session_factory,
        notifier=notifier,
        image_cache=image_cache,
        metadata_writer=metadata_writer,
    )
    return DeletedAuthorsModel(deleted=await command.execute(data.ids))


@router.delete(
    "/{author_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an author",
)
@handle_http_errors
async def delete_author(
    author_id: int,
    session_factory: SessionFactoryDep,
    notifier: NotifierDep,
    image_cache: ImageCacheDep,
    metadata_writer: MetadataWriterDep,
) -> None:
    command = DeleteAuthorsCommand(
        session_factory,
        notifier=notifier,
        image_cache=image_cache,
        metadata_writer=metadata_writer,
    )
    await command.execute([author_id])


@router.delete(
    "/{author_id}/image",
    response_model=AuthorRead,
    summary="Remove the image of an author",
)
@handle_http_errors
async def remove_author_image(
    author_id: int,
    session_factory: SessionFactoryDep,
    notifier: NotifierDep,
    image_cache: ImageCacheDep,
) -> AuthorRead:
    command = RemoveAuthorImageCommand(
        session_factory, notifier=notifier, image_cache=image_cache
    )
    return await command.execute(author_id)


# ============================================================================
# Alias transitions
# ============================================================================


@router.post(
    "/{author_id}/alias",
    response_model=list[AuthorRead],
    summary="Link aliases to an origin author",
)
@handle_http_errors
async def add_aliases(
    author_id: int, data: AddAliasesRequest, resolver: ResolverDep
) -> list[AuthorRead]:
    """
    Link every author in ``aliases`` to the origin ``author_id``.

    Each alias is linked on its own; the first failure is returned and
    the aliases before it stay linked.
    """
    aliases = await resolver.link_alias_batch(author_id, data.aliases or [])
    return [AuthorRead.from_author(alias) for alias in aliases]


@router.post(
    "/{author_id}/make_alias",
    response_model=AuthorRead,
    summary="Make an author an alias of this author",
)
@handle_http_errors
async def make_alias(
    author_id: int, data: MakeAliasRequest, resolver: ResolverDep
) -> AuthorRead:
    if data.alias_id is None:
        raise ValidationError("Missing alias id")
    alias = await resolver.link_alias(author_id, data.alias_id)
    return AuthorRead.from_author(alias)


@router.post(
    "/{author_id}/combined_alias",
    response_model=AuthorRead,
    summary="Set the origin authors of an alias",
)
@handle_http_errors
async def set_original_authors(
    author_id: int, data: SetOriginsRequest, resolver: ResolverDep
) -> AuthorRead:
    """
    Set the origins of alias ``author_id``.

    Example:
        POST /authors/7/combined_alias
        {
            "original_authors": [1, 3]
        }
    """
    alias = await resolver.set_origins(author_id, data.original_authors or [])
    return AuthorRead.from_author(alias)


@router.delete(
    "/{author_id}/alias",
    response_model=list[AuthorRead],
    summary="Unlink an alias relation",
)
@handle_http_errors
async def unlink_alias(
    author_id: int, data: UnlinkAliasRequest, resolver: ResolverDep
) -> list[AuthorRead]:
    """
    Remove the alias relation between ``author_id`` and ``id``.

    Returns the authors whose alias state changed; an empty list when
    there was nothing to unlink.
    """
    changed = await resolver.unlink(author_id, data.id)
    return [AuthorRead.from_author(author) for author in changed]


# ============================================================================
# Alias queries
# ============================================================================


@router.get(
    "/{author_id}/alias",
    response_model=list[AuthorSummary],
    summary="Simple aliases of an author",
)
@handle_http_errors
async def get_aliases(author_id: int, resolver: ResolverDep) -> list[AuthorSummary]:
    aliases = await resolver.get_direct_aliases_of(author_id)
    return [AuthorSummary.model_validate(alias) for alias in aliases]


@router.get(
    "/{author_id}/origin",
    response_model=AuthorRead | None,
    summary="Origin of a simple alias",
)
@handle_http_errors
async def get_origin(author_id: int, resolver: ResolverDep) -> AuthorRead | None:
    """
    Origin of ``author_id``; ``null`` when the author is an original.

    Raises:
        HTTPException: 409 if the author is a combined alias.
    """
    origin = await resolver.get_origin(author_id)
    return AuthorRead.from_author(origin) if origin is not None else None


@router.get(
    "/{author_id}/origins",
    response_model=list[AuthorSummary],
    summary="Origins of a combined alias",
)
@handle_http_errors
async def get_origins(author_id: int, resolver: ResolverDep) -> list[AuthorSummary]:
    origins = await resolver.get_origins(author_id)
    return [AuthorSummary.model_validate(origin) for origin in origins]


@router.get(
    "/{author_id}/combined_alias",
    response_model=list[AuthorSummary],
    summary="Combined aliases of an origin author",
)
@handle_http_errors
async def get_combined_aliases(
    author_id: int, resolver: ResolverDep
) -> list[AuthorSummary]:
    aliases = await resolver.get_combined_aliases_of(author_id)
    return [AuthorSummary.model_validate(alias) for alias in aliases]
