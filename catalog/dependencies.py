"""
Dependency injection configuration for FastAPI.

Collaborators are provided through FastAPI's Depends() system with
@lru_cache for singleton-like behavior; services are built per request
from them. Tests replace any provider with app.dependency_overrides.

Example:
    ```python
    from catalog.dependencies import ResolverDep

    @router.get("/authors/{author_id}/alias")
    async def get_aliases(author_id: int, resolver: ResolverDep) -> list[AuthorSummary]:
        return await resolver.get_direct_aliases_of(author_id)
    ```
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from catalog.collaborators import FileImageCache, FileMetadataWriter, SocketNotifier
from catalog.protocols import ImageCache, MetadataWriter, Notifier
from catalog.services.alias_resolver import AliasResolver
from catalog.services.identity_merger import IdentityMerger
from catalog.services.unit_of_work import SessionFactory
from catalog.storage.db import async_session

# ============================================================================
# Database Dependencies
# ============================================================================


def get_session_factory() -> SessionFactory:
    """
    Get the session factory services open their transactions from.

    Returns:
        The application-wide async_sessionmaker.
    """
    return async_session


SessionFactoryDep = Annotated[SessionFactory, Depends(get_session_factory)]


# ============================================================================
# Collaborator Dependencies
# ============================================================================


@lru_cache
def get_notifier() -> Notifier:
    """
    Get cached websocket notifier instance.

    Returns:
        Cached SocketNotifier bound to the global connection manager.
    """
    return SocketNotifier()


@lru_cache
def get_image_cache() -> ImageCache:
    """
    Get cached image cache instance.

    Returns:
        Cached FileImageCache rooted at IMAGE_CACHE_PATH.
    """
    return FileImageCache()


@lru_cache
def get_metadata_writer() -> MetadataWriter:
    """
    Get cached metadata writer instance.

    Returns:
        Cached FileMetadataWriter rooted at METADATA_PATH.
    """
    return FileMetadataWriter(async_session)


NotifierDep = Annotated[Notifier, Depends(get_notifier)]
ImageCacheDep = Annotated[ImageCache, Depends(get_image_cache)]
MetadataWriterDep = Annotated[MetadataWriter, Depends(get_metadata_writer)]


# ============================================================================
# Service Dependencies
# ============================================================================


def get_alias_resolver(
    session_factory: SessionFactoryDep, notifier: NotifierDep
) -> AliasResolver:
    return AliasResolver(session_factory, notifier=notifier)


def get_identity_merger(
    session_factory: SessionFactoryDep,
    notifier: NotifierDep,
    image_cache: ImageCacheDep,
    metadata_writer: MetadataWriterDep,
) -> IdentityMerger:
    return IdentityMerger(
        session_factory,
        notifier=notifier,
        image_cache=image_cache,
        metadata_writer=metadata_writer,
    )


ResolverDep = Annotated[AliasResolver, Depends(get_alias_resolver)]
MergerDep = Annotated[IdentityMerger, Depends(get_identity_merger)]
