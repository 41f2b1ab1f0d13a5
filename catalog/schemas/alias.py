"""
Alias state of an author as an explicit tagged union.

An author is exactly one of:
    Original       canonical identity, may be referenced by aliases
    SimpleAlias    same person as exactly one origin (inline pointer)
    CombinedAlias  same person as a set of origins (alias edge rows)

Example:
    ```python
    state = author.alias_state
    if isinstance(state, SimpleAlias):
        origin = await repo.get_by_id(state.origin_id)
    ```
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class AliasKind(str, Enum):
    """Persisted discriminator of the alias state."""

    ORIGINAL = "original"
    SIMPLE = "simple"
    COMBINED = "combined"


class Original(BaseModel):  # type: ignore[misc]
    kind: Literal[AliasKind.ORIGINAL] = AliasKind.ORIGINAL


class SimpleAlias(BaseModel):  # type: ignore[misc]
    kind: Literal[AliasKind.SIMPLE] = AliasKind.SIMPLE
    origin_id: int


class CombinedAlias(BaseModel):  # type: ignore[misc]
    kind: Literal[AliasKind.COMBINED] = AliasKind.COMBINED


AliasState = Annotated[
    Union[Original, SimpleAlias, CombinedAlias], Field(discriminator="kind")
]
