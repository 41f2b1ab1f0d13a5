"""
Base command for encapsulating business operations.

Commands wrap one business operation as an object so the same logic is
reused by the HTTP endpoints and by tests, independent of transport.

Example:
    ```python
    class GetAuthorCommand(BaseCommand[int, AuthorRead]):
        def __init__(self, session_factory: SessionFactory):
            self.session_factory = session_factory

        async def execute(self, author_id: int) -> AuthorRead:
            ...
    ```
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

TInput = TypeVar("TInput")
TOutput = TypeVar("TOutput")


class BaseCommand(ABC, Generic[TInput, TOutput]):
    """
    Base command for business operations.

    Type Parameters:
        TInput: Input data type (usually a Pydantic model or an ID).
        TOutput: Output data type.
    """

    @abstractmethod
    async def execute(self, input_data: TInput) -> TOutput:
        """
        Execute the command.

        Args:
            input_data: Input data for the command.

        Returns:
            Result of the command execution.

        Raises:
            AppException subclasses for business rule violations.
        """
        pass
