"""Unit-of-work interface for all-or-nothing decisioning writes."""

from abc import ABC, abstractmethod
from typing import AsyncContextManager


class UnitOfWork(ABC):
    """
    Transactional scope shared by the repositories of one request.

    Everything written inside ``transaction()`` is committed together when
    the block exits normally, and rolled back before the exception propagates
    otherwise.
    """

    @abstractmethod
    def transaction(self) -> AsyncContextManager[None]:
        """
        Open a transactional scope.

        Usage:
            async with uow.transaction():
                ...
        """
        ...
