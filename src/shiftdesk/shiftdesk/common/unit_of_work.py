from __future__ import annotations

from typing import ContextManager, Protocol


class UnitOfWork(Protocol):
    """Transaction boundary shared by the repositories of one action.

    Everything written inside ``with uow.transaction():`` commits together or
    not at all.
    """

    def transaction(self) -> ContextManager:
        raise NotImplementedError
