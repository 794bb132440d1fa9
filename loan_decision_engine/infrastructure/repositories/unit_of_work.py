"""SQLAlchemy implementation of UnitOfWork."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession

from loan_decision_engine.domain.interfaces import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """
    Transaction scope over the request's AsyncSession.

    The repositories of a request share this session, so everything they
    flush inside ``transaction()`` commits or rolls back together.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[None, None]:
        try:
            yield
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise
