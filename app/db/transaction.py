import logging

from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class TransactionContext:
    """
    One explicit transactional unit over an AsyncSession.

    Every read and write of a year transition goes through `session` between begin() and
    commit()/abort(). Used as an async context manager: commits on success, aborts on any error.
    Orchestrators accept a factory so tests can observe begin/commit/abort.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.active = False

    async def begin(self) -> None:
        if self.session.in_transaction():
            # Preflight reads autobegin a transaction; close it so the unit starts clean
            await self.session.commit()
        await self.session.begin()
        self.active = True

    async def commit(self) -> None:
        await self.session.commit()
        self.active = False

    async def abort(self) -> None:
        await self.session.rollback()
        self.active = False

    async def _abort_quietly(self) -> None:
        # The error that caused the abort is the one the caller must see
        try:
            await self.abort()
        except Exception:
            logger.exception("Rollback failed while handling a transaction error")
            self.active = False

    async def __aenter__(self) -> "TransactionContext":
        await self.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            await self._abort_quietly()
            return False
        try:
            await self.commit()
        except Exception:
            await self._abort_quietly()
            raise
        return False
