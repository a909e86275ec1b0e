from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction


class BaseRepository:
    """Holds the ``AsyncSession`` shared by the repositories of one unit of work.

    Repositories never commit on their own; the service that owns the
    operation (lead creation, rescoring, a decay sweep) decides when.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    def savepoint(self) -> AsyncSessionTransaction:
        """Nested transaction; a failure inside only undoes its own writes."""
        return self._db.begin_nested()

    async def commit(self) -> None:
        await self._db.commit()
