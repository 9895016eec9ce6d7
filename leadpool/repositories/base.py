from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    """Holds the request's ``AsyncSession``.

    Repositories built for one request share the session, so a lifecycle
    plan written through one of them commits or rolls back as a unit.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db

    async def commit(self) -> None:
        await self._db.commit()

    async def rollback(self) -> None:
        """Discard writes from a plan that could not be completed."""
        await self._db.rollback()
