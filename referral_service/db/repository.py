"""Shared repository base helpers."""
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession


class BaseRepository:
    """Base repository with common DB helpers."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self):
        """Commit the unit of work, rolling back if the database refuses it."""
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
