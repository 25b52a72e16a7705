"""
Base Repository

Generic async repository over a single ORM model.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from flowsync.models.orm.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """
    Repository with the handful of generic operations the bootstrap needs.

    Subclasses set `model` and add entity-specific queries.
    """

    model: type[ModelT]

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def get_one_by(self, **filters: Any) -> ModelT | None:
        """Get the first entity matching column equality filters."""
        query = select(self.model).filter_by(**filters).limit(1)
        result = await self.session.execute(query)
        return result.scalars().first()

    async def create(self, entity: ModelT) -> ModelT:
        """Add an entity and flush so database errors surface here."""
        self.session.add(entity)
        await self.session.flush()
        return entity
