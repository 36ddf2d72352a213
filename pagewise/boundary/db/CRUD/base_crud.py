"""
Shared CRUD operations for PageWise tables.

Every table is keyed by an integer ``id`` (see IdMixin), so the generic
helpers here cover lookups and single-row updates for documents, chapters,
chunks, concepts, jobs and messages. Model-specific classes add the
queries that need joins, ordering or conditional updates.

Helpers flush but never commit: a service or scheduler step groups several
writes into one transaction and commits once.

Dependencies: sqlalchemy
System role: Foundation for all database CRUD operations
"""

from typing import Any, Generic, Iterable, Sequence, TypeVar

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from pagewise.boundary.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class BaseCRUD(Generic[ModelT]):
    """
    Integer-keyed CRUD for one mapped model.

    Attributes:
        model: Mapped class the helpers operate on
    """

    def __init__(self, model: type[ModelT]) -> None:
        self.model = model

    def _by_id(self, id: int):
        return self.model.id == id

    async def create(self, session: AsyncSession, **kwargs) -> ModelT:
        """
        Insert one row and reload it so server defaults are populated.

        Returns:
            The new instance with its id assigned
        """
        instance = self.model(**kwargs)
        session.add(instance)
        await session.flush()
        await session.refresh(instance)
        return instance

    async def create_many(self, session: AsyncSession, rows: Iterable[dict[str, Any]]) -> list[ModelT]:
        """
        Insert a batch of rows in one flush.

        Used for chapters and chunks of a freshly registered document, where
        the returned order must match ``rows`` so ids line up with inputs.

        Args:
            session: Async database session
            rows: Column values, one dict per row

        Returns:
            list[ModelT]: Instances in input order with ids assigned
        """
        instances = [self.model(**row) for row in rows]
        session.add_all(instances)
        await session.flush()
        return instances

    async def get_by_id(self, session: AsyncSession, id: int) -> ModelT | None:
        result = await session.execute(select(self.model).where(self._by_id(id)))
        return result.scalar_one_or_none()

    async def get_all(
        self,
        session: AsyncSession,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[ModelT]:
        """
        List rows in insertion (id) order.

        Args:
            session: Async database session
            limit: Page size, None for every row
            offset: Rows to skip

        Returns:
            Sequence[ModelT]: Matching rows
        """
        stmt = select(self.model).order_by(self.model.id).offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return (await session.execute(stmt)).scalars().all()

    async def update_by_id(self, session: AsyncSession, id: int, **kwargs) -> bool:
        """
        Set columns on one row without loading it.

        Returns:
            bool: False when no row has that id
        """
        result = await session.execute(update(self.model).where(self._by_id(id)).values(**kwargs))
        return result.rowcount > 0

    async def delete_by_id(self, session: AsyncSession, id: int) -> bool:
        """
        Delete one row; ON DELETE CASCADE removes its dependents.

        Returns:
            bool: False when no row has that id
        """
        result = await session.execute(delete(self.model).where(self._by_id(id)))
        return result.rowcount > 0

    async def exists(self, session: AsyncSession, id: int) -> bool:
        result = await session.execute(select(self.model.id).where(self._by_id(id)))
        return result.scalar_one_or_none() is not None
