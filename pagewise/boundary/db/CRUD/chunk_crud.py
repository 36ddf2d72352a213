"""
Chunk CRUD operations.

Dependencies: sqlalchemy, pagewise.boundary.db.models
System role: Retrievable text unit persistence operations
"""

from typing import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pagewise.boundary.db.CRUD.base_crud import BaseCRUD
from pagewise.boundary.db.models import ChunkModel


class ChunkCRUD(BaseCRUD[ChunkModel]):
    """CRUD operations for ChunkModel."""

    def __init__(self) -> None:
        """Initialize ChunkCRUD with ChunkModel."""
        super().__init__(ChunkModel)

    async def get_by_ids(self, session: AsyncSession, chunk_ids: Sequence[int]) -> Sequence[ChunkModel]:
        """
        Retrieve chunks by id, in no particular order.

        Args:
            session: Async database session
            chunk_ids: Chunk primary keys

        Returns:
            Sequence of matching ChunkModels (missing ids are skipped)
        """
        if not chunk_ids:
            return []
        stmt = select(ChunkModel).where(ChunkModel.id.in_(list(chunk_ids)))
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_by_chapter(self, session: AsyncSession, chapter_id: int) -> Sequence[ChunkModel]:
        """Retrieve a chapter's chunks in order."""
        stmt = (
            select(ChunkModel)
            .where(ChunkModel.chapter_id == chapter_id)
            .order_by(ChunkModel.chunk_index)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_ids(
        self,
        session: AsyncSession,
        document_id: int,
        chapter_id: int | None = None,
    ) -> list[int]:
        """
        List chunk ids of a document, optionally limited to one chapter.

        Args:
            session: Async database session
            document_id: Document primary key
            chapter_id: Optional chapter primary key

        Returns:
            list[int]: Chunk ids
        """
        stmt = select(ChunkModel.id).where(ChunkModel.document_id == document_id)
        if chapter_id is not None:
            stmt = stmt.where(ChunkModel.chapter_id == chapter_id)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def count_by_chapter(self, session: AsyncSession, chapter_id: int) -> int:
        """Count a chapter's chunks."""
        stmt = select(func.count(ChunkModel.id)).where(ChunkModel.chapter_id == chapter_id)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def token_total_by_chapter(self, session: AsyncSession, chapter_id: int) -> int:
        """Sum of a chapter's chunk token estimates; 0 when it has none."""
        stmt = select(func.coalesce(func.sum(ChunkModel.token_count), 0)).where(ChunkModel.chapter_id == chapter_id)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def delete_by_chapter(self, session: AsyncSession, chapter_id: int) -> list[int]:
        """
        Delete a chapter's chunks.

        Returns:
            list[int]: Ids of the deleted chunks, for vector index cleanup
        """
        ids = list((await session.execute(
            select(ChunkModel.id).where(ChunkModel.chapter_id == chapter_id)
        )).scalars().all())
        if ids:
            await session.execute(delete(ChunkModel).where(ChunkModel.id.in_(ids)))
        return ids


chunk_crud = ChunkCRUD()
