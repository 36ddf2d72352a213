"""
Concept CRUD operations.

Dependencies: sqlalchemy, pagewise.boundary.db.models
System role: Study concept persistence operations
"""

from typing import Any, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from pagewise.boundary.db.CRUD.base_crud import BaseCRUD
from pagewise.boundary.db.models import ChapterModel, ConceptModel


class ConceptCRUD(BaseCRUD[ConceptModel]):
    """CRUD operations for ConceptModel."""

    def __init__(self) -> None:
        """Initialize ConceptCRUD with ConceptModel."""
        super().__init__(ConceptModel)

    async def replace_for_chapter(
        self,
        session: AsyncSession,
        document_id: int,
        chapter_id: int,
        concepts: list[dict[str, Any]],
    ) -> list[ConceptModel]:
        """
        Replace a chapter's extracted concepts.

        Args:
            session: Async database session
            document_id: Owning document
            chapter_id: Source chapter
            concepts: Field values per concept (name, definition, importance, quotes)

        Returns:
            Created ConceptModels
        """
        await session.execute(
            delete(ConceptModel).where(
                ConceptModel.chapter_id == chapter_id,
                ConceptModel.is_consolidated.is_(False),
            )
        )
        return await self.create_many(
            session,
            (
                {**concept, "document_id": document_id, "chapter_id": chapter_id, "is_consolidated": False}
                for concept in concepts
            ),
        )

    async def replace_consolidated(
        self,
        session: AsyncSession,
        document_id: int,
        concepts: list[dict[str, Any]],
    ) -> list[ConceptModel]:
        """Replace a document's consolidated concepts."""
        await session.execute(
            delete(ConceptModel).where(
                ConceptModel.document_id == document_id,
                ConceptModel.is_consolidated.is_(True),
            )
        )
        return await self.create_many(
            session,
            (
                {**concept, "document_id": document_id, "chapter_id": None, "is_consolidated": True}
                for concept in concepts
            ),
        )

    async def get_chapter_concepts_with_titles(
        self,
        session: AsyncSession,
        document_id: int,
    ) -> Sequence[tuple[ConceptModel, str]]:
        """
        Retrieve every chapter-level concept of a document with its chapter title.

        Returns:
            Sequence of (ConceptModel, chapter title) in chapter order
        """
        stmt = (
            select(ConceptModel, ChapterModel.title)
            .join(ChapterModel, ChapterModel.id == ConceptModel.chapter_id)
            .where(
                ConceptModel.document_id == document_id,
                ConceptModel.is_consolidated.is_(False),
            )
            .order_by(ChapterModel.chapter_index, ConceptModel.id)
        )
        result = await session.execute(stmt)
        return [(concept, title) for concept, title in result.all()]

    async def get_by_chapter(self, session: AsyncSession, chapter_id: int) -> Sequence[ConceptModel]:
        """Retrieve a chapter's concepts, most important first."""
        stmt = (
            select(ConceptModel)
            .where(ConceptModel.chapter_id == chapter_id, ConceptModel.is_consolidated.is_(False))
            .order_by(ConceptModel.importance.desc(), ConceptModel.id)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_consolidated(self, session: AsyncSession, document_id: int) -> Sequence[ConceptModel]:
        """Retrieve a document's consolidated concepts, most important first."""
        stmt = (
            select(ConceptModel)
            .where(
                ConceptModel.document_id == document_id,
                ConceptModel.is_consolidated.is_(True),
            )
            .order_by(ConceptModel.importance.desc(), ConceptModel.id)
        )
        result = await session.execute(stmt)
        return result.scalars().all()


concept_crud = ConceptCRUD()
