"""
Document and chapter CRUD operations.

Dependencies: sqlalchemy, pagewise.boundary.db.models
System role: Document structure persistence operations
"""

from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pagewise.boundary.db.CRUD.base_crud import BaseCRUD
from pagewise.boundary.db.models import ChapterModel, DocumentModel, ProcessingStatus


class DocumentCRUD(BaseCRUD[DocumentModel]):
    """CRUD operations for DocumentModel."""

    def __init__(self) -> None:
        """Initialize DocumentCRUD with DocumentModel."""
        super().__init__(DocumentModel)

    async def get_by_hash(self, session: AsyncSession, file_hash: str) -> DocumentModel | None:
        """
        Retrieve a document by content hash.

        Args:
            session: Async database session
            file_hash: SHA-256 hex digest of the file

        Returns:
            DocumentModel if found, None otherwise
        """
        stmt = select(DocumentModel).where(DocumentModel.file_hash == file_hash)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_with_chapters(self, session: AsyncSession, document_id: int) -> DocumentModel | None:
        """Retrieve a document with its chapters eagerly loaded."""
        stmt = (
            select(DocumentModel)
            .where(DocumentModel.id == document_id)
            .options(selectinload(DocumentModel.chapters))
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def set_status(
        self,
        session: AsyncSession,
        document_id: int,
        status: ProcessingStatus,
        error_message: str | None = None,
    ) -> bool:
        """
        Update a document's aggregate status.

        Args:
            session: Async database session
            document_id: Document primary key
            status: New status
            error_message: Error text (cleared when None)

        Returns:
            True if the document exists
        """
        return await self.update_by_id(
            session,
            document_id,
            status=status,
            error_message=error_message,
        )


class ChapterCRUD(BaseCRUD[ChapterModel]):
    """
    CRUD operations for ChapterModel.

    Each processing stage (embed, summary, concepts) has its own status
    setter so a failure in one stage never overwrites another.
    """

    def __init__(self) -> None:
        """Initialize ChapterCRUD with ChapterModel."""
        super().__init__(ChapterModel)

    async def get_by_document(self, session: AsyncSession, document_id: int) -> Sequence[ChapterModel]:
        """
        Retrieve a document's chapters in reading order.

        Args:
            session: Async database session
            document_id: Document primary key

        Returns:
            Sequence of ChapterModels ordered by chapter_index
        """
        stmt = (
            select(ChapterModel)
            .where(ChapterModel.document_id == document_id)
            .order_by(ChapterModel.chapter_index)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def set_embed_status(
        self,
        session: AsyncSession,
        chapter_id: int,
        status: ProcessingStatus,
        error_message: str | None = None,
    ) -> bool:
        """Update the embed stage status (the chapter's main status)."""
        return await self.update_by_id(session, chapter_id, status=status, error_message=error_message)

    async def set_summary(
        self,
        session: AsyncSession,
        chapter_id: int,
        status: ProcessingStatus,
        summary: str | None = None,
        error_message: str | None = None,
    ) -> bool:
        """Update the summary stage status and, when given, the summary text."""
        values = {"summary_status": status, "summary_error": error_message}
        if summary is not None:
            values["summary"] = summary
        return await self.update_by_id(session, chapter_id, **values)

    async def set_concepts_status(
        self,
        session: AsyncSession,
        chapter_id: int,
        status: ProcessingStatus,
        error_message: str | None = None,
    ) -> bool:
        """Update the concept extraction stage status."""
        return await self.update_by_id(
            session,
            chapter_id,
            concepts_status=status,
            concepts_error=error_message,
        )

    async def mark_all_processing(self, session: AsyncSession, document_id: int) -> None:
        """Flag every stage of every chapter of a document as processing."""
        stmt = (
            update(ChapterModel)
            .where(ChapterModel.document_id == document_id)
            .values(
                status=ProcessingStatus.PROCESSING,
                summary_status=ProcessingStatus.PROCESSING,
                concepts_status=ProcessingStatus.PROCESSING,
            )
        )
        await session.execute(stmt)


document_crud = DocumentCRUD()
chapter_crud = ChapterCRUD()
