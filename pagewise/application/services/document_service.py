"""
Document service orchestrator.

Coordinates document registration, lookup and deletion. Deletion cancels
the document's ingestion work before removing rows and vectors.

Dependencies: sqlalchemy, pagewise.boundary.db, pagewise.core
System role: Document management orchestration
"""

import logging
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from pagewise.boundary.db.CRUD import chunk_crud, document_crud
from pagewise.boundary.db.models import DocumentModel
from pagewise.core.exceptions import DocumentNotFoundError
from pagewise.core.ingestion.document_ingestor import DocumentIngestor
from pagewise.core.interfaces import VectorIndex
from pagewise.core.scheduling import IngestionScheduler

logger = logging.getLogger(__name__)


class DocumentService:
    """
    Document service orchestrator.

    Handles the document lifecycle: registration, status lookup, deletion.
    """

    def __init__(
        self,
        db: AsyncSession,
        ingestor: DocumentIngestor,
        scheduler: IngestionScheduler,
        vector_index: VectorIndex,
    ) -> None:
        """
        Initialize document service.

        Args:
            db: AsyncSession for document reads and deletion
            ingestor: Document ingestor (hashing, chapters, job creation)
            scheduler: Ingestion scheduler, used to cancel work on deletion
            vector_index: Vector index holding the document's chunk embeddings
        """
        self.db = db
        self._ingestor = ingestor
        self._scheduler = scheduler
        self._vector_index = vector_index

    async def ingest(self, path: str) -> DocumentModel:
        """
        Register a PDF and queue its processing.

        Raises:
            DuplicateDocumentError: If the same file was already added
            UnrecoverableInputError: If the file cannot be processed
        """
        return await self._ingestor.ingest(path)

    async def get_document(self, document_id: int) -> DocumentModel:
        """
        Get a document with its chapters.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        document = await document_crud.get_with_chapters(self.db, document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    async def list_documents(self) -> Sequence[DocumentModel]:
        """List all documents, oldest first."""
        return await document_crud.get_all(self.db)

    async def delete_document(self, document_id: int) -> None:
        """
        Delete a document and everything derived from it.

        Steps:
        1. Cancel in-flight and queued jobs
        2. Collect chunk ids for vector removal
        3. Delete the document row (chapters, chunks, messages cascade)
        4. Remove the chunk vectors

        Args:
            document_id: Document to delete

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        if not await document_crud.exists(self.db, document_id):
            raise DocumentNotFoundError(document_id)

        cancelled = await self._scheduler.cancel(document_id)
        chunk_ids = await chunk_crud.get_ids(self.db, document_id)
        await document_crud.delete_by_id(self.db, document_id)
        await self.db.commit()

        if chunk_ids:
            await self._vector_index.remove(chunk_ids)
        logger.info(
            f"{__name__}:delete_document - Deleted document {document_id} "
            f"({len(chunk_ids)} chunks, {cancelled} queued jobs)"
        )
