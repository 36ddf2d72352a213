"""
Tests for DocumentService.

Dependencies: pytest, pytest-asyncio, pagewise.application.services
System role: Document lifecycle validation
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pagewise.application.services import DocumentService
from pagewise.boundary.db.CRUD import document_crud
from pagewise.core.exceptions import DocumentNotFoundError


@pytest.fixture
def scheduler():
    mock = MagicMock()
    mock.cancel = AsyncMock(return_value=5)
    return mock


@pytest.fixture
def vector_index():
    mock = MagicMock()
    mock.remove = AsyncMock()
    return mock


@pytest.fixture
def ingestor():
    mock = MagicMock()
    mock.ingest = AsyncMock()
    return mock


@pytest.fixture
def document_service(test_async_db, ingestor, scheduler, vector_index):
    return DocumentService(db=test_async_db, ingestor=ingestor, scheduler=scheduler, vector_index=vector_index)


class TestDocumentService:
    """Test suite for DocumentService."""

    @pytest.mark.asyncio
    async def test_ingest_should_delegate_to_ingestor(self, document_service, ingestor):
        """Test registration is handled by the ingestor."""
        ingestor.ingest.return_value = MagicMock(id=1)

        document = await document_service.ingest("/data/book.pdf")

        assert document.id == 1
        ingestor.ingest.assert_awaited_once_with("/data/book.pdf")

    @pytest.mark.asyncio
    async def test_get_document_should_include_chapters(self, document_service, make_document):
        """Test documents are returned with chapters."""
        document_id, chapter_ids = await make_document(chapter_titles=("One", "Two"))

        document = await document_service.get_document(document_id)

        assert [chapter.id for chapter in document.chapters] == chapter_ids

    @pytest.mark.asyncio
    async def test_get_missing_document_should_raise(self, document_service):
        """Test unknown ids raise DocumentNotFoundError."""
        with pytest.raises(DocumentNotFoundError):
            await document_service.get_document(404)

    @pytest.mark.asyncio
    async def test_list_documents_should_return_all(self, document_service, make_document):
        """Test every document is listed."""
        await make_document()
        await make_document()

        assert len(await document_service.list_documents()) == 2

    @pytest.mark.asyncio
    async def test_delete_should_cancel_then_remove_rows_and_vectors(
        self, document_service, make_document, make_chunks, scheduler, vector_index, session_factory
    ):
        """Test deletion cancels work, deletes the document and drops its vectors."""
        # Arrange
        document_id, chapter_ids = await make_document(with_jobs=True)
        chunk_ids = await make_chunks(document_id, chapter_ids[0], ["one", "two"])

        # Act
        await document_service.delete_document(document_id)

        # Assert
        scheduler.cancel.assert_awaited_once_with(document_id)
        vector_index.remove.assert_awaited_once()
        assert sorted(vector_index.remove.call_args.args[0]) == sorted(chunk_ids)
        async with session_factory() as db:
            assert await document_crud.get_by_id(db, document_id) is None

    @pytest.mark.asyncio
    async def test_delete_without_chunks_should_skip_vector_index(
        self, document_service, make_document, vector_index
    ):
        """Test no vector removal happens when nothing was embedded."""
        document_id, _ = await make_document()

        await document_service.delete_document(document_id)

        vector_index.remove.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_missing_document_should_raise(self, document_service, scheduler):
        """Test unknown ids raise before anything is cancelled."""
        with pytest.raises(DocumentNotFoundError):
            await document_service.delete_document(404)

        scheduler.cancel.assert_not_called()
