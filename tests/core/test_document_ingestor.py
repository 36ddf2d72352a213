"""
Tests for document ingestion, chapter planning and chunking.

Dependencies: pytest, pytest-asyncio, pagewise.core.ingestion
System role: Ingestion entry point validation
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pagewise.boundary.db.CRUD import document_crud, job_crud
from pagewise.boundary.db.models import JobStatus, JobType, ProcessingStatus
from pagewise.core.exceptions import DocumentError, DuplicateDocumentError, UnrecoverableInputError
from pagewise.core.ingestion.chunker import ChapterChunker
from pagewise.core.ingestion.document_ingestor import SCANNED_MESSAGE, DocumentIngestor, plan_chapters
from pagewise.core.interfaces import DocumentText, OutlineEntry
from pagewise.core.token_counter import estimate_tokens


@pytest.fixture
def pdf_file(tmp_path):
    """A file standing in for a PDF; the text provider is mocked."""
    path = tmp_path / "book.pdf"
    path.write_bytes(b"%PDF-1.4 test content")
    return path


class TestPlanChapters:
    """Test suite for plan_chapters."""

    def test_outline_entries_should_become_chapters(self, sample_document_text):
        """Test chapters start at outline pages and end where the next begins."""
        # Act
        plans = plan_chapters(sample_document_text, fallback_title="book")

        # Assert
        assert [plan.title for plan in plans] == ["Chapter One", "Chapter Two"]
        boundary = sample_document_text.page_start_offset(3)
        assert (plans[0].start_idx, plans[0].end_idx) == (0, boundary)
        assert (plans[1].start_idx, plans[1].end_idx) == (boundary, len(sample_document_text.full_text))
        assert (plans[0].start_page, plans[0].end_page) == (1, 2)
        assert (plans[1].start_page, plans[1].end_page) == (3, 3)

    def test_missing_outline_should_give_single_chapter(self):
        """Test a document without bookmarks is one chapter."""
        text = DocumentText(pages=["a" * 100, "b" * 100])

        plans = plan_chapters(text, fallback_title="notes")

        assert len(plans) == 1
        assert plans[0].title == "notes"
        assert (plans[0].start_idx, plans[0].end_idx) == (0, len(text.full_text))
        assert (plans[0].start_page, plans[0].end_page) == (1, 2)

    def test_entries_on_same_page_should_merge(self):
        """Test a later entry starting on an already used page is dropped."""
        text = DocumentText(
            pages=["a" * 100, "b" * 100, "c" * 100],
            outline=[OutlineEntry("Part I", 2), OutlineEntry("Chapter 1", 2), OutlineEntry("Chapter 2", 3)],
        )

        plans = plan_chapters(text, fallback_title="book")

        assert [plan.title for plan in plans] == ["Part I", "Chapter 2"]

    def test_out_of_range_pages_should_be_clamped(self):
        """Test outline pages beyond the document are clamped to the last page."""
        text = DocumentText(pages=["a" * 100, "b" * 100], outline=[OutlineEntry("Appendix", 99)])

        plans = plan_chapters(text, fallback_title="book")

        assert len(plans) == 1
        assert plans[0].end_idx == len(text.full_text)


class TestChapterChunker:
    """Test suite for ChapterChunker."""

    def test_chunks_should_cover_chapter_with_page_ranges(self, sample_document_text):
        """Test chunks are indexed in order and attributed to pages."""
        # Arrange
        chunker = ChapterChunker(chunk_size=120, chunk_overlap=20)

        # Act
        drafts = chunker.chunk(sample_document_text, 0, len(sample_document_text.full_text))

        # Assert
        assert [draft.chunk_index for draft in drafts] == list(range(len(drafts)))
        assert drafts[0].page_start == 1
        assert drafts[-1].page_end == 3
        assert all(draft.page_start <= draft.page_end for draft in drafts)
        assert all(draft.token_count == estimate_tokens(draft.content) for draft in drafts)

    def test_chapter_slice_should_stay_on_its_pages(self, sample_document_text):
        """Test chunking a single page range only yields that page."""
        chunker = ChapterChunker(chunk_size=120, chunk_overlap=20)
        start = sample_document_text.page_start_offset(2)
        end = sample_document_text.page_start_offset(3)

        drafts = chunker.chunk(sample_document_text, start, end)

        assert drafts
        assert {(draft.page_start, draft.page_end) for draft in drafts} == {(2, 2)}

    def test_blank_chapter_should_give_no_chunks(self):
        """Test whitespace-only chapters produce nothing."""
        text = DocumentText(pages=["   ", "   "])

        assert ChapterChunker().chunk(text, 0, len(text.full_text)) == []


class TestDocumentIngestor:
    """Test suite for DocumentIngestor."""

    @pytest.mark.asyncio
    async def test_ingest_should_create_document_chapters_and_jobs(
        self, session_factory, mock_text_provider, pdf_file
    ):
        """Test a new document is registered with its full job set."""
        # Arrange
        ingestor = DocumentIngestor(session_factory, mock_text_provider)

        # Act
        document = await ingestor.ingest(str(pdf_file))

        # Assert
        assert document.filename == "book.pdf"
        assert document.status == ProcessingStatus.PROCESSING
        assert document.page_count == 3
        assert [chapter.title for chapter in document.chapters] == ["Chapter One", "Chapter Two"]
        async with session_factory() as db:
            jobs = await job_crud.get_by_document(db, document.id)
        assert len(jobs) == 8
        assert all(job.status == JobStatus.PENDING for job in jobs)
        assert sum(job.type == JobType.EMBED for job in jobs) == 2
        assert sum(job.chapter_id is None for job in jobs) == 2

    @pytest.mark.asyncio
    async def test_ingest_same_file_twice_should_raise_duplicate(
        self, session_factory, mock_text_provider, pdf_file
    ):
        """Test duplicate content is rejected with the existing id."""
        ingestor = DocumentIngestor(session_factory, mock_text_provider)
        document = await ingestor.ingest(str(pdf_file))

        with pytest.raises(DuplicateDocumentError) as exc_info:
            await ingestor.ingest(str(pdf_file))

        assert exc_info.value.existing_id == document.id

    @pytest.mark.asyncio
    async def test_scanned_document_should_be_rejected_before_any_row(self, session_factory, pdf_file):
        """Test image-only PDFs are refused and nothing is stored."""
        # Arrange
        provider = MagicMock()
        provider.load = AsyncMock(return_value=DocumentText(pages=["", "12", ""]))
        ingestor = DocumentIngestor(session_factory, provider)

        # Act
        with pytest.raises(UnrecoverableInputError) as exc_info:
            await ingestor.ingest(str(pdf_file))

        # Assert
        assert exc_info.value.message == SCANNED_MESSAGE
        async with session_factory() as db:
            assert await document_crud.get_all(db) == []

    @pytest.mark.asyncio
    async def test_missing_file_should_raise_document_error(self, session_factory, mock_text_provider, tmp_path):
        """Test a path that does not exist is reported."""
        ingestor = DocumentIngestor(session_factory, mock_text_provider)

        with pytest.raises(DocumentError):
            await ingestor.ingest(str(tmp_path / "missing.pdf"))

        mock_text_provider.load.assert_not_called()
