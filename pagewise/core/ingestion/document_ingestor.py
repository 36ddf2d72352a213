"""
Document ingestion entry point.

Registers a PDF: hashes it for duplicate detection, extracts its text,
rejects image-only scans, derives chapters from the outline and queues the
full job set in one transaction. The scheduler does the heavy work later.

Dependencies: sqlalchemy, fastapi.concurrency, pagewise.boundary.db, pagewise.core
System role: Synchronous half of the ingestion pipeline
"""

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pagewise.boundary.db.CRUD import chapter_crud, document_crud, job_crud
from pagewise.boundary.db.models import DocumentModel, ProcessingStatus
from pagewise.core.exceptions import DocumentError, DuplicateDocumentError, UnrecoverableInputError
from pagewise.core.interfaces import DocumentText, DocumentTextProvider

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 50 * 1024 * 1024
MIN_CHARS_PER_PAGE = 50
SCANNED_MESSAGE = "This PDF appears to be scanned. Only text-based PDFs are supported."


@dataclass(frozen=True)
class ChapterPlan:
    """Boundaries of one chapter before it is persisted."""

    title: str
    start_idx: int
    end_idx: int
    start_page: int
    end_page: int


def plan_chapters(document_text: DocumentText, fallback_title: str) -> list[ChapterPlan]:
    """
    Derive chapter boundaries from the document outline.

    Outline entries become chapters starting at their page; each chapter ends
    where the next begins. Entries that start on the same page as an earlier
    one are merged into it. Without an outline the whole text is one chapter.

    Args:
        document_text: Extracted document text and outline
        fallback_title: Title of the single chapter used when there is no outline

    Returns:
        list[ChapterPlan]: Chapters in reading order, never empty
    """
    text_length = len(document_text.full_text)
    page_count = max(document_text.page_count, 1)

    starts: list[tuple[str, int]] = []
    for entry in sorted(document_text.outline, key=lambda e: e.page):
        page = min(max(entry.page, 1), page_count)
        if starts and starts[-1][1] == page:
            continue
        starts.append((entry.title.strip() or f"Section {len(starts) + 1}", page))

    if not starts:
        return [ChapterPlan(fallback_title, 0, text_length, 1, page_count)]

    plans = []
    for position, (title, page) in enumerate(starts):
        if position + 1 < len(starts):
            next_page = starts[position + 1][1]
            end_idx = document_text.page_start_offset(next_page)
            end_page = max(page, next_page - 1)
        else:
            end_idx = text_length
            end_page = page_count
        # The first chapter absorbs any front matter before it.
        start_idx = 0 if position == 0 else document_text.page_start_offset(page)
        plans.append(ChapterPlan(title, start_idx, end_idx, 1 if position == 0 else page, end_page))
    return plans


def _hash_file(path: Path) -> str:
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for block in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(block)
    return digest.hexdigest()


class DocumentIngestor:
    """Registers documents and queues their ingestion jobs."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        text_provider: DocumentTextProvider,
    ) -> None:
        self._session_factory = session_factory
        self._text_provider = text_provider

    async def ingest(self, path: str) -> DocumentModel:
        """
        Register a document and queue its processing jobs.

        Args:
            path: Path of the PDF file

        Returns:
            DocumentModel: The created document with its chapters loaded

        Raises:
            DocumentError: If the file does not exist
            DuplicateDocumentError: If a document with the same content already exists
            UnrecoverableInputError: If the file is too large or has no extractable text
        """
        file_path = Path(path)
        if not file_path.is_file():
            raise DocumentError(f"File not found: {path}", {"path": path})
        if file_path.stat().st_size > MAX_FILE_SIZE:
            raise UnrecoverableInputError("File exceeds 50MB limit", {"path": path})

        file_hash = await run_in_threadpool(_hash_file, file_path)
        async with self._session_factory() as db:
            existing = await document_crud.get_by_hash(db, file_hash)
        if existing is not None:
            logger.info(f"{__name__}:ingest - Duplicate of document {existing.id}: {file_path.name}")
            raise DuplicateDocumentError(existing.id, file_hash)

        document_text = await self._text_provider.load(str(file_path))
        total_chars = sum(len(page) for page in document_text.pages)
        if document_text.page_count == 0 or total_chars / document_text.page_count < MIN_CHARS_PER_PAGE:
            logger.warning(f"{__name__}:ingest - Rejecting image-only document {file_path.name}")
            raise UnrecoverableInputError(
                SCANNED_MESSAGE,
                {"path": path, "page_count": document_text.page_count, "total_chars": total_chars},
            )

        plans = plan_chapters(document_text, fallback_title=file_path.stem)

        async with self._session_factory() as db:
            document = await document_crud.create(
                db,
                filename=file_path.name,
                filepath=str(file_path.resolve()),
                file_hash=file_hash,
                page_count=document_text.page_count,
                status=ProcessingStatus.PROCESSING,
            )
            chapters = await chapter_crud.create_many(
                db,
                (
                    {
                        "document_id": document.id,
                        "title": plan.title,
                        "chapter_index": index,
                        "start_idx": plan.start_idx,
                        "end_idx": plan.end_idx,
                        "start_page": plan.start_page,
                        "end_page": plan.end_page,
                        "status": ProcessingStatus.PROCESSING,
                        "summary_status": ProcessingStatus.PROCESSING,
                        "concepts_status": ProcessingStatus.PROCESSING,
                    }
                    for index, plan in enumerate(plans)
                ),
            )
            jobs = await job_crud.create_document_jobs(db, document.id, [chapter.id for chapter in chapters])
            await db.commit()
            document = await document_crud.get_with_chapters(db, document.id)

        logger.info(
            f"{__name__}:ingest - Registered document {document.id} ({file_path.name}): "
            f"{document_text.page_count} pages, {len(chapters)} chapters, {len(jobs)} jobs queued"
        )
        return document
