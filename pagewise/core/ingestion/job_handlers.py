"""
Units of work executed by the ingestion scheduler, one per job type.

Handlers read their inputs, call the providers, and persist their own
outputs. Job status transitions and status propagation on failure belong
to the scheduler. Every external call is bracketed by cancellation
checkpoints; a checkpoint raises JobCancelledError when the document is
being cancelled.

Dependencies: sqlalchemy, pagewise.boundary.db, pagewise.core
System role: Job-type-specific ingestion work
"""

import logging
from collections.abc import Callable
from typing import Awaitable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pagewise.boundary.db.CRUD import (
    chapter_crud,
    chunk_crud,
    concept_crud,
    document_crud,
)
from pagewise.boundary.db.models import ChapterModel, DocumentModel, JobModel, JobType, ProcessingStatus
from pagewise.core.exceptions import MissingPreconditionError, ProviderError
from pagewise.core.ingestion.chunker import ChapterChunker
from pagewise.core.ingestion.content_generator import ContentGenerator
from pagewise.core.interfaces import DocumentTextProvider, LLMProvider, VectorIndex
from pagewise.core.scheduling.progress import ProgressNotifier
from pagewise.models.progress import ProgressEvent

logger = logging.getLogger(__name__)

Checkpoint = Callable[[], None]


class JobHandlers:
    """Dispatch a claimed job to the unit of work for its type."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        text_provider: DocumentTextProvider,
        vector_index: VectorIndex,
        llm: LLMProvider,
        notifier: ProgressNotifier,
        chunker: ChapterChunker | None = None,
        embed_batch_size: int = 100,
    ) -> None:
        """
        Initialize handlers with their collaborators.

        Args:
            session_factory: Async session factory for store access
            text_provider: Document text provider
            vector_index: Vector index receiving chunk embeddings
            llm: Language-model provider
            notifier: Progress notifier for embed progress
            chunker: Chapter chunker (default 1500/200)
            embed_batch_size: Chunks per embedding request
        """
        self._session_factory = session_factory
        self._text_provider = text_provider
        self._vector_index = vector_index
        self._llm = llm
        self._notifier = notifier
        self._chunker = chunker or ChapterChunker()
        self._embed_batch_size = embed_batch_size
        self._generator = ContentGenerator(llm)
        self._dispatch: dict[JobType, Callable[[JobModel, Checkpoint], Awaitable[None]]] = {
            JobType.EMBED: self.embed,
            JobType.SUMMARIZE: self.summarize,
            JobType.EXTRACT_CONCEPTS: self.extract_concepts,
            JobType.EXTRACT_METADATA: self.extract_metadata,
            JobType.CONSOLIDATE: self.consolidate,
        }

    async def run(self, job: JobModel, checkpoint: Checkpoint) -> None:
        """
        Execute the unit of work for a job.

        Args:
            job: Claimed job
            checkpoint: Raises JobCancelledError when the document is being cancelled
        """
        await self._dispatch[job.type](job, checkpoint)

    async def _load_targets(self, job: JobModel) -> tuple[DocumentModel, ChapterModel | None]:
        async with self._session_factory() as db:
            document = await document_crud.get_by_id(db, job.document_id)
            chapter = await chapter_crud.get_by_id(db, job.chapter_id) if job.chapter_id is not None else None
        if document is None:
            raise MissingPreconditionError(f"Document {job.document_id} no longer exists", {"job_id": job.id})
        if job.chapter_id is not None and chapter is None:
            raise MissingPreconditionError(f"Chapter {job.chapter_id} no longer exists", {"job_id": job.id})
        return document, chapter

    async def _has_content(self, chapter: ChapterModel) -> bool:
        """
        Whether an embedded chapter has any chunks to work from.

        A chapter whose embed finished with no chunks (a blank page range)
        has nothing to summarize or extract; that is not an error.

        Raises:
            MissingPreconditionError: If the chapter has not been embedded yet
        """
        async with self._session_factory() as db:
            count = await chunk_crud.count_by_chapter(db, chapter.id)
        if count > 0:
            return True
        if chapter.status != ProcessingStatus.DONE:
            raise MissingPreconditionError(
                f"No chunks exist for chapter '{chapter.title}'; its embed job has not completed",
                {"chapter_id": chapter.id},
            )
        return False

    async def _chapter_text(self, document: DocumentModel, chapter: ChapterModel, checkpoint: Checkpoint) -> str:
        checkpoint()
        document_text = await self._text_provider.load(document.filepath)
        checkpoint()
        return document_text.full_text[chapter.start_idx:chapter.end_idx]

    async def embed(self, job: JobModel, checkpoint: Checkpoint) -> None:
        """
        Chunk a chapter and embed its chunks in batches.

        Earlier chunks of the chapter are replaced so a retried job starts clean.
        Progress is published after every batch.
        """
        document, chapter = await self._load_targets(job)

        checkpoint()
        document_text = await self._text_provider.load(document.filepath)
        checkpoint()
        drafts = self._chunker.chunk(document_text, chapter.start_idx, chapter.end_idx)

        async with self._session_factory() as db:
            stale_ids = await chunk_crud.delete_by_chapter(db, chapter.id)
            chunks = await chunk_crud.create_many(
                db,
                (
                    {
                        "document_id": document.id,
                        "chapter_id": chapter.id,
                        "chunk_index": draft.chunk_index,
                        "content": draft.content,
                        "heading": chapter.title,
                        "page_start": draft.page_start,
                        "page_end": draft.page_end,
                        "token_count": draft.token_count,
                    }
                    for draft in drafts
                ),
            )
            chunk_rows = [(chunk.id, chunk.content) for chunk in chunks]
            await db.commit()
        if stale_ids:
            await self._vector_index.remove(stale_ids)

        total = len(chunk_rows)
        logger.info(f"{__name__}:embed - chapter_id={chapter.id}: {total} chunks to embed")
        self._publish(job, processed=0, total=total)

        processed = 0
        for start in range(0, total, self._embed_batch_size):
            batch = chunk_rows[start:start + self._embed_batch_size]
            checkpoint()
            vectors = await self._llm.embed([content for _, content in batch])
            checkpoint()
            if len(vectors) != len(batch):
                raise ProviderError("embed", f"expected {len(batch)} vectors, got {len(vectors)}")
            await self._vector_index.upsert([(chunk_id, vector) for (chunk_id, _), vector in zip(batch, vectors)])
            processed += len(batch)
            self._publish(job, processed=processed, total=total)

    def _publish(self, job: JobModel, processed: int, total: int) -> None:
        self._notifier.publish(
            ProgressEvent(
                document_id=job.document_id,
                chapter_id=job.chapter_id,
                stage="embedding",
                processed=processed,
                total=total,
            )
        )

    async def summarize(self, job: JobModel, checkpoint: Checkpoint) -> None:
        """Summarize an embedded chapter; a chapter with no content is done without a summary."""
        document, chapter = await self._load_targets(job)
        summary = None
        if await self._has_content(chapter):
            text = await self._chapter_text(document, chapter, checkpoint)
            summary = await self._generator.summarize_chapter(chapter.title, text)
            checkpoint()
        else:
            logger.info(f"{__name__}:summarize - chapter_id={chapter.id}: no content, nothing to summarize")

        async with self._session_factory() as db:
            await chapter_crud.set_summary(db, chapter.id, ProcessingStatus.DONE, summary=summary)
            await db.commit()

    async def extract_concepts(self, job: JobModel, checkpoint: Checkpoint) -> None:
        """Extract and store a chapter's key concepts."""
        document, chapter = await self._load_targets(job)
        concepts = []
        if await self._has_content(chapter):
            text = await self._chapter_text(document, chapter, checkpoint)
            concepts = (await self._generator.extract_concepts(chapter.title, text)).concepts
            checkpoint()

        async with self._session_factory() as db:
            await concept_crud.replace_for_chapter(
                db,
                document.id,
                chapter.id,
                [
                    {
                        "name": concept.name,
                        "definition": concept.definition,
                        "importance": concept.importance,
                        "quotes": [quote.model_dump() for quote in concept.quotes],
                    }
                    for concept in concepts
                ],
            )
            await chapter_crud.set_concepts_status(db, chapter.id, ProcessingStatus.DONE)
            await db.commit()
        logger.info(f"{__name__}:extract_concepts - chapter_id={chapter.id}: {len(concepts)} concepts")

    async def extract_metadata(self, job: JobModel, checkpoint: Checkpoint) -> None:
        """Extract bibliographic metadata for the document."""
        document, _ = await self._load_targets(job)

        checkpoint()
        document_text = await self._text_provider.load(document.filepath)
        checkpoint()
        metadata = await self._generator.extract_metadata(document_text.full_text)
        checkpoint()

        values = {"metadata_": metadata.model_dump()}
        if metadata.title:
            values["title"] = metadata.title
        async with self._session_factory() as db:
            await document_crud.update_by_id(db, document.id, **values)
            await db.commit()

    async def consolidate(self, job: JobModel, checkpoint: Checkpoint) -> None:
        """Merge chapter concepts into document-level concepts."""
        document, _ = await self._load_targets(job)

        async with self._session_factory() as db:
            rows = await concept_crud.get_chapter_concepts_with_titles(db, document.id)
        if not rows:
            logger.info(f"{__name__}:consolidate - document_id={document.id}: no chapter concepts to consolidate")
            return

        concepts_by_chapter: dict[str, list[dict]] = {}
        for concept, chapter_title in rows:
            concepts_by_chapter.setdefault(chapter_title, []).append({
                "name": concept.name,
                "definition": concept.definition,
                "importance": concept.importance,
            })

        checkpoint()
        result = await self._generator.consolidate_concepts(concepts_by_chapter)
        checkpoint()

        async with self._session_factory() as db:
            await concept_crud.replace_consolidated(
                db,
                document.id,
                [
                    {
                        "name": concept.name,
                        "definition": concept.definition,
                        "importance": concept.importance,
                        "source_concept_names": concept.source_concept_names,
                        "quotes": [quote.model_dump() for quote in concept.quotes],
                    }
                    for concept in result.consolidated_concepts
                ],
            )
            await db.commit()
        logger.info(
            f"{__name__}:consolidate - document_id={document.id}: "
            f"{len(result.consolidated_concepts)} consolidated concepts"
        )
