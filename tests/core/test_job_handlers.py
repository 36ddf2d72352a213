"""
Tests for ingestion job handlers.

Dependencies: pytest, pytest-asyncio, faiss-cpu, pagewise.core.ingestion
System role: Per-job-type unit of work validation
"""

import pytest

from pagewise.boundary.db.CRUD import chapter_crud, chunk_crud, concept_crud, document_crud, job_crud
from pagewise.boundary.db.models import JobType, ProcessingStatus
from pagewise.boundary.vdb.faiss_index import FaissVectorIndex
from pagewise.core.exceptions import JobCancelledError, MissingPreconditionError, ProviderError
from pagewise.core.ingestion.chunker import ChapterChunker
from pagewise.core.ingestion.job_handlers import JobHandlers
from pagewise.core.scheduling import ProgressNotifier
from pagewise.models.generation import (
    AttributedQuote,
    ChapterConcepts,
    Concept,
    ConceptQuote,
    ConsolidatedConcept,
    ConsolidatedConcepts,
    DocumentMetadata,
)


def no_checkpoint() -> None:
    """Checkpoint of a document that is never cancelled."""


@pytest.fixture
def vector_index():
    """In-memory FAISS index."""
    return FaissVectorIndex(index_dir=None)


@pytest.fixture
def progress_events():
    return []


@pytest.fixture
def handlers(session_factory, mock_text_provider, vector_index, mock_llm, progress_events):
    notifier = ProgressNotifier(debounce_ms=0)
    notifier.subscribe(progress_events.append)
    return JobHandlers(
        session_factory=session_factory,
        text_provider=mock_text_provider,
        vector_index=vector_index,
        llm=mock_llm,
        notifier=notifier,
        chunker=ChapterChunker(chunk_size=200, chunk_overlap=20),
        embed_batch_size=2,
    )


@pytest.fixture
def load_job(session_factory):
    """Load a document's job of a given type (and chapter)."""

    async def _load(document_id: int, job_type: JobType, chapter_id: int | None = None):
        async with session_factory() as db:
            jobs = await job_crud.get_by_document(db, document_id)
        return next(
            job for job in jobs
            if job.type == job_type and (chapter_id is None or job.chapter_id == chapter_id)
        )

    return _load


class TestEmbedHandler:
    """Test suite for the embed job."""

    @pytest.mark.asyncio
    async def test_embed_should_store_chunks_and_vectors(
        self, handlers, make_document, load_job, session_factory, vector_index, progress_events
    ):
        """Test chunks are persisted, embedded in batches and progress is reported."""
        # Arrange
        document_id, chapter_ids = await make_document(with_jobs=True)
        job = await load_job(document_id, JobType.EMBED)

        # Act
        await handlers.run(job, no_checkpoint)

        # Assert
        async with session_factory() as db:
            chunks = await chunk_crud.get_by_chapter(db, chapter_ids[0])
        assert len(chunks) > 2
        assert vector_index.size == len(chunks)
        assert all(chunk.heading == "Chapter 1" for chunk in chunks)
        assert progress_events[0].percent == 0
        assert progress_events[-1].percent == 100
        assert progress_events[-1].total == len(chunks)

    @pytest.mark.asyncio
    async def test_rerun_should_replace_previous_chunks(
        self, handlers, make_document, load_job, session_factory, vector_index
    ):
        """Test a retried embed job starts from a clean chapter."""
        # Arrange
        document_id, chapter_ids = await make_document(with_jobs=True)
        job = await load_job(document_id, JobType.EMBED)
        await handlers.run(job, no_checkpoint)
        async with session_factory() as db:
            first_ids = await chunk_crud.get_ids(db, document_id)

        # Act
        await handlers.run(job, no_checkpoint)

        # Assert
        async with session_factory() as db:
            second_ids = await chunk_crud.get_ids(db, document_id)
        assert len(second_ids) == len(first_ids)
        assert not set(first_ids) & set(second_ids)
        assert vector_index.size == len(second_ids)

    @pytest.mark.asyncio
    async def test_vector_count_mismatch_should_raise_provider_error(
        self, handlers, make_document, load_job, mock_llm
    ):
        """Test a short embedding response is treated as a provider failure."""
        document_id, _ = await make_document(with_jobs=True)
        job = await load_job(document_id, JobType.EMBED)
        mock_llm.embed.side_effect = lambda texts: [[1.0, 0.0]]

        with pytest.raises(ProviderError):
            await handlers.run(job, no_checkpoint)

    @pytest.mark.asyncio
    async def test_cancelled_checkpoint_should_stop_before_writing(
        self, handlers, make_document, load_job, session_factory, mock_text_provider
    ):
        """Test cancellation at the first checkpoint leaves no chunks."""
        # Arrange
        document_id, chapter_ids = await make_document(with_jobs=True)
        job = await load_job(document_id, JobType.EMBED)

        def cancelled() -> None:
            raise JobCancelledError(document_id)

        # Act
        with pytest.raises(JobCancelledError):
            await handlers.run(job, cancelled)

        # Assert
        mock_text_provider.load.assert_not_called()
        async with session_factory() as db:
            assert await chunk_crud.count_by_chapter(db, chapter_ids[0]) == 0


class TestChapterHandlers:
    """Test suite for summarize and extract_concepts."""

    @pytest.mark.asyncio
    async def test_summarize_without_chunks_should_raise_missing_precondition(
        self, handlers, make_document, load_job
    ):
        """Test summarize refuses to run before the chapter is embedded."""
        document_id, _ = await make_document(with_jobs=True)
        job = await load_job(document_id, JobType.SUMMARIZE)

        with pytest.raises(MissingPreconditionError):
            await handlers.run(job, no_checkpoint)

    @pytest.mark.asyncio
    async def test_embedded_chapter_without_chunks_should_complete_empty(
        self, handlers, make_document, load_job, session_factory, mock_llm
    ):
        """Test a blank chapter that embedded to no chunks gets no summary or concepts, without failing."""
        # Arrange
        document_id, chapter_ids = await make_document(with_jobs=True)
        async with session_factory() as db:
            await chapter_crud.set_embed_status(db, chapter_ids[0], ProcessingStatus.DONE)
            await db.commit()
        summarize = await load_job(document_id, JobType.SUMMARIZE)
        extract = await load_job(document_id, JobType.EXTRACT_CONCEPTS)

        # Act
        await handlers.run(summarize, no_checkpoint)
        await handlers.run(extract, no_checkpoint)

        # Assert
        async with session_factory() as db:
            chapter = await chapter_crud.get_by_id(db, chapter_ids[0])
            rows = await concept_crud.get_chapter_concepts_with_titles(db, document_id)
        assert chapter.summary is None
        assert chapter.summary_status == ProcessingStatus.DONE
        assert chapter.concepts_status == ProcessingStatus.DONE
        assert rows == []
        mock_llm.generate_text.assert_not_called()
        mock_llm.generate_structured.assert_not_called()

    @pytest.mark.asyncio
    async def test_summarize_should_store_summary(
        self, handlers, make_document, make_chunks, load_job, session_factory
    ):
        """Test the generated summary is saved on the chapter."""
        # Arrange
        document_id, chapter_ids = await make_document(with_jobs=True)
        await make_chunks(document_id, chapter_ids[0], ["chunk"])
        job = await load_job(document_id, JobType.SUMMARIZE)

        # Act
        await handlers.run(job, no_checkpoint)

        # Assert
        async with session_factory() as db:
            chapter = await chapter_crud.get_by_id(db, chapter_ids[0])
        assert chapter.summary == "Generated text"
        assert chapter.summary_status == ProcessingStatus.DONE

    @pytest.mark.asyncio
    async def test_extract_concepts_should_store_chapter_concepts(
        self, handlers, make_document, make_chunks, load_job, session_factory, mock_llm
    ):
        """Test extracted concepts replace the chapter's concepts."""
        # Arrange
        document_id, chapter_ids = await make_document(with_jobs=True)
        await make_chunks(document_id, chapter_ids[0], ["chunk"])
        job = await load_job(document_id, JobType.EXTRACT_CONCEPTS)
        mock_llm.generate_structured.return_value = ChapterConcepts(
            concepts=[
                Concept(
                    name="Alpha",
                    definition="The first letter.",
                    importance=5,
                    quotes=[ConceptQuote(text="Alpha beta gamma.", page=2)],
                )
            ]
        )

        # Act
        await handlers.run(job, no_checkpoint)

        # Assert
        async with session_factory() as db:
            rows = await concept_crud.get_chapter_concepts_with_titles(db, document_id)
            chapter = await chapter_crud.get_by_id(db, chapter_ids[0])
        assert [(concept.name, title) for concept, title in rows] == [("Alpha", "Chapter 1")]
        assert rows[0][0].quotes == [{"text": "Alpha beta gamma.", "page": 2}]
        assert chapter.concepts_status == ProcessingStatus.DONE


class TestDocumentHandlers:
    """Test suite for extract_metadata and consolidate."""

    @pytest.mark.asyncio
    async def test_extract_metadata_should_update_title(
        self, handlers, make_document, load_job, session_factory, mock_llm
    ):
        """Test extracted metadata is stored and its title adopted."""
        document_id, _ = await make_document(with_jobs=True)
        job = await load_job(document_id, JobType.EXTRACT_METADATA)
        mock_llm.generate_structured.return_value = DocumentMetadata(title="Greek Letters", author="A. Writer")

        await handlers.run(job, no_checkpoint)

        async with session_factory() as db:
            document = await document_crud.get_by_id(db, document_id)
        assert document.title == "Greek Letters"
        assert document.metadata_["author"] == "A. Writer"

    @pytest.mark.asyncio
    async def test_consolidate_without_concepts_should_be_noop(
        self, handlers, make_document, load_job, mock_llm
    ):
        """Test consolidation with nothing to merge skips the model call."""
        document_id, _ = await make_document(with_jobs=True)
        job = await load_job(document_id, JobType.CONSOLIDATE)

        await handlers.run(job, no_checkpoint)

        mock_llm.generate_structured.assert_not_called()

    @pytest.mark.asyncio
    async def test_consolidate_should_store_document_concepts(
        self, handlers, make_document, load_job, session_factory, mock_llm
    ):
        """Test chapter concepts are merged into consolidated concepts."""
        # Arrange
        document_id, chapter_ids = await make_document(chapter_titles=("One", "Two"), with_jobs=True)
        async with session_factory() as db:
            for chapter_id in chapter_ids:
                await concept_crud.replace_for_chapter(
                    db,
                    document_id,
                    chapter_id,
                    [{"name": "Alpha", "definition": "First.", "importance": 4, "quotes": []}],
                )
            await db.commit()
        job = await load_job(document_id, JobType.CONSOLIDATE)
        mock_llm.generate_structured.return_value = ConsolidatedConcepts(
            consolidated_concepts=[
                ConsolidatedConcept(
                    name="Alpha",
                    definition="First letter, used throughout.",
                    importance=5,
                    source_concept_names=["Alpha"],
                    quotes=[AttributedQuote(text="Alpha beta gamma.", chapter_title="One")],
                )
            ]
        )

        # Act
        await handlers.run(job, no_checkpoint)

        # Assert
        async with session_factory() as db:
            consolidated = await concept_crud.get_consolidated(db, document_id)
        assert [concept.name for concept in consolidated] == ["Alpha"]
        assert consolidated[0].chapter_id is None
        assert consolidated[0].source_concept_names == ["Alpha"]

    @pytest.mark.asyncio
    async def test_deleted_document_should_raise_missing_precondition(
        self, handlers, make_document, load_job, session_factory
    ):
        """Test a job whose document disappeared is terminal."""
        document_id, _ = await make_document(with_jobs=True)
        job = await load_job(document_id, JobType.EXTRACT_METADATA)
        async with session_factory() as db:
            await document_crud.delete_by_id(db, document_id)
            await db.commit()

        with pytest.raises(MissingPreconditionError):
            await handlers.run(job, no_checkpoint)
