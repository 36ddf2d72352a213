"""
Shared test fixtures and configuration for entire test suite.

Provides: File-backed SQLite database, seeded documents/chunks, LLM and
text provider mocks
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker

from pagewise.boundary.db import create_engine_for_url, init_models
from pagewise.boundary.db.CRUD import chapter_crud, chunk_crud, document_crud, job_crud
from pagewise.boundary.db.models import ProcessingStatus
from pagewise.core.interfaces import DocumentText, OutlineEntry


async def _stream(parts):
    for part in parts:
        yield part


@pytest.fixture
def text_stream():
    """
    Build async iterators standing in for streamed model output.

    Returns:
        Callable: text_stream("a", "b") -> async iterator yielding "a", "b"
    """

    def _make(*parts: str):
        return _stream(parts)

    return _make


@pytest.fixture
async def db_engine(tmp_path):
    """
    Create a file-backed SQLite database for one test.

    A file is used instead of ``:memory:`` because the scheduler and
    services open several sessions that must see each other's commits.

    Yields:
        AsyncEngine: Engine with all tables (and the FTS index) created
    """
    engine = create_engine_for_url(f"sqlite+aiosqlite:///{tmp_path / 'pagewise-test.db'}")
    await init_models(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    """Session factory configured like the application's."""
    return async_sessionmaker(bind=db_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def test_async_db(session_factory):
    """
    Create a database session for testing.

    Yields:
        AsyncSession: Session rolled back after the test
    """
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def make_document(session_factory):
    """
    Factory that persists a document with chapters.

    Returns:
        Callable: await make_document(...) -> (document_id, [chapter_ids])
    """

    async def _make(
        chapter_titles=("Chapter 1",),
        with_jobs: bool = False,
        file_hash: str | None = None,
        status: ProcessingStatus = ProcessingStatus.PROCESSING,
    ) -> tuple[int, list[int]]:
        async with session_factory() as db:
            document = await document_crud.create(
                db,
                filename="book.pdf",
                filepath="/data/book.pdf",
                file_hash=file_hash or uuid.uuid4().hex,
                page_count=len(chapter_titles),
                status=status,
            )
            chapters = await chapter_crud.create_many(
                db,
                [
                    {
                        "document_id": document.id,
                        "title": title,
                        "chapter_index": index,
                        "start_idx": index * 1000,
                        "end_idx": (index + 1) * 1000,
                        "start_page": index + 1,
                        "end_page": index + 1,
                        "status": ProcessingStatus.PROCESSING,
                        "summary_status": ProcessingStatus.PROCESSING,
                        "concepts_status": ProcessingStatus.PROCESSING,
                    }
                    for index, title in enumerate(chapter_titles)
                ],
            )
            chapter_ids = [chapter.id for chapter in chapters]
            if with_jobs:
                await job_crud.create_document_jobs(db, document.id, chapter_ids)
            await db.commit()
            return document.id, chapter_ids

    return _make


@pytest.fixture
def make_chunks(session_factory):
    """
    Factory that persists chunks for a chapter.

    Returns:
        Callable: await make_chunks(document_id, chapter_id, contents) -> [chunk_ids]
    """

    async def _make(document_id: int, chapter_id: int, contents, token_count: int | None = None) -> list[int]:
        async with session_factory() as db:
            chunks = await chunk_crud.create_many(
                db,
                [
                    {
                        "document_id": document_id,
                        "chapter_id": chapter_id,
                        "chunk_index": index,
                        "content": content,
                        "heading": "Chapter",
                        "page_start": index + 1,
                        "page_end": index + 1,
                        "token_count": token_count,
                    }
                    for index, content in enumerate(contents)
                ],
            )
            ids = [chunk.id for chunk in chunks]
            await db.commit()
            return ids

    return _make


@pytest.fixture
def mock_llm(text_stream):
    """
    Create mock LLMProvider.

    Embeddings are two-dimensional; generate_text streams "Generated text"
    unless a test replaces its side effect.

    Returns:
        MagicMock: LLM provider with async methods
    """
    llm = MagicMock()
    llm.embed = AsyncMock(side_effect=lambda texts: [[1.0, float(index)] for index, _ in enumerate(texts)])
    llm.embed_query = AsyncMock(return_value=[1.0, 0.0])
    llm.generate_structured = AsyncMock()
    llm.generate_text = MagicMock(side_effect=lambda system, prompt: text_stream("Generated ", "text"))
    return llm


@pytest.fixture
def sample_document_text():
    """Three pages of text with a two-entry outline."""
    pages = [
        "Preface. " + "Front matter words. " * 10,
        "Chapter one begins here. " + "Alpha beta gamma. " * 20,
        "Chapter two begins here. " + "Delta epsilon zeta. " * 20,
    ]
    return DocumentText(
        pages=pages,
        outline=[OutlineEntry("Chapter One", 2), OutlineEntry("Chapter Two", 3)],
    )


@pytest.fixture
def mock_text_provider(sample_document_text):
    """Text provider returning ``sample_document_text`` for any path."""
    provider = MagicMock()
    provider.load = AsyncMock(return_value=sample_document_text)
    return provider
