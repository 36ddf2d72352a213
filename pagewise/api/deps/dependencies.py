"""
Dependency injection container.

Process-wide components are built lazily by ServiceContainer; request
services are created per request by the factory functions below.

Dependencies: fastapi, pagewise.configs, pagewise.application, pagewise.boundary, pagewise.core
System role: DI container for service injection
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pagewise.application.services import ChatService, ConceptService, DocumentService, JobService
from pagewise.boundary.db import get_async_db, get_async_engine, get_async_session_factory
from pagewise.configs import Settings, get_settings
from pagewise.core.history import HistoryCompactor
from pagewise.core.ingestion.chunker import ChapterChunker
from pagewise.core.ingestion.content_generator import ContentGenerator
from pagewise.core.ingestion.document_ingestor import DocumentIngestor
from pagewise.core.ingestion.job_handlers import JobHandlers
from pagewise.core.interfaces import DocumentTextProvider, LexicalIndex, LLMProvider, VectorIndex
from pagewise.core.retrieval import QueryGuard, RetrievalEngine
from pagewise.core.scheduling import IngestionScheduler, ProgressNotifier


class ServiceContainer:
    """Container for process-wide component instances, created on first access."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._text_provider = None
        self._vector_index = None
        self._lexical_index = None
        self._llm = None
        self._notifier = None
        self._scheduler = None
        self._retrieval_engine = None
        self._history_compactor = None
        self._guard = None

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        return get_async_session_factory()

    @property
    def text_provider(self) -> DocumentTextProvider:
        """Get cached PDF text provider."""
        if self._text_provider is None:
            from pagewise.boundary.documents.pdf_text_provider import PdfTextProvider

            self._text_provider = PdfTextProvider()
        return self._text_provider

    @property
    def vector_index(self) -> VectorIndex:
        """Get cached FAISS vector index."""
        if self._vector_index is None:
            from pagewise.boundary.vdb.faiss_index import FaissVectorIndex

            self._vector_index = FaissVectorIndex(
                index_dir=self.settings.vector_index.index_dir,
                index_name=self.settings.vector_index.index_name,
            )
        return self._vector_index

    @property
    def lexical_index(self) -> LexicalIndex:
        """Get the lexical index matching the database dialect."""
        if self._lexical_index is None:
            from pagewise.boundary.lexical import get_lexical_index

            self._lexical_index = get_lexical_index(get_async_engine().dialect.name)
        return self._lexical_index

    @property
    def llm(self) -> LLMProvider:
        """Get cached Gemini provider."""
        if self._llm is None:
            # Lazy import to avoid loading the model SDK until it is needed
            from pagewise.boundary.llm.gemini_provider import GeminiProvider

            self._llm = GeminiProvider(self.settings.llm)
        return self._llm

    @property
    def notifier(self) -> ProgressNotifier:
        if self._notifier is None:
            self._notifier = ProgressNotifier(debounce_ms=self.settings.scheduler.progress_debounce_ms)
        return self._notifier

    @property
    def scheduler(self) -> IngestionScheduler:
        """Get cached ingestion scheduler wired to the job handlers."""
        if self._scheduler is None:
            scheduler_settings = self.settings.scheduler
            handlers = JobHandlers(
                session_factory=self.session_factory,
                text_provider=self.text_provider,
                vector_index=self.vector_index,
                llm=self.llm,
                notifier=self.notifier,
                chunker=ChapterChunker(scheduler_settings.chunk_size, scheduler_settings.chunk_overlap),
                embed_batch_size=scheduler_settings.embed_batch_size,
            )
            self._scheduler = IngestionScheduler(self.session_factory, handlers, scheduler_settings)
        return self._scheduler

    @property
    def ingestor(self) -> DocumentIngestor:
        return DocumentIngestor(self.session_factory, self.text_provider)

    @property
    def retrieval_engine(self) -> RetrievalEngine:
        if self._retrieval_engine is None:
            self._retrieval_engine = RetrievalEngine(
                llm=self.llm,
                vector_index=self.vector_index,
                lexical_index=self.lexical_index,
                session_factory=self.session_factory,
                settings=self.settings.retrieval,
            )
        return self._retrieval_engine

    @property
    def history_compactor(self) -> HistoryCompactor:
        if self._history_compactor is None:
            self._history_compactor = HistoryCompactor(self.session_factory, self.llm, self.settings.history)
        return self._history_compactor

    @property
    def guard(self) -> QueryGuard | None:
        if not self.settings.retrieval.guard_enabled:
            return None
        if self._guard is None:
            self._guard = QueryGuard(self.llm)
        return self._guard

    def clear(self) -> None:
        """Clear all cached instances."""
        self._text_provider = None
        self._vector_index = None
        self._lexical_index = None
        self._llm = None
        self._notifier = None
        self._scheduler = None
        self._retrieval_engine = None
        self._history_compactor = None
        self._guard = None


# Global service container
_container: ServiceContainer | None = None


def get_service_container() -> ServiceContainer:
    """Get service container singleton."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def get_document_service(db: AsyncSession = Depends(get_async_db)) -> DocumentService:
    """
    Get document service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        DocumentService: Document service wired to the scheduler and vector index
    """
    container = get_service_container()
    return DocumentService(
        db=db,
        ingestor=container.ingestor,
        scheduler=container.scheduler,
        vector_index=container.vector_index,
    )


def get_job_service(db: AsyncSession = Depends(get_async_db)) -> JobService:
    """
    Get job service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        JobService: Job service instance
    """
    container = get_service_container()
    return JobService(db=db, scheduler=container.scheduler, notifier=container.notifier)


def get_concept_service(db: AsyncSession = Depends(get_async_db)) -> ConceptService:
    """
    Get concept service instance.

    Args:
        db: Async database session (injected via Depends)

    Returns:
        ConceptService: Concept service generating quizzes through the shared LLM
    """
    return ConceptService(db=db, generator=ContentGenerator(get_service_container().llm))


def get_chat_service() -> ChatService:
    """
    Get chat service instance.

    The chat service opens its own sessions; streamed answers outlive the request scope.

    Returns:
        ChatService: Chat service with retrieval, history and guard
    """
    container = get_service_container()
    return ChatService(
        session_factory=container.session_factory,
        retrieval_engine=container.retrieval_engine,
        history_compactor=container.history_compactor,
        llm=container.llm,
        guard=container.guard,
    )
