"""
Chat service for document Q&A.

Orchestrates one answer: message persistence, query guard, hybrid
retrieval, history compaction, streamed generation and answer metadata.
Runs its own database sessions because the answer outlives the request
handler that starts the stream.

Dependencies: sqlalchemy, pagewise.core, pagewise.boundary.db
System role: Chat orchestration layer
"""

import logging
from collections.abc import AsyncGenerator, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pagewise.boundary.db.CRUD import chapter_crud, document_crud, message_crud
from pagewise.boundary.db.models import MessageModel, MessageRole
from pagewise.core.exceptions import DocumentError, DocumentNotFoundError
from pagewise.core.history import HistoryCompactor
from pagewise.core.interfaces import LLMProvider, RetrievalScope
from pagewise.core.prompts import (
    ANSWER_METADATA_PROMPT,
    ANSWER_PROMPT,
    ANSWER_SYSTEM,
    METADATA_EXTRACTION_SYSTEM,
)
from pagewise.core.retrieval import QueryGuard, RankedChunk, RetrievalEngine
from pagewise.core.retrieval.guardrail import REFUSAL_MESSAGE
from pagewise.models.generation import ChatResponseMetadata
from pagewise.models.streaming import StreamEvent

logger = logging.getLogger(__name__)

METADATA_SNIPPET_CHARS = 300


def _empty_metadata(confidence: str) -> dict:
    return ChatResponseMetadata(confidence=confidence).model_dump()


class ChatService:
    """
    Chat service for document-scoped conversations.

    Coordinates the guard, retrieval engine, history compactor and the
    language model, persisting both sides of every exchange.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        retrieval_engine: RetrievalEngine,
        history_compactor: HistoryCompactor,
        llm: LLMProvider,
        guard: QueryGuard | None = None,
    ) -> None:
        """
        Initialize chat service.

        Args:
            session_factory: Async session factory for message persistence
            retrieval_engine: Hybrid retrieval engine
            history_compactor: Transcript builder
            llm: Language-model provider for answers and metadata
            guard: Optional query guard (None disables the gate)
        """
        self._session_factory = session_factory
        self._retrieval_engine = retrieval_engine
        self._history_compactor = history_compactor
        self._llm = llm
        self._guard = guard

    async def validate_scope(self, scope: RetrievalScope) -> None:
        """
        Check that the conversation scope exists.

        Raises:
            DocumentNotFoundError: If the document does not exist
            DocumentError: If the chapter does not belong to the document
        """
        async with self._session_factory() as db:
            if not await document_crud.exists(db, scope.document_id):
                raise DocumentNotFoundError(scope.document_id)
            if scope.chapter_id is not None:
                chapter = await chapter_crud.get_by_id(db, scope.chapter_id)
                if chapter is None or chapter.document_id != scope.document_id:
                    raise DocumentError(
                        f"Chapter {scope.chapter_id} not found in document {scope.document_id}",
                        {"document_id": scope.document_id, "chapter_id": scope.chapter_id},
                    )

    async def stream_answer(
        self,
        query: str,
        scope: RetrievalScope,
    ) -> AsyncGenerator[StreamEvent, None]:
        """
        Answer a question, streaming tokens as they are generated.

        Flow:
        1. Persist the user message
        2. Run the query guard; a refusal is the whole answer
        3. Retrieve context; nothing relevant yields a fixed answer
        4. Build the compacted history, excluding the new message
        5. Stream the answer from the language model
        6. Extract citations, confidence and follow-up questions
        7. Persist the assistant message with its metadata

        Args:
            query: User question
            scope: Document and optional chapter

        Yields:
            StreamEvent: token events, then one complete event

        Raises:
            DocumentNotFoundError: If the scope's document does not exist
            SummarizationError: If history compaction fails
            ProviderError: If answer generation fails
        """
        logger.info(f"{__name__}:stream_answer - START scope={scope}")
        await self.validate_scope(scope)

        user_message = await self._save_message(scope, MessageRole.USER, query)

        if self._guard is not None:
            decision = await self._guard.classify(query)
            if not decision.allowed:
                metadata = {**_empty_metadata("low"), "refused": True, "reason": decision.reason}
                async for event in self._fixed_answer(scope, REFUSAL_MESSAGE, metadata):
                    yield event
                return

        answer_context = await self._retrieval_engine.answer_context(query, scope)
        if answer_context.is_empty:
            logger.info(f"{__name__}:stream_answer - No relevant context for scope={scope}")
            async for event in self._fixed_answer(scope, answer_context.context_text, _empty_metadata("low")):
                yield event
            return

        history = await self._history_compactor.build_history(scope, exclude_message_id=user_message.id)
        prompt = ANSWER_PROMPT.format(
            history=f"Conversation so far:\n{history}\n\n" if history else "",
            context=answer_context.context_text,
            question=query,
        )

        parts: list[str] = []
        async for token in self._llm.generate_text(ANSWER_SYSTEM, prompt):
            parts.append(token)
            yield StreamEvent.token(token)
        answer = "".join(parts)

        metadata = await self._extract_metadata(query, answer, answer_context.used_chunks)
        assistant_message = await self._save_message(scope, MessageRole.ASSISTANT, answer, metadata)
        logger.info(
            f"{__name__}:stream_answer - END message_id={assistant_message.id} "
            f"chunks={len(answer_context.used_chunks)} answer_len={len(answer)}"
        )
        yield StreamEvent.complete(assistant_message.id, metadata)

    async def get_history(self, scope: RetrievalScope) -> Sequence[MessageModel]:
        """List a conversation scope's messages in chronological order."""
        async with self._session_factory() as db:
            return await message_crud.get_by_scope(db, scope.document_id, scope.chapter_id)

    async def _fixed_answer(
        self,
        scope: RetrievalScope,
        text: str,
        metadata: dict,
    ) -> AsyncGenerator[StreamEvent, None]:
        message = await self._save_message(scope, MessageRole.ASSISTANT, text, metadata)
        yield StreamEvent.token(text)
        yield StreamEvent.complete(message.id, metadata)

    async def _save_message(
        self,
        scope: RetrievalScope,
        role: MessageRole,
        content: str,
        metadata: dict | None = None,
    ) -> MessageModel:
        async with self._session_factory() as db:
            message = await message_crud.add_message(
                db,
                scope.document_id,
                scope.chapter_id,
                role,
                content,
                metadata=metadata,
            )
            await db.commit()
        return message

    async def _extract_metadata(
        self,
        question: str,
        answer: str,
        used_chunks: Sequence[RankedChunk],
    ) -> dict:
        """Structured answer metadata; falls back to medium confidence without citations."""
        chunks_text = "\n\n".join(
            f"[ID: {chunk.id}, Pages {chunk.page_start}-{chunk.page_end}] "
            f"{chunk.content[:METADATA_SNIPPET_CHARS]}"
            for chunk in used_chunks
        )
        prompt = ANSWER_METADATA_PROMPT.format(question=question, answer=answer, chunks=chunks_text)
        try:
            metadata = await self._llm.generate_structured(ChatResponseMetadata, METADATA_EXTRACTION_SYSTEM, prompt)
        except Exception as e:
            logger.warning(f"{__name__}:_extract_metadata - Metadata extraction failed: {type(e).__name__}: {e}")
            return _empty_metadata("medium")

        known_ids = {chunk.id for chunk in used_chunks}
        metadata.citations = [citation for citation in metadata.citations if citation.chunk_id in known_ids]
        return metadata.model_dump()
