"""
Hybrid retrieval engine.

Vector and lexical candidates are fetched concurrently, fused with
reciprocal rank fusion, optionally reranked by the language model and
cut down to a token-budgeted context.

Dependencies: asyncio, sqlalchemy, pagewise.boundary.db, pagewise.core
System role: Query → ranked chunks → answer context
"""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pagewise.boundary.db.CRUD import chunk_crud
from pagewise.configs.retrieval import RetrievalSettings
from pagewise.core.exceptions import RetrievalError
from pagewise.core.interfaces import LexicalIndex, LLMProvider, RetrievalScope, VectorIndex
from pagewise.core.prompts import RERANK_PROMPT, RERANK_SYSTEM
from pagewise.core.retrieval.context_builder import assemble_context
from pagewise.core.retrieval.fusion import reciprocal_rank_fusion, should_rerank
from pagewise.core.retrieval.ranked_chunk import AnswerContext, RankedChunk
from pagewise.models.generation import RerankedResults

logger = logging.getLogger(__name__)

NO_CONTEXT_DOCUMENT = "I couldn't find relevant information in the PDF to answer your question."
NO_CONTEXT_CHAPTER = "I couldn't find relevant information in this chapter to answer your question."


def no_context_message(scope: RetrievalScope) -> str:
    """Fixed answer used when nothing relevant was retrieved."""
    return NO_CONTEXT_CHAPTER if scope.chapter_id is not None else NO_CONTEXT_DOCUMENT


class RetrievalEngine:
    """
    Hybrid retrieval over a document or chapter scope.

    Usage:
        engine = RetrievalEngine(llm, vector_index, lexical_index, session_factory)
        context = await engine.answer_context("What is X?", RetrievalScope(document_id=1))
    """

    def __init__(
        self,
        llm: LLMProvider,
        vector_index: VectorIndex,
        lexical_index: LexicalIndex,
        session_factory: async_sessionmaker[AsyncSession],
        settings: RetrievalSettings | None = None,
    ) -> None:
        """
        Initialize retrieval engine.

        Args:
            llm: Provider for query embeddings and reranking
            vector_index: Vector-similarity index over chunk ids
            lexical_index: Full-text index over chunk content
            session_factory: Async session factory for chunk lookups
            settings: Ranking constants and context budget
        """
        self._llm = llm
        self._vector_index = vector_index
        self._lexical_index = lexical_index
        self._session_factory = session_factory
        self._settings = settings or RetrievalSettings()

    async def retrieve(self, query: str, scope: RetrievalScope) -> list[RankedChunk]:
        """
        Retrieve chunks relevant to a query, best first.

        If one candidate source fails the other is used alone.

        Args:
            query: User question
            scope: Document and optional chapter to search

        Returns:
            list[RankedChunk]: At most ``top_n`` chunks; empty when nothing matched

        Raises:
            RetrievalError: If both candidate sources fail
        """
        async with self._session_factory() as db:
            scope_ids = await chunk_crud.get_ids(db, scope.document_id, scope.chapter_id)
        if not scope_ids:
            logger.info(f"{__name__}:retrieve - No chunks in scope {scope}")
            return []

        vector_result, lexical_result = await asyncio.gather(
            self._vector_candidates(query, set(scope_ids)),
            self._lexical_candidates(query, scope),
            return_exceptions=True,
        )
        if isinstance(vector_result, BaseException) and isinstance(lexical_result, BaseException):
            raise RetrievalError(
                "Both vector and lexical search failed",
                {"vector_error": str(vector_result), "lexical_error": str(lexical_result)},
            ) from vector_result
        if isinstance(vector_result, BaseException):
            logger.warning(f"{__name__}:retrieve - Vector search failed, using lexical only: {vector_result}")
            vector_result = []
        if isinstance(lexical_result, BaseException):
            logger.warning(f"{__name__}:retrieve - Lexical search failed, using vector only: {lexical_result}")
            lexical_result = []

        fused = reciprocal_rank_fusion(
            [vector_result, lexical_result],
            k=self._settings.rrf_k,
            top_n=self._settings.top_n,
        )
        if not fused:
            return []

        ranked = await self._load_ranked(fused)
        logger.info(
            f"{__name__}:retrieve - vector={len(vector_result)} lexical={len(lexical_result)} "
            f"fused={len(ranked)}"
        )

        scores = [chunk.score for chunk in ranked]
        if should_rerank(scores, self._settings.rerank_confidence_threshold, self._settings.rerank_gap_ratio):
            ranked = await self._rerank(query, ranked)
        return ranked

    async def answer_context(self, query: str, scope: RetrievalScope) -> AnswerContext:
        """
        Retrieve and assemble the context for answering a query.

        Args:
            query: User question
            scope: Document and optional chapter to search

        Returns:
            AnswerContext: Context text and used chunks, or the no-context
            message with ``is_empty`` set when nothing usable was retrieved
            or both candidate sources failed
        """
        try:
            ranked = await self.retrieve(query, scope)
        except RetrievalError as e:
            logger.warning(f"{__name__}:answer_context - Answering without context: {e.message}")
            ranked = []
        context_text, used = assemble_context(
            ranked,
            max_tokens=self._settings.max_context_tokens,
            max_chunks=self._settings.max_context_chunks,
        )
        if not used:
            return AnswerContext(context_text=no_context_message(scope), used_chunks=[], is_empty=True)
        return AnswerContext(context_text=context_text, used_chunks=used)

    async def _vector_candidates(self, query: str, allowed_ids: set[int]) -> list[int]:
        vector = await self._llm.embed_query(query)
        hits = await self._vector_index.knn(vector, self._settings.candidate_k, allowed_ids=allowed_ids)
        return [hit.chunk_id for hit in hits]

    async def _lexical_candidates(self, query: str, scope: RetrievalScope) -> list[int]:
        async with self._session_factory() as db:
            return await self._lexical_index.search(db, query, self._settings.candidate_k, scope)

    async def _load_ranked(self, fused: list[tuple[int, float]]) -> list[RankedChunk]:
        async with self._session_factory() as db:
            chunks = await chunk_crud.get_by_ids(db, [chunk_id for chunk_id, _ in fused])
        by_id = {chunk.id: chunk for chunk in chunks}

        ranked = []
        for chunk_id, score in fused:
            chunk = by_id.get(chunk_id)
            if chunk is None:
                # Vector entries can briefly outlive their rows during re-embedding.
                continue
            ranked.append(
                RankedChunk(
                    id=chunk.id,
                    content=chunk.content,
                    heading=chunk.heading,
                    page_start=chunk.page_start,
                    page_end=chunk.page_end,
                    token_count=chunk.token_count,
                    score=score,
                )
            )
        return ranked

    async def _rerank(self, query: str, ranked: list[RankedChunk]) -> list[RankedChunk]:
        """
        Reorder candidates with the language model.

        Unknown ids are ignored and omitted candidates keep their fused order
        after the reranked ones. Any provider failure keeps the fused order.
        """
        limit = self._settings.rerank_snippet_chars
        candidates = "\n\n".join(f"[ID: {chunk.id}] {chunk.content[:limit]}" for chunk in ranked)
        prompt = RERANK_PROMPT.format(query=query, candidates=candidates)
        try:
            result = await self._llm.generate_structured(RerankedResults, RERANK_SYSTEM, prompt)
        except Exception as e:
            logger.warning(f"{__name__}:_rerank - Reranking failed, using fused order: {type(e).__name__}: {e}")
            return ranked

        by_id = {chunk.id: chunk for chunk in ranked}
        reordered: list[RankedChunk] = []
        for chunk_id in result.ranked_chunk_ids:
            chunk = by_id.pop(chunk_id, None)
            if chunk is not None:
                reordered.append(chunk)
        reordered.extend(chunk for chunk in ranked if chunk.id in by_id)
        logger.info(f"{__name__}:_rerank - Reranked {len(ranked)} candidates")
        return reordered
