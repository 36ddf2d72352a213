"""
Hybrid retrieval.

Exports:
  - RetrievalEngine: vector + lexical retrieval, fusion, rerank, context assembly
  - QueryGuard: admissibility classification ahead of retrieval
  - RankedChunk, AnswerContext: retrieval results
"""

from pagewise.core.retrieval.guardrail import QueryGuard
from pagewise.core.retrieval.ranked_chunk import AnswerContext, RankedChunk
from pagewise.core.retrieval.retrieval_engine import RetrievalEngine, no_context_message

__all__ = ["RetrievalEngine", "QueryGuard", "RankedChunk", "AnswerContext", "no_context_message"]
