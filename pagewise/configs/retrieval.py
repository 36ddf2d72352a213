"""
Retrieval and conversation history configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Ranking, context budget and history compaction constants
"""

from pydantic import Field

from pagewise.configs.base import BaseSettings, settings_config


class RetrievalSettings(BaseSettings):
    """Hybrid retrieval and context assembly configuration."""

    model_config = settings_config("RETRIEVAL")

    candidate_k: int = Field(default=20, ge=1, description="Candidates fetched from each index")
    rrf_k: int = Field(default=60, ge=1, description="Reciprocal rank fusion smoothing constant")
    top_n: int = Field(default=10, ge=1, description="Fused candidates kept")
    rerank_confidence_threshold: float = Field(
        default=0.0325,
        description="Fused top score at or above which reranking is skipped",
    )
    rerank_gap_ratio: float = Field(
        default=0.4,
        description="Relative gap between top two scores above which reranking is skipped",
    )
    rerank_snippet_chars: int = Field(default=500, description="Chunk text shown to the reranker")
    max_context_tokens: int = Field(default=8000, ge=1, description="Context token budget")
    max_context_chunks: int = Field(default=5, ge=1, description="Maximum chunks in context")
    guard_enabled: bool = Field(default=True, description="Classify queries before retrieval")


class HistorySettings(BaseSettings):
    """Conversation history compaction configuration."""

    model_config = settings_config("HISTORY")

    max_history_tokens: int = Field(default=16000, ge=1, description="Transcript token budget")
    summary_allowance_tokens: int = Field(
        default=200,
        ge=0,
        description="Tokens reserved for the summary of older turns",
    )
