"""
Retrieval result types.

Dependencies: None
System role: Transient per-query retrieval records
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class RankedChunk:
    """A retrieved chunk with its fused relevance score. List order is the ranking."""

    id: int
    content: str
    heading: str | None
    page_start: int
    page_end: int
    token_count: int | None
    score: float


@dataclass(frozen=True)
class AnswerContext:
    """Token-budgeted context for answer generation."""

    context_text: str
    used_chunks: list[RankedChunk] = field(default_factory=list)
    is_empty: bool = False
