"""
Token-budgeted context assembly.

Dependencies: pagewise.core.token_counter
System role: Turns ranked chunks into the context block of the answer prompt
"""

from collections.abc import Sequence

from pagewise.core.retrieval.ranked_chunk import RankedChunk
from pagewise.core.token_counter import estimate_tokens

CHUNK_SEPARATOR = "\n\n---\n\n"


def chunk_tokens(chunk: RankedChunk) -> int:
    """Cached token count of a chunk, estimated when not stored."""
    if chunk.token_count is not None:
        return chunk.token_count
    return estimate_tokens(chunk.content)


def format_chunk(chunk: RankedChunk) -> str:
    """Render a chunk with its id, heading and page range."""
    heading = f" - {chunk.heading}" if chunk.heading else ""
    return f"[Chunk {chunk.id}{heading}, Pages {chunk.page_start}-{chunk.page_end}]\n{chunk.content}"


def assemble_context(
    chunks: Sequence[RankedChunk],
    max_tokens: int,
    max_chunks: int,
) -> tuple[str, list[RankedChunk]]:
    """
    Greedily take chunks in rank order within the budget.

    Assembly stops at the first chunk that would exceed ``max_tokens``,
    even if a later, smaller chunk would fit, or after ``max_chunks``.

    Args:
        chunks: Ranked chunks, best first
        max_tokens: Context token budget
        max_chunks: Maximum number of chunks

    Returns:
        tuple[str, list[RankedChunk]]: Context text and the chunks it contains
    """
    used: list[RankedChunk] = []
    total = 0
    for chunk in chunks[:max_chunks]:
        tokens = chunk_tokens(chunk)
        if total + tokens > max_tokens:
            break
        used.append(chunk)
        total += tokens
    return CHUNK_SEPARATOR.join(format_chunk(chunk) for chunk in used), used
