"""
Rank fusion and the rerank gate.

Reciprocal rank fusion combines heterogeneous rankings (vector distance,
BM25) by position only, so no score calibration is needed.

Dependencies: None
System role: Pure ranking functions for hybrid retrieval
"""

from collections.abc import Sequence

DEFAULT_RRF_K = 60


def reciprocal_rank_fusion(
    ranked_lists: Sequence[Sequence[int]],
    k: int = DEFAULT_RRF_K,
    top_n: int | None = None,
) -> list[tuple[int, float]]:
    """
    Fuse ranked id lists with reciprocal rank fusion.

    Each id scores ``sum(1 / (k + rank))`` over the lists containing it,
    with 1-based ranks. Ties keep first-seen order, walking the lists in
    the order given.

    Args:
        ranked_lists: Id lists, best first
        k: Smoothing constant
        top_n: Keep only the best N (None keeps all)

    Returns:
        list[tuple[int, float]]: (id, fused score), best first

    Example:
        >>> reciprocal_rank_fusion([[5, 2, 9], [2, 5, 1]])[0][0]
        5
    """
    scores: dict[int, float] = {}
    for ranked in ranked_lists:
        for rank, item_id in enumerate(ranked, start=1):
            scores[item_id] = scores.get(item_id, 0.0) + 1.0 / (k + rank)

    # sorted() is stable, so equal scores stay in insertion order.
    fused = sorted(scores.items(), key=lambda item: item[1], reverse=True)
    if top_n is not None:
        fused = fused[:top_n]
    return fused


def should_rerank(
    scores: Sequence[float],
    confidence_threshold: float,
    gap_ratio: float,
    min_candidates: int = 3,
) -> bool:
    """
    Decide whether fused results are ambiguous enough to rerank.

    Reranking is skipped for small candidate sets, for a top score at or
    above the confidence threshold, and when the top result leads the
    second by more than ``gap_ratio`` of its own score.

    Args:
        scores: Fused scores, best first
        confidence_threshold: Top score that is trusted as-is
        gap_ratio: Relative lead of the top result that is trusted as-is
        min_candidates: Smallest candidate set worth reranking

    Returns:
        bool: True when the reranker should be called
    """
    if len(scores) < min_candidates:
        return False
    top, second = scores[0], scores[1]
    if top >= confidence_threshold:
        return False
    if top - second > gap_ratio * top:
        return False
    return True
