"""
FAISS vector index keyed by chunk id.

Wraps an exact inner-product FAISS index over L2-normalised vectors
(cosine similarity) with an id map so chunk ids are used directly.
The index is persisted to disk after every mutation.

Dependencies: faiss-cpu, numpy
System role: Vector-similarity index for retrieval
"""

import asyncio
import logging
from pathlib import Path
from typing import Sequence

import faiss
import numpy as np
from fastapi.concurrency import run_in_threadpool

from pagewise.core.interfaces import VectorHit

logger = logging.getLogger(__name__)


class FaissVectorIndex:
    """
    Local FAISS index for chunk embeddings.

    Distances are reported as ``1 - cosine similarity`` so smaller is closer.
    Scoped searches are exact: every vector is scored, then filtered to
    the allowed chunk ids.
    """

    def __init__(self, index_dir: str | Path | None = None, index_name: str = "chunks") -> None:
        """
        Initialize the index, loading a persisted one when present.

        Args:
            index_dir: Directory to persist the index in; None keeps it in memory only
            index_name: File stem of the persisted index
        """
        self._path = Path(index_dir) / f"{index_name}.faiss" if index_dir is not None else None
        self._lock = asyncio.Lock()
        self._index: faiss.IndexIDMap2 | None = None

        if self._path is not None and self._path.exists():
            self._index = faiss.read_index(str(self._path))
            logger.info(f"{__name__}:__init__ - Loaded index from {self._path} with {self._index.ntotal} vectors")

    @property
    def size(self) -> int:
        return 0 if self._index is None else int(self._index.ntotal)

    async def upsert(self, items: Sequence[tuple[int, Sequence[float]]]) -> None:
        """
        Insert or replace vectors.

        Args:
            items: (chunk_id, vector) pairs
        """
        if not items:
            return
        async with self._lock:
            await run_in_threadpool(self._upsert_sync, items)

    def _upsert_sync(self, items: Sequence[tuple[int, Sequence[float]]]) -> None:
        ids = np.array([chunk_id for chunk_id, _ in items], dtype=np.int64)
        vectors = np.array([vector for _, vector in items], dtype=np.float32)
        faiss.normalize_L2(vectors)

        if self._index is None:
            self._index = faiss.IndexIDMap2(faiss.IndexFlatIP(vectors.shape[1]))
        elif vectors.shape[1] != self._index.d:
            raise ValueError(f"Vector dimension {vectors.shape[1]} does not match index dimension {self._index.d}")

        self._index.remove_ids(ids)
        self._index.add_with_ids(vectors, ids)
        self._persist()

    async def knn(
        self,
        vector: Sequence[float],
        k: int,
        allowed_ids: set[int] | None = None,
    ) -> list[VectorHit]:
        """
        Find the k nearest chunks.

        Args:
            vector: Query vector
            k: Number of neighbours
            allowed_ids: Restrict results to these chunk ids when given

        Returns:
            list[VectorHit]: Hits ordered by increasing distance
        """
        if self._index is None or self._index.ntotal == 0 or k <= 0:
            return []
        if allowed_ids is not None and not allowed_ids:
            return []
        return await run_in_threadpool(self._knn_sync, vector, k, allowed_ids)

    def _knn_sync(self, vector: Sequence[float], k: int, allowed_ids: set[int] | None) -> list[VectorHit]:
        query = np.array([vector], dtype=np.float32)
        faiss.normalize_L2(query)
        fetch_k = int(self._index.ntotal) if allowed_ids is not None else min(k, int(self._index.ntotal))
        similarities, ids = self._index.search(query, fetch_k)

        hits = []
        for similarity, chunk_id in zip(similarities[0], ids[0]):
            if chunk_id < 0:
                continue
            if allowed_ids is not None and int(chunk_id) not in allowed_ids:
                continue
            hits.append(VectorHit(chunk_id=int(chunk_id), distance=float(1.0 - similarity)))
            if len(hits) >= k:
                break
        return hits

    async def remove(self, chunk_ids: Sequence[int]) -> None:
        """Remove vectors of the given chunks; unknown ids are ignored."""
        if not chunk_ids or self._index is None:
            return
        async with self._lock:
            await run_in_threadpool(self._remove_sync, chunk_ids)

    def _remove_sync(self, chunk_ids: Sequence[int]) -> None:
        removed = self._index.remove_ids(np.array(list(chunk_ids), dtype=np.int64))
        logger.info(f"{__name__}:remove - Removed {removed} vectors")
        self._persist()

    def _persist(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        faiss.write_index(self._index, str(self._path))
