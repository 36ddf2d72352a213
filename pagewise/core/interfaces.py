"""
Interfaces of the external collaborators consumed by the core.

The scheduler, retrieval engine and history compactor depend only on these
protocols; concrete implementations live in pagewise.boundary.

Dependencies: pydantic, sqlalchemy (typing only)
System role: Seams between core logic and infrastructure
"""

from bisect import bisect_right
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

SchemaT = TypeVar("SchemaT", bound=BaseModel)

PAGE_SEPARATOR = "\n\n"


@dataclass(frozen=True)
class OutlineEntry:
    """One top-level outline (bookmark) entry: a title and its 1-based start page."""

    title: str
    page: int


@dataclass
class DocumentText:
    """
    Extracted text of a document.

    Pages are joined with a blank line to form ``full_text``; character
    offsets into ``full_text`` map back to 1-based page numbers.
    """

    pages: list[str]
    outline: list[OutlineEntry] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.full_text = PAGE_SEPARATOR.join(self.pages)
        starts = []
        offset = 0
        for page in self.pages:
            starts.append(offset)
            offset += len(page) + len(PAGE_SEPARATOR)
        self._page_starts = starts

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def page_start_offset(self, page: int) -> int:
        """Character offset where a 1-based page begins (clamped to the document)."""
        if not self._page_starts:
            return 0
        index = min(max(page, 1), len(self._page_starts)) - 1
        return self._page_starts[index]

    def page_for_offset(self, offset: int) -> int:
        """1-based page containing a character offset of ``full_text``."""
        if not self._page_starts:
            return 1
        return max(1, bisect_right(self._page_starts, max(offset, 0)))


class DocumentTextProvider(Protocol):
    """Extracts page texts and the outline of a document file."""

    async def load(self, path: str) -> DocumentText: ...


@dataclass(frozen=True)
class VectorHit:
    """Nearest-neighbour result; smaller distance is closer."""

    chunk_id: int
    distance: float


class VectorIndex(Protocol):
    """Vector-similarity index keyed by chunk id."""

    async def upsert(self, items: Sequence[tuple[int, Sequence[float]]]) -> None: ...

    async def knn(
        self,
        vector: Sequence[float],
        k: int,
        allowed_ids: set[int] | None = None,
    ) -> list[VectorHit]: ...

    async def remove(self, chunk_ids: Sequence[int]) -> None: ...


@dataclass(frozen=True)
class RetrievalScope:
    """A conversation/retrieval scope: a document, optionally narrowed to one chapter."""

    document_id: int
    chapter_id: int | None = None


class LexicalIndex(Protocol):
    """Full-text index over chunk content returning chunk ids by relevance."""

    async def search(
        self,
        session: AsyncSession,
        query: str,
        limit: int,
        scope: RetrievalScope,
    ) -> list[int]: ...


class LLMProvider(Protocol):
    """Language-model provider: embeddings, streamed text and structured output."""

    async def embed(self, texts: Sequence[str]) -> list[list[float]]: ...

    async def embed_query(self, text: str) -> list[float]: ...

    def generate_text(self, system: str, prompt: str) -> AsyncIterator[str]: ...

    async def generate_structured(
        self,
        schema: type[SchemaT],
        system: str,
        prompt: str,
    ) -> SchemaT: ...
