"""
Chunk ORM model.

Chunks are the retrievable units produced by the embed job. Their integer
ids are shared with the vector index and the lexical index.

Dependencies: sqlalchemy, pagewise.boundary.db.base
System role: Retrievable text unit persistence
"""

from sqlalchemy import DDL, ForeignKey, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column

from pagewise.boundary.db.base import Base, IdMixin


class ChunkModel(Base, IdMixin):
    """
    Chunk ORM model.

    Attributes:
        document_id: Owning document (cascade delete)
        chapter_id: Owning chapter (cascade delete)
        chunk_index: Position within the chapter
        content: Chunk text
        heading: Section heading shown in citations
        page_start, page_end: One-based page range covered by the chunk
        token_count: Cached token estimate used by context assembly
    """

    __tablename__ = "chunks"

    document_id: Mapped[int] = mapped_column(
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    chapter_id: Mapped[int] = mapped_column(
        ForeignKey("chapters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    heading: Mapped[str | None] = mapped_column(String(512), nullable=True)
    page_start: Mapped[int] = mapped_column(Integer, nullable=False)
    page_end: Mapped[int] = mapped_column(Integer, nullable=False)
    token_count: Mapped[int | None] = mapped_column(Integer, nullable=True)


# SQLite lexical index: FTS5 external-content table kept in sync by triggers.
_SQLITE_FTS_DDL = (
    "CREATE VIRTUAL TABLE IF NOT EXISTS chunks_fts USING fts5("
    "content, heading, content='chunks', content_rowid='id', tokenize='porter unicode61')",
    "CREATE TRIGGER IF NOT EXISTS chunks_fts_ai AFTER INSERT ON chunks BEGIN "
    "INSERT INTO chunks_fts(rowid, content, heading) VALUES (new.id, new.content, new.heading); "
    "END",
    "CREATE TRIGGER IF NOT EXISTS chunks_fts_ad AFTER DELETE ON chunks BEGIN "
    "INSERT INTO chunks_fts(chunks_fts, rowid, content, heading) "
    "VALUES ('delete', old.id, old.content, old.heading); "
    "END",
    "CREATE TRIGGER IF NOT EXISTS chunks_fts_au AFTER UPDATE ON chunks BEGIN "
    "INSERT INTO chunks_fts(chunks_fts, rowid, content, heading) "
    "VALUES ('delete', old.id, old.content, old.heading); "
    "INSERT INTO chunks_fts(rowid, content, heading) VALUES (new.id, new.content, new.heading); "
    "END",
)

for _statement in _SQLITE_FTS_DDL:
    event.listen(ChunkModel.__table__, "after_create", DDL(_statement).execute_if(dialect="sqlite"))

event.listen(
    ChunkModel.__table__,
    "before_drop",
    DDL("DROP TABLE IF EXISTS chunks_fts").execute_if(dialect="sqlite"),
)
