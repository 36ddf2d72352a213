"""
Full-text chunk search.

SQLite uses the FTS5 table maintained by triggers on the chunks table;
PostgreSQL uses to_tsvector/plainto_tsquery over chunk content. Both
return chunk ids ordered by lexical relevance, optionally scoped to a
document chapter.

Dependencies: sqlalchemy
System role: Lexical index for hybrid retrieval
"""

import logging

from sqlalchemy import func, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from pagewise.boundary.db.models import ChunkModel
from pagewise.core.interfaces import LexicalIndex, RetrievalScope

logger = logging.getLogger(__name__)


def build_match_query(query: str) -> str:
    """
    Turn free text into a safe FTS5 MATCH expression.

    Each whitespace-separated token is quoted as a phrase (embedded quotes
    doubled), so FTS5 operators in user input are treated as text.
    Tokens are OR-ed so partial matches still rank.

    Args:
        query: Raw user query

    Returns:
        str: MATCH expression, empty when the query has no tokens
    """
    tokens = [token.replace('"', '""') for token in query.split()]
    return " OR ".join(f'"{token}"' for token in tokens if token)


class SqliteFtsIndex:
    """FTS5 search over the ``chunks_fts`` external-content table."""

    async def search(
        self,
        session: AsyncSession,
        query: str,
        limit: int,
        scope: RetrievalScope,
    ) -> list[int]:
        """
        Search chunk content by BM25 relevance.

        Args:
            session: Async database session
            query: Raw user query
            limit: Maximum number of ids
            scope: Document and optional chapter to search within

        Returns:
            list[int]: Chunk ids, most relevant first
        """
        match = build_match_query(query)
        if not match:
            return []

        sql = (
            "SELECT c.id FROM chunks_fts "
            "JOIN chunks c ON c.id = chunks_fts.rowid "
            "WHERE chunks_fts MATCH :match AND c.document_id = :document_id"
        )
        params = {"match": match, "document_id": scope.document_id, "limit": limit}
        if scope.chapter_id is not None:
            sql += " AND c.chapter_id = :chapter_id"
            params["chapter_id"] = scope.chapter_id
        sql += " ORDER BY bm25(chunks_fts) LIMIT :limit"

        result = await session.execute(text(sql), params)
        return [row[0] for row in result.all()]


class PostgresFtsIndex:
    """tsvector search over chunk content."""

    def __init__(self, config: str = "english") -> None:
        self._config = config

    async def search(
        self,
        session: AsyncSession,
        query: str,
        limit: int,
        scope: RetrievalScope,
    ) -> list[int]:
        """Search chunk content by ts_rank relevance."""
        if not query.split():
            return []

        document = func.to_tsvector(self._config, ChunkModel.content)
        ts_query = func.plainto_tsquery(self._config, query)
        stmt = (
            select(ChunkModel.id)
            .where(document.op("@@")(ts_query), ChunkModel.document_id == scope.document_id)
            .order_by(func.ts_rank(document, ts_query).desc(), ChunkModel.id)
            .limit(limit)
        )
        if scope.chapter_id is not None:
            stmt = stmt.where(ChunkModel.chapter_id == scope.chapter_id)
        result = await session.execute(stmt)
        return list(result.scalars().all())


def get_lexical_index(dialect_name: str) -> LexicalIndex:
    """
    Select the lexical index implementation for a database dialect.

    Args:
        dialect_name: SQLAlchemy dialect name (``sqlite`` or ``postgresql``)

    Returns:
        LexicalIndex: Matching implementation

    Raises:
        ValueError: For unsupported dialects
    """
    if dialect_name == "sqlite":
        return SqliteFtsIndex()
    if dialect_name == "postgresql":
        return PostgresFtsIndex()
    raise ValueError(f"No lexical index available for dialect '{dialect_name}'")
