"""
Lexical (full-text) index boundary.

Exports:
  - SqliteFtsIndex: FTS5 search for SQLite stores
  - PostgresFtsIndex: tsvector search for PostgreSQL stores
  - get_lexical_index: dialect-based factory
"""

from pagewise.boundary.lexical.fts_index import (
    PostgresFtsIndex,
    SqliteFtsIndex,
    build_match_query,
    get_lexical_index,
)

__all__ = ["SqliteFtsIndex", "PostgresFtsIndex", "build_match_query", "get_lexical_index"]
