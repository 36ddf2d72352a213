"""
Integration tests for the SQLite full-text chunk index.

Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Lexical search validation
"""

import pytest

from pagewise.boundary.db.CRUD import chunk_crud
from pagewise.boundary.lexical import PostgresFtsIndex, SqliteFtsIndex, build_match_query, get_lexical_index
from pagewise.core.interfaces import RetrievalScope


class TestBuildMatchQuery:
    """Test suite for build_match_query."""

    def test_tokens_should_be_quoted_and_ored(self):
        """Test each token becomes a quoted phrase."""
        assert build_match_query("alpha  beta") == '"alpha" OR "beta"'

    def test_operators_and_quotes_should_be_escaped(self):
        """Test FTS5 syntax in user input is treated as text."""
        assert build_match_query('say "hi" NOT') == '"say" OR """hi""" OR "NOT"'

    def test_blank_query_should_be_empty(self):
        """Test whitespace-only input has no expression."""
        assert build_match_query("   ") == ""


class TestSqliteFtsIndex:
    """Test suite for SqliteFtsIndex.search."""

    @pytest.fixture
    async def corpus(self, make_document, make_chunks):
        document_id, chapter_ids = await make_document(chapter_titles=("One", "Two"))
        first = await make_chunks(
            document_id, chapter_ids[0], ["photosynthesis in plants", "cell walls and photosynthesis photosynthesis"]
        )
        second = await make_chunks(document_id, chapter_ids[1], ["photosynthesis again", "unrelated text"])
        other_document, other_chapters = await make_document()
        await make_chunks(other_document, other_chapters[0], ["photosynthesis elsewhere"])
        return document_id, chapter_ids, first, second

    @pytest.mark.asyncio
    async def test_search_should_be_limited_to_document(self, test_async_db, corpus):
        """Test other documents' chunks never match."""
        document_id, _, first, second = corpus

        ids = await SqliteFtsIndex().search(test_async_db, "photosynthesis", 10, RetrievalScope(document_id))

        assert set(ids) == {first[0], first[1], second[0]}

    @pytest.mark.asyncio
    async def test_search_should_be_limited_to_chapter(self, test_async_db, corpus):
        """Test chapter scope filters the matches."""
        document_id, chapter_ids, _, second = corpus

        ids = await SqliteFtsIndex().search(
            test_async_db, "photosynthesis", 10, RetrievalScope(document_id, chapter_ids[1])
        )

        assert ids == [second[0]]

    @pytest.mark.asyncio
    async def test_search_should_respect_limit(self, test_async_db, corpus):
        """Test at most ``limit`` ids are returned."""
        document_id, *_ = corpus

        ids = await SqliteFtsIndex().search(test_async_db, "photosynthesis", 2, RetrievalScope(document_id))

        assert len(ids) == 2

    @pytest.mark.asyncio
    async def test_deleted_chunks_should_leave_index(self, test_async_db, corpus):
        """Test the triggers keep the index in step with the chunks table."""
        # Arrange
        document_id, chapter_ids, _, _ = corpus

        # Act
        await chunk_crud.delete_by_chapter(test_async_db, chapter_ids[0])
        ids = await SqliteFtsIndex().search(test_async_db, "cell walls", 10, RetrievalScope(document_id))

        # Assert
        assert ids == []

    @pytest.mark.asyncio
    async def test_blank_query_should_return_nothing(self, test_async_db, corpus):
        """Test empty queries skip the database."""
        document_id, *_ = corpus

        assert await SqliteFtsIndex().search(test_async_db, "  ", 10, RetrievalScope(document_id)) == []


class TestGetLexicalIndex:
    """Test suite for get_lexical_index."""

    def test_known_dialects_should_map_to_implementations(self):
        """Test sqlite and postgresql are supported."""
        assert isinstance(get_lexical_index("sqlite"), SqliteFtsIndex)
        assert isinstance(get_lexical_index("postgresql"), PostgresFtsIndex)

    def test_unknown_dialect_should_raise(self):
        """Test unsupported dialects are rejected."""
        with pytest.raises(ValueError):
            get_lexical_index("mysql")
