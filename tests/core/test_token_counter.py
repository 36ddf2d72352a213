"""
Tests for token estimation.

Dependencies: pytest, pagewise.core.token_counter
System role: Token budgeting helper validation
"""

from pagewise.core.token_counter import (
    clear_token_cache,
    estimate_message_tokens,
    estimate_tokens,
    token_cache_info,
)


class TestEstimateTokens:
    """Test suite for estimate_tokens."""

    def test_empty_text_should_be_zero(self):
        """Test empty text has no tokens."""
        assert estimate_tokens("") == 0

    def test_estimate_should_round_up_quarter_length(self):
        """Test estimate is ceil(len / 4)."""
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2
        assert estimate_tokens("x" * 4000) == 1000

    def test_long_texts_sharing_prefix_and_length_should_share_cache_entry(self):
        """Test cache key is prefix plus length for long texts."""
        # Arrange
        clear_token_cache()
        first = "p" * 100 + "a" * 50
        second = "p" * 100 + "b" * 50

        # Act
        estimate_tokens(first)
        estimate_tokens(second)

        # Assert
        info = token_cache_info()
        assert info.misses == 1
        assert info.hits == 1

    def test_message_tokens_should_include_role_prefix(self):
        """Test message estimate counts the rendered role line."""
        assert estimate_message_tokens("User", "hi") == estimate_tokens("User: hi")
