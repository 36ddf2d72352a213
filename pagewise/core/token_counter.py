"""
Token estimation.

Cheap length-based token approximation (about four characters per token)
shared by context assembly and history compaction. Estimates are memoised
in a bounded LRU cache keyed on a prefix of the text plus its length.

Dependencies: functools (stdlib)
System role: Token budgeting helper
"""

import math
from functools import lru_cache

TOKEN_CACHE_SIZE = 500
CHARS_PER_TOKEN = 4
_KEY_PREFIX_CHARS = 100


def _cache_key(text: str) -> str:
    if len(text) <= _KEY_PREFIX_CHARS:
        return text
    return f"{text[:_KEY_PREFIX_CHARS]}:{len(text)}"


@lru_cache(maxsize=TOKEN_CACHE_SIZE)
def _estimate_for_key(cache_key: str, length: int) -> int:
    return math.ceil(length / CHARS_PER_TOKEN)


def estimate_tokens(text: str) -> int:
    """
    Estimate the token count of a text.

    Args:
        text: Text to estimate

    Returns:
        int: ceil(len(text) / 4), 0 for empty text
    """
    if not text:
        return 0
    return _estimate_for_key(_cache_key(text), len(text))


def estimate_message_tokens(role: str, content: str) -> int:
    """Estimate tokens for a transcript line rendered as ``role: content``."""
    return estimate_tokens(f"{role}: {content}")


def token_cache_info():
    """Expose LRU statistics of the estimate cache."""
    return _estimate_for_key.cache_info()


def clear_token_cache() -> None:
    """Drop all cached estimates."""
    _estimate_for_key.cache_clear()
