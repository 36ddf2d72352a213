"""
Conversation history.

Exports:
  - HistoryCompactor: token-bounded transcript with cached summaries of older turns
"""

from pagewise.core.history.history_compactor import HistoryCompactor

__all__ = ["HistoryCompactor"]
