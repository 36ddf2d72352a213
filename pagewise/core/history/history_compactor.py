"""
Conversation history compaction.

Keeps the chat transcript within a token budget: recent turns stay
verbatim, older turns are replaced by a short summary that is cached per
conversation scope and regenerated only when the summarized range moves.

Dependencies: sqlalchemy, pagewise.boundary.db, pagewise.core
System role: Token-bounded chat history for answer prompts
"""

import logging
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pagewise.boundary.db.CRUD import conversation_summary_crud, message_crud
from pagewise.boundary.db.models import MessageModel, MessageRole
from pagewise.configs.retrieval import HistorySettings
from pagewise.core.exceptions import SummarizationError
from pagewise.core.interfaces import LLMProvider, RetrievalScope
from pagewise.core.prompts import HISTORY_SUMMARY_PROMPT, HISTORY_SUMMARY_SYSTEM
from pagewise.core.token_counter import estimate_tokens

logger = logging.getLogger(__name__)

ROLE_LABELS = {MessageRole.USER: "User", MessageRole.ASSISTANT: "Assistant"}


def format_message(message: MessageModel) -> str:
    """Render a message as a role-prefixed transcript line."""
    return f"{ROLE_LABELS[message.role]}: {message.content}"


def split_older_recent(
    token_counts: Sequence[int],
    max_tokens: int,
    summary_allowance: int,
) -> int:
    """
    Find the boundary between summarized and verbatim messages.

    Scans from the newest message backwards while the recent set fits in
    ``max_tokens - summary_allowance``. With two or more messages, at least
    one is summarized and the newest is always kept verbatim, even when it
    alone exceeds the available budget.

    Args:
        token_counts: Per-message token estimates, oldest first
        max_tokens: Transcript budget
        summary_allowance: Tokens reserved for the summary line

    Returns:
        int: Index of the first verbatim message (older set is ``[:index]``)
    """
    available = max_tokens - summary_allowance
    boundary = len(token_counts)
    used = 0
    for index in range(len(token_counts) - 1, -1, -1):
        if used + token_counts[index] > available:
            break
        used += token_counts[index]
        boundary = index
    return max(1, min(boundary, len(token_counts) - 1))


class HistoryCompactor:
    """
    Builds the conversation transcript for a scope.

    Usage:
        compactor = HistoryCompactor(session_factory, llm)
        transcript = await compactor.build_history(RetrievalScope(document_id=1))
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        llm: LLMProvider,
        settings: HistorySettings | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._llm = llm
        self._settings = settings or HistorySettings()

    async def build_history(
        self,
        scope: RetrievalScope,
        exclude_message_id: int | None = None,
    ) -> str:
        """
        Build a token-bounded transcript of a conversation scope.

        Args:
            scope: Document and optional chapter of the conversation
            exclude_message_id: Message to leave out (e.g. the question being answered)

        Returns:
            str: Transcript lines, prefixed by a summary of older turns when
            the full transcript exceeds the budget; empty for no messages

        Raises:
            SummarizationError: If the older turns cannot be summarized
        """
        async with self._session_factory() as db:
            messages = await message_crud.get_by_scope(db, scope.document_id, scope.chapter_id)
        messages = [message for message in messages if message.id != exclude_message_id]
        if not messages:
            return ""

        lines = [format_message(message) for message in messages]
        token_counts = [estimate_tokens(line) for line in lines]
        # A lone message has nothing older to summarize
        if len(lines) == 1 or sum(token_counts) <= self._settings.max_history_tokens:
            return "\n".join(lines)

        boundary = split_older_recent(
            token_counts,
            self._settings.max_history_tokens,
            self._settings.summary_allowance_tokens,
        )
        older, recent_lines = messages[:boundary], lines[boundary:]
        summary = await self._summary_for(scope, older, lines[:boundary])
        logger.info(
            f"{__name__}:build_history - Compacted {len(older)} older messages, "
            f"{len(recent_lines)} kept verbatim"
        )
        return f"[Earlier in conversation: {summary}]\n\n" + "\n".join(recent_lines)

    async def _summary_for(
        self,
        scope: RetrievalScope,
        older: Sequence[MessageModel],
        older_lines: Sequence[str],
    ) -> str:
        boundary_id = older[-1].id
        async with self._session_factory() as db:
            cached = await conversation_summary_crud.get_for_scope(db, scope.document_id, scope.chapter_id)
            if cached is not None and cached.last_message_id == boundary_id:
                logger.debug(f"{__name__}:_summary_for - Reusing summary up to message {boundary_id}")
                return cached.summary

            prompt = HISTORY_SUMMARY_PROMPT.format(transcript="\n".join(older_lines))
            try:
                parts = [part async for part in self._llm.generate_text(HISTORY_SUMMARY_SYSTEM, prompt)]
            except Exception as e:
                raise SummarizationError(
                    f"Failed to summarize conversation history: {e}",
                    {"document_id": scope.document_id, "chapter_id": scope.chapter_id},
                ) from e
            summary = "".join(parts).strip()

            await conversation_summary_crud.upsert(
                db,
                scope.document_id,
                scope.chapter_id,
                summary=summary,
                last_message_id=boundary_id,
            )
            await db.commit()
        return summary
