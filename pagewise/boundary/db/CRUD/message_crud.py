"""
Chat message and conversation summary CRUD operations.

Dependencies: sqlalchemy, pagewise.boundary.db.models
System role: Conversation persistence operations
"""

from typing import Any, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pagewise.boundary.db.CRUD.base_crud import BaseCRUD
from pagewise.boundary.db.models import ConversationSummaryModel, MessageModel, MessageRole


def _scope_filter(model, document_id: int, chapter_id: int | None):
    # A NULL chapter_id is its own scope, not a wildcard.
    chapter_clause = model.chapter_id.is_(None) if chapter_id is None else model.chapter_id == chapter_id
    return (model.document_id == document_id, chapter_clause)


class MessageCRUD(BaseCRUD[MessageModel]):
    """CRUD operations for MessageModel."""

    def __init__(self) -> None:
        """Initialize MessageCRUD with MessageModel."""
        super().__init__(MessageModel)

    async def add_message(
        self,
        session: AsyncSession,
        document_id: int,
        chapter_id: int | None,
        role: MessageRole,
        content: str,
        metadata: dict[str, Any] | None = None,
    ) -> MessageModel:
        """
        Append a message to a conversation scope.

        Args:
            session: Async database session
            document_id: Conversation document
            chapter_id: Optional chapter sub-scope
            role: Message author
            content: Message text
            metadata: Optional response metadata

        Returns:
            Created MessageModel
        """
        return await self.create(
            session,
            document_id=document_id,
            chapter_id=chapter_id,
            role=role,
            content=content,
            metadata_=metadata,
        )

    async def get_by_scope(
        self,
        session: AsyncSession,
        document_id: int,
        chapter_id: int | None = None,
    ) -> Sequence[MessageModel]:
        """
        Retrieve a conversation scope's messages in chronological order.

        Args:
            session: Async database session
            document_id: Conversation document
            chapter_id: Optional chapter sub-scope (None is the whole-document scope)

        Returns:
            Sequence of MessageModels ordered by id
        """
        stmt = (
            select(MessageModel)
            .where(*_scope_filter(MessageModel, document_id, chapter_id))
            .order_by(MessageModel.id)
        )
        result = await session.execute(stmt)
        return result.scalars().all()


class ConversationSummaryCRUD(BaseCRUD[ConversationSummaryModel]):
    """CRUD operations for ConversationSummaryModel (one row per scope)."""

    def __init__(self) -> None:
        """Initialize ConversationSummaryCRUD with ConversationSummaryModel."""
        super().__init__(ConversationSummaryModel)

    async def get_for_scope(
        self,
        session: AsyncSession,
        document_id: int,
        chapter_id: int | None = None,
    ) -> ConversationSummaryModel | None:
        """Retrieve the cached summary of a conversation scope."""
        stmt = select(ConversationSummaryModel).where(
            *_scope_filter(ConversationSummaryModel, document_id, chapter_id)
        )
        result = await session.execute(stmt)
        return result.scalars().first()

    async def upsert(
        self,
        session: AsyncSession,
        document_id: int,
        chapter_id: int | None,
        summary: str,
        last_message_id: int,
    ) -> ConversationSummaryModel:
        """
        Insert or replace the cached summary of a conversation scope.

        Args:
            session: Async database session
            document_id: Conversation document
            chapter_id: Optional chapter sub-scope
            summary: Summary text of the older turns
            last_message_id: Newest message id covered by the summary

        Returns:
            The stored ConversationSummaryModel
        """
        existing = await self.get_for_scope(session, document_id, chapter_id)
        if existing is None:
            return await self.create(
                session,
                document_id=document_id,
                chapter_id=chapter_id,
                summary=summary,
                last_message_id=last_message_id,
            )
        existing.summary = summary
        existing.last_message_id = last_message_id
        await session.flush()
        return existing


message_crud = MessageCRUD()
conversation_summary_crud = ConversationSummaryCRUD()
