"""
Chat message and conversation summary ORM models.

Messages form one log per (document, optional chapter) scope. The
conversation summary caches the compaction of older turns for a scope.

Dependencies: sqlalchemy, pagewise.boundary.db.base
System role: Conversation persistence
"""

import enum

from sqlalchemy import JSON, Enum, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from pagewise.boundary.db.base import Base, IdMixin, TimestampMixin


class MessageRole(str, enum.Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


class MessageModel(Base, IdMixin, TimestampMixin):
    """
    Chat message ORM model.

    Attributes:
        document_id: Conversation document (cascade delete)
        chapter_id: Optional chapter sub-scope (cascade delete)
        role: user or assistant
        content: Message text
        metadata_: Assistant response metadata (citations, confidence, follow-ups)
    """

    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_scope", "document_id", "chapter_id"),)

    document_id: Mapped[int] = mapped_column(
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    chapter_id: Mapped[int | None] = mapped_column(
        ForeignKey("chapters.id", ondelete="CASCADE"),
        nullable=True,
    )
    role: Mapped[MessageRole] = mapped_column(
        Enum(
            MessageRole,
            native_enum=False,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)


class ConversationSummaryModel(Base, IdMixin, TimestampMixin):
    """
    Cached summary of older turns for one conversation scope.

    At most one row per (document_id, chapter_id); a NULL chapter_id is
    its own scope. Lookups treat NULL explicitly since SQL unique
    constraints consider NULLs distinct.

    Attributes:
        document_id: Conversation document (cascade delete)
        chapter_id: Optional chapter sub-scope
        summary: Summary text of the older turns
        last_message_id: Id of the newest message covered by the summary
    """

    __tablename__ = "conversation_summaries"
    __table_args__ = (Index("ix_conversation_summaries_scope", "document_id", "chapter_id"),)

    document_id: Mapped[int] = mapped_column(
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
    )
    chapter_id: Mapped[int | None] = mapped_column(
        ForeignKey("chapters.id", ondelete="CASCADE"),
        nullable=True,
    )
    summary: Mapped[str] = mapped_column(Text, nullable=False)
    last_message_id: Mapped[int] = mapped_column(Integer, nullable=False)
