"""
Document and chapter ORM models.

A document is one uploaded PDF; chapters are its structural sections, each
carrying independent status columns for the embed, summary and concepts
stages so failures stay scoped to the affected chapter and stage.

Dependencies: sqlalchemy, pagewise.boundary.db.base
System role: Document structure persistence
"""

import enum

from sqlalchemy import JSON, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from pagewise.boundary.db.base import Base, IdMixin, TimestampMixin


class ProcessingStatus(str, enum.Enum):
    """
    Processing state shared by documents and chapter stages.

    PENDING: Not started
    PROCESSING: Jobs queued or running
    DONE: Completed successfully
    ERROR: Terminal failure; see the matching error column
    """

    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"


def _status_column(default: ProcessingStatus = ProcessingStatus.PENDING):
    return mapped_column(
        Enum(
            ProcessingStatus,
            native_enum=False,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=default,
    )


class DocumentModel(Base, IdMixin, TimestampMixin):
    """
    Document ORM model.

    Attributes:
        id: Integer primary key
        filename: Original file name
        filepath: Server-side path the text provider reads from
        file_hash: SHA-256 of the file content (unique, duplicate detection)
        title: Display title, replaced by extracted metadata when available
        page_count: Number of pages
        status: Aggregate processing status
        error_message: Last document-scoped error
        metadata_: Extracted bibliographic metadata (JSON)
    """

    __tablename__ = "documents"

    filename: Mapped[str] = mapped_column(String(512), nullable=False)
    filepath: Mapped[str] = mapped_column(String(2048), nullable=False)
    file_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    title: Mapped[str | None] = mapped_column(String(512), nullable=True)
    page_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    status: Mapped[ProcessingStatus] = _status_column()
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSON, nullable=True)

    chapters: Mapped[list["ChapterModel"]] = relationship(
        back_populates="document",
        order_by="ChapterModel.chapter_index",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ChapterModel(Base, IdMixin, TimestampMixin):
    """
    Chapter ORM model.

    Attributes:
        document_id: Owning document (cascade delete)
        title: Chapter title from the outline
        chapter_index: Zero-based position in the document
        start_idx, end_idx: Character offsets into the document text
        start_page, end_page: One-based page range
        status: Embed stage status (chunks searchable once DONE)
        error_message: Embed stage error
        summary: Generated chapter summary
        summary_status: Summary stage status
        summary_error: Summary stage error
        concepts_status: Concept extraction stage status
        concepts_error: Concept extraction error
    """

    __tablename__ = "chapters"

    document_id: Mapped[int] = mapped_column(
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    chapter_index: Mapped[int] = mapped_column(Integer, nullable=False)
    start_idx: Mapped[int] = mapped_column(Integer, nullable=False)
    end_idx: Mapped[int] = mapped_column(Integer, nullable=False)
    start_page: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    end_page: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[ProcessingStatus] = _status_column()
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    summary_status: Mapped[ProcessingStatus] = _status_column()
    summary_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    concepts_status: Mapped[ProcessingStatus] = _status_column()
    concepts_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    document: Mapped[DocumentModel] = relationship(back_populates="chapters")
