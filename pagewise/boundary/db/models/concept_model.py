"""
Concept ORM model.

Stores key concepts extracted per chapter and the consolidated,
document-level concepts produced from them.

Dependencies: sqlalchemy, pagewise.boundary.db.base
System role: Study concept persistence
"""

from sqlalchemy import JSON, Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from pagewise.boundary.db.base import Base, IdMixin, TimestampMixin


class ConceptModel(Base, IdMixin, TimestampMixin):
    """
    Concept ORM model.

    Attributes:
        document_id: Owning document (cascade delete)
        chapter_id: Source chapter; NULL for consolidated concepts
        name: Concept name
        definition: One or two sentence definition
        importance: 1 (minor) to 5 (core)
        quotes: List of {text, page, chapter_title} supporting quotes
        is_consolidated: True for document-level concepts
        source_concept_names: Chapter concept names merged into this one
    """

    __tablename__ = "concepts"

    document_id: Mapped[int] = mapped_column(
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    chapter_id: Mapped[int | None] = mapped_column(
        ForeignKey("chapters.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(512), nullable=False)
    definition: Mapped[str] = mapped_column(Text, nullable=False)
    importance: Mapped[int] = mapped_column(Integer, nullable=False, default=3)
    quotes: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    is_consolidated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    source_concept_names: Mapped[list | None] = mapped_column(JSON, nullable=True)
