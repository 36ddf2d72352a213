"""
Job ORM model.

Tracks background ingestion work. Jobs are created in bulk when a document
is ingested and mutated only by the ingestion scheduler.

Dependencies: sqlalchemy, pagewise.boundary.db.base
System role: Persistent job queue for background ingestion
"""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from pagewise.boundary.db.base import Base, IdMixin, TimestampMixin


class JobType(str, enum.Enum):
    """
    Ingestion job types.

    EMBED: Chunk a chapter and embed its chunks (chapter-scoped)
    SUMMARIZE: Summarize a chapter (chapter-scoped, needs EMBED)
    EXTRACT_CONCEPTS: Extract chapter concepts (chapter-scoped, needs EMBED)
    EXTRACT_METADATA: Extract bibliographic metadata (document-scoped)
    CONSOLIDATE: Merge chapter concepts into document concepts (document-scoped)
    """

    EMBED = "embed"
    SUMMARIZE = "summarize"
    EXTRACT_CONCEPTS = "extract_concepts"
    EXTRACT_METADATA = "extract_metadata"
    CONSOLIDATE = "consolidate"

    @property
    def is_document_scoped(self) -> bool:
        return self in DOCUMENT_SCOPED_TYPES

    @property
    def depends_on_embed(self) -> bool:
        return self in (JobType.SUMMARIZE, JobType.EXTRACT_CONCEPTS)


DOCUMENT_SCOPED_TYPES = frozenset({JobType.EXTRACT_METADATA, JobType.CONSOLIDATE})

# Lower runs first; FIFO by created_at within a tier.
JOB_PRIORITY: dict[JobType, int] = {
    JobType.EMBED: 1,
    JobType.SUMMARIZE: 2,
    JobType.EXTRACT_CONCEPTS: 2,
    JobType.EXTRACT_METADATA: 3,
    JobType.CONSOLIDATE: 4,
}


class JobStatus(str, enum.Enum):
    """
    Job execution states.

    PENDING: Waiting to be claimed (new, retrying or recovered)
    RUNNING: Claimed by an in-process worker
    DONE: Completed successfully
    FAILED: Attempts exhausted or terminal error; see last_error
    """

    PENDING = "pending"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


class JobModel(Base, IdMixin, TimestampMixin):
    """
    Job ORM model.

    Attributes:
        id: Integer primary key
        document_id: Target document (cascade delete)
        chapter_id: Target chapter, required for chapter-scoped types and
                    NULL for document-scoped types
        type: Job type enum
        status: Current execution state
        attempts: Failed attempts so far
        last_error: Error message of the latest failed attempt
        retry_after: Earliest time a retried job may be claimed again
        created_at: Enqueue timestamp, FIFO key within a priority tier

    Workflow:
        1. Ingestion inserts jobs as PENDING
        2. Scheduler claims a job atomically: PENDING → RUNNING
        3. Worker finishes: RUNNING → DONE, or back to PENDING with
           retry_after, or FAILED once attempts are exhausted
    """

    __tablename__ = "jobs"
    __table_args__ = (Index("ix_jobs_status_created", "status", "created_at"),)

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
    type: Mapped[JobType] = mapped_column(
        Enum(
            JobType,
            native_enum=False,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
    )
    status: Mapped[JobStatus] = mapped_column(
        Enum(
            JobStatus,
            native_enum=False,
            values_callable=lambda members: [m.value for m in members],
        ),
        nullable=False,
        default=JobStatus.PENDING,
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)
    retry_after: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
