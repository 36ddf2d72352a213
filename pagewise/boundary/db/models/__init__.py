"""
Database models package.

Exports:
  - DocumentModel, ChapterModel, ProcessingStatus: document structure
  - ChunkModel: retrievable text units
  - MessageModel, MessageRole, ConversationSummaryModel: conversations
  - ConceptModel: extracted study concepts
  - JobModel, JobStatus, JobType: background ingestion jobs

Dependencies: sqlalchemy, pagewise.boundary.db.base
System role: Database model definitions for domain entities
"""

from pagewise.boundary.db.models.document_model import ChapterModel, DocumentModel, ProcessingStatus
from pagewise.boundary.db.models.chunk_model import ChunkModel
from pagewise.boundary.db.models.message_model import (
    ConversationSummaryModel,
    MessageModel,
    MessageRole,
)
from pagewise.boundary.db.models.concept_model import ConceptModel
from pagewise.boundary.db.models.job_model import (
    DOCUMENT_SCOPED_TYPES,
    JOB_PRIORITY,
    JobModel,
    JobStatus,
    JobType,
)

__all__ = [
    "DocumentModel",
    "ChapterModel",
    "ProcessingStatus",
    "ChunkModel",
    "MessageModel",
    "MessageRole",
    "ConversationSummaryModel",
    "ConceptModel",
    "JobModel",
    "JobStatus",
    "JobType",
    "JOB_PRIORITY",
    "DOCUMENT_SCOPED_TYPES",
]
