"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from pagewise.boundary.db.CRUD import job_crud, chunk_crud

    jobs = await job_crud.get_by_document(db, document_id)
"""

from pagewise.boundary.db.CRUD.base_crud import BaseCRUD
from pagewise.boundary.db.CRUD.document_crud import ChapterCRUD, DocumentCRUD, chapter_crud, document_crud
from pagewise.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud
from pagewise.boundary.db.CRUD.message_crud import (
    ConversationSummaryCRUD,
    MessageCRUD,
    conversation_summary_crud,
    message_crud,
)
from pagewise.boundary.db.CRUD.concept_crud import ConceptCRUD, concept_crud
from pagewise.boundary.db.CRUD.job_crud import JobCRUD, job_crud

__all__ = [
    "BaseCRUD",
    "DocumentCRUD",
    "document_crud",
    "ChapterCRUD",
    "chapter_crud",
    "ChunkCRUD",
    "chunk_crud",
    "MessageCRUD",
    "message_crud",
    "ConversationSummaryCRUD",
    "conversation_summary_crud",
    "ConceptCRUD",
    "concept_crud",
    "JobCRUD",
    "job_crud",
]
