"""
Application services.

Exports:
  - ChatService: streamed document Q&A
  - ConceptService: extracted concepts and quizzes
  - DocumentService: document registration, lookup and deletion
  - JobService: ingestion job status
"""

from pagewise.application.services.chat_service import ChatService
from pagewise.application.services.concept_service import ConceptService
from pagewise.application.services.document_service import DocumentService
from pagewise.application.services.job_service import JobService

__all__ = ["ChatService", "ConceptService", "DocumentService", "JobService"]
