"""
Document API schemas.

Request/response schemas for document ingestion and status.

Dependencies: pydantic
System role: Document API contracts
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from pagewise.boundary.db.models import ProcessingStatus


class DocumentCreateRequest(BaseModel):
    """Request to ingest a document readable by the server."""

    path: str = Field(description="Server-side path of the PDF file")


class ChapterResponse(BaseModel):
    """Chapter with per-stage statuses."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    chapter_index: int
    start_page: int
    end_page: int
    status: ProcessingStatus
    error_message: str | None = None
    summary: str | None = None
    summary_status: ProcessingStatus
    summary_error: str | None = None
    concepts_status: ProcessingStatus
    concepts_error: str | None = None


class DocumentSummaryResponse(BaseModel):
    """Document without its chapters."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    filename: str
    title: str | None = None
    page_count: int
    status: ProcessingStatus
    error_message: str | None = None
    metadata: dict | None = Field(default=None, validation_alias="metadata_")
    created_at: datetime


class DocumentResponse(DocumentSummaryResponse):
    """Document with its chapters."""

    chapters: list[ChapterResponse] = Field(default_factory=list)
