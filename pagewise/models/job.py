"""
Job API schemas.

Dependencies: pydantic
System role: Job status API contracts
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from pagewise.boundary.db.models import JobStatus, JobType
from pagewise.models.progress import ProgressEvent


class JobResponse(BaseModel):
    """Persisted state of one ingestion job."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    document_id: int
    chapter_id: int | None = None
    type: JobType
    status: JobStatus
    attempts: int
    last_error: str | None = None
    retry_after: datetime | None = None
    created_at: datetime


class DocumentJobsResponse(BaseModel):
    """Jobs of a document and whether work is still outstanding."""

    document_id: int
    is_active: bool
    jobs: list[JobResponse]
    progress: list[ProgressEvent] = Field(default_factory=list, description="Latest embed progress per chapter")
