"""
Job API endpoints.

Routes: GET /documents/{id}/jobs

Dependencies: fastapi, pagewise.application.services, pagewise.models
System role: Job status HTTP API
"""

from fastapi import APIRouter, Depends, HTTPException

from pagewise.api.deps import get_job_service
from pagewise.application.services import JobService
from pagewise.core.exceptions import DocumentNotFoundError
from pagewise.models.job import DocumentJobsResponse

router = APIRouter(prefix="/documents", tags=["jobs"])


@router.get("/{document_id}/jobs", response_model=DocumentJobsResponse)
async def get_document_jobs(
    document_id: int,
    job_service: JobService = Depends(get_job_service),
) -> DocumentJobsResponse:
    """
    Get a document's ingestion jobs for polling.

    ``is_active`` stays true while any job is pending or running; clients
    poll every 1-2 seconds until it turns false.

    Args:
        document_id: Document id
        job_service: Injected JobService

    Returns:
        DocumentJobsResponse: Jobs, activity flag and latest embed progress

    Raises:
        HTTPException(404): Document not found

    Example Response:
        {
            "document_id": 1,
            "is_active": true,
            "jobs": [
                {"id": 1, "type": "embed", "status": "done", "attempts": 0, ...},
                {"id": 2, "type": "summarize", "status": "running", "attempts": 0, ...}
            ],
            "progress": [
                {"document_id": 1, "chapter_id": 1, "stage": "embedding",
                 "processed": 100, "total": 100, "percent": 100}
            ]
        }
    """
    try:
        return await job_service.get_document_jobs(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
