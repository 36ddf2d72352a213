"""
Job service.

Read-side view of a document's ingestion jobs for status polling.

Dependencies: sqlalchemy, pagewise.boundary.db, pagewise.core.scheduling
System role: Job status reporting
"""

from sqlalchemy.ext.asyncio import AsyncSession

from pagewise.boundary.db.CRUD import document_crud, job_crud
from pagewise.core.exceptions import DocumentNotFoundError
from pagewise.core.scheduling import IngestionScheduler, ProgressNotifier
from pagewise.models.job import DocumentJobsResponse, JobResponse


class JobService:
    """Reports job state for documents."""

    def __init__(
        self,
        db: AsyncSession,
        scheduler: IngestionScheduler,
        notifier: ProgressNotifier | None = None,
    ) -> None:
        """
        Initialize job service.

        Args:
            db: AsyncSession for job reads
            scheduler: Scheduler queried for in-flight workers
            notifier: Progress notifier holding the latest embed progress
        """
        self.db = db
        self._scheduler = scheduler
        self._notifier = notifier

    async def get_document_jobs(self, document_id: int) -> DocumentJobsResponse:
        """
        List a document's jobs and whether any work is outstanding.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        if not await document_crud.exists(self.db, document_id):
            raise DocumentNotFoundError(document_id)

        jobs = await job_crud.get_by_document(self.db, document_id)
        return DocumentJobsResponse(
            document_id=document_id,
            is_active=await self._scheduler.is_active(document_id),
            jobs=[JobResponse.model_validate(job) for job in jobs],
            progress=self._notifier.latest(document_id) if self._notifier else [],
        )
