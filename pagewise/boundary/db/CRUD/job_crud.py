"""
Job CRUD operations.

Provides the persistent side of the ingestion scheduler: bulk job
creation at ingestion time, the priority-ordered claim candidate query,
the atomic pending → running claim, and the terminal/retry transitions.

Dependencies: sqlalchemy, pagewise.boundary.db.models
System role: Job persistence operations for background ingestion
"""

from datetime import datetime
from typing import Iterable, Sequence

from sqlalchemy import and_, case, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from pagewise.boundary.db.CRUD.base_crud import BaseCRUD
from pagewise.boundary.db.models import JOB_PRIORITY, JobModel, JobStatus, JobType

CHAPTER_JOB_TYPES = (JobType.EMBED, JobType.SUMMARIZE, JobType.EXTRACT_CONCEPTS)
DOCUMENT_JOB_TYPES = (JobType.EXTRACT_METADATA, JobType.CONSOLIDATE)


def _priority_expression():
    return case(
        *((JobModel.type == job_type, priority) for job_type, priority in JOB_PRIORITY.items()),
        else_=len(JOB_PRIORITY) + 1,
    )


class JobCRUD(BaseCRUD[JobModel]):
    """
    CRUD operations for JobModel.

    Extends BaseCRUD with the queue operations used by the scheduler.
    Status transitions are conditional UPDATEs so a job deleted by
    cancellation, or already moved by another path, is left untouched.
    """

    def __init__(self) -> None:
        """Initialize JobCRUD with JobModel."""
        super().__init__(JobModel)

    async def create_job(
        self,
        session: AsyncSession,
        document_id: int,
        job_type: JobType,
        chapter_id: int | None = None,
    ) -> JobModel:
        """
        Create a single pending job.

        Args:
            session: Async database session
            document_id: Target document
            job_type: Job type
            chapter_id: Target chapter; required for chapter-scoped types,
                        forbidden for document-scoped types

        Returns:
            Created JobModel

        Raises:
            ValueError: If chapter_id does not match the job type's scope
        """
        if job_type.is_document_scoped and chapter_id is not None:
            raise ValueError(f"{job_type.value} jobs are document-scoped and take no chapter_id")
        if not job_type.is_document_scoped and chapter_id is None:
            raise ValueError(f"{job_type.value} jobs require a chapter_id")
        return await self.create(
            session,
            document_id=document_id,
            chapter_id=chapter_id,
            type=job_type,
            status=JobStatus.PENDING,
        )

    async def create_document_jobs(
        self,
        session: AsyncSession,
        document_id: int,
        chapter_ids: Iterable[int],
    ) -> list[JobModel]:
        """
        Create the full job set for a newly ingested document.

        One embed, summarize and extract_concepts job per chapter, plus one
        extract_metadata and one consolidate job for the document.

        Args:
            session: Async database session
            document_id: Target document
            chapter_ids: The document's chapter ids in reading order

        Returns:
            Created JobModels
        """
        rows = [
            {"document_id": document_id, "chapter_id": chapter_id, "type": job_type, "status": JobStatus.PENDING}
            for chapter_id in chapter_ids
            for job_type in CHAPTER_JOB_TYPES
        ]
        rows.extend(
            {"document_id": document_id, "chapter_id": None, "type": job_type, "status": JobStatus.PENDING}
            for job_type in DOCUMENT_JOB_TYPES
        )
        return await self.create_many(session, rows)

    async def fetch_claim_candidates(
        self,
        session: AsyncSession,
        limit: int,
        now: datetime | None = None,
    ) -> Sequence[JobModel]:
        """
        Read pending jobs in claim order.

        Ordered by job-type priority, then created_at, then id. Dependent
        chapter jobs (summarize, extract_concepts) are left out while the
        same chapter still has an embed job pending or running, so they
        only re-enter the pool once their dependency has completed. With
        ``now``, jobs still inside their retry backoff are left out too, so
        they cannot fill the window ahead of jobs that are ready.

        Args:
            session: Async database session
            limit: Maximum number of candidates
            now: Current UTC time; None keeps backing-off jobs

        Returns:
            Sequence of pending JobModels
        """
        embed_job = aliased(JobModel)
        embed_outstanding = (
            select(embed_job.id)
            .where(
                embed_job.chapter_id == JobModel.chapter_id,
                embed_job.type == JobType.EMBED,
                embed_job.status.in_([JobStatus.PENDING, JobStatus.RUNNING]),
            )
            .exists()
        )
        stmt = select(JobModel).where(
            JobModel.status == JobStatus.PENDING,
            ~and_(
                JobModel.type.in_([JobType.SUMMARIZE, JobType.EXTRACT_CONCEPTS]),
                embed_outstanding,
            ),
        )
        if now is not None:
            stmt = stmt.where(or_(JobModel.retry_after.is_(None), JobModel.retry_after <= now))
        stmt = stmt.order_by(_priority_expression(), JobModel.created_at, JobModel.id).limit(limit)
        result = await session.execute(stmt)
        return result.scalars().all()

    async def documents_with_pending_chapter_jobs(
        self,
        session: AsyncSession,
        document_ids: Iterable[int],
    ) -> set[int]:
        """
        Documents among ``document_ids`` that still have chapter jobs pending.

        Backing-off jobs count, since they will run again.
        """
        ids = set(document_ids)
        if not ids:
            return set()
        stmt = (
            select(JobModel.document_id)
            .where(
                JobModel.document_id.in_(ids),
                JobModel.type.in_(CHAPTER_JOB_TYPES),
                JobModel.status == JobStatus.PENDING,
            )
            .distinct()
        )
        result = await session.execute(stmt)
        return set(result.scalars().all())

    async def claim(self, session: AsyncSession, job_id: int) -> bool:
        """
        Atomically move a job from pending to running.

        Returns:
            True if this call claimed the job, False if it no longer exists
            or is not pending
        """
        stmt = (
            update(JobModel)
            .where(JobModel.id == job_id, JobModel.status == JobStatus.PENDING)
            .values(status=JobStatus.RUNNING)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def _transition(self, session: AsyncSession, job_id: int, **values) -> bool:
        stmt = (
            update(JobModel)
            .where(JobModel.id == job_id, JobModel.status == JobStatus.RUNNING)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount > 0

    async def mark_done(self, session: AsyncSession, job_id: int) -> bool:
        """Mark a running job as done."""
        return await self._transition(session, job_id, status=JobStatus.DONE, last_error=None, retry_after=None)

    async def mark_retry(
        self,
        session: AsyncSession,
        job_id: int,
        attempts: int,
        error: str,
        retry_after: datetime,
    ) -> bool:
        """
        Return a running job to pending after a failed attempt.

        Args:
            session: Async database session
            job_id: Job primary key
            attempts: Updated attempt count
            error: Error message of the failed attempt
            retry_after: Earliest time the job may be claimed again

        Returns:
            True if the job was updated
        """
        return await self._transition(
            session,
            job_id,
            status=JobStatus.PENDING,
            attempts=attempts,
            last_error=error,
            retry_after=retry_after,
        )

    async def mark_failed(self, session: AsyncSession, job_id: int, attempts: int, error: str) -> bool:
        """Mark a running job as permanently failed."""
        return await self._transition(
            session,
            job_id,
            status=JobStatus.FAILED,
            attempts=attempts,
            last_error=error,
            retry_after=None,
        )

    async def release(self, session: AsyncSession, job_id: int) -> bool:
        """Return a running job to pending without counting an attempt (cancellation)."""
        return await self._transition(session, job_id, status=JobStatus.PENDING)

    async def reset_stale_running(self, session: AsyncSession) -> int:
        """
        Reset jobs left running by a previous process back to pending.

        Returns:
            int: Number of recovered jobs
        """
        stmt = (
            update(JobModel)
            .where(JobModel.status == JobStatus.RUNNING)
            .values(status=JobStatus.PENDING)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount

    async def delete_by_document(self, session: AsyncSession, document_id: int) -> int:
        """
        Delete every job of a document.

        Returns:
            int: Number of deleted jobs
        """
        stmt = delete(JobModel).where(JobModel.document_id == document_id)
        result = await session.execute(stmt)
        return result.rowcount

    async def get_by_document(self, session: AsyncSession, document_id: int) -> Sequence[JobModel]:
        """Retrieve a document's jobs in creation order."""
        stmt = (
            select(JobModel)
            .where(JobModel.document_id == document_id)
            .order_by(JobModel.created_at, JobModel.id)
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def has_open_jobs(self, session: AsyncSession, document_id: int) -> bool:
        """Whether any pending or running job still targets a document."""
        stmt = select(func.count(JobModel.id)).where(
            JobModel.document_id == document_id,
            JobModel.status.in_([JobStatus.PENDING, JobStatus.RUNNING]),
        )
        result = await session.execute(stmt)
        return int(result.scalar_one()) > 0


job_crud = JobCRUD()
