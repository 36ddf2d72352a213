"""
Ingestion scheduler.

A single coordinating loop polls the persistent job table, claims ready
work up to the concurrency cap and runs one asyncio task per job. Each
worker drives the job state machine:

    pending → running → done
                      → pending (retry after exponential backoff)
                      → failed  (attempts exhausted or terminal error)

Cancellation is cooperative: a per-document flag in the worker registry is
checked by handlers at safe points, and a cancelled job goes back to
pending without counting an attempt (or disappears with its document).

Dependencies: asyncio, sqlalchemy, pagewise.boundary.db, pagewise.core
System role: Background job execution with bounded concurrency, retries and recovery
"""

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pagewise.boundary.db.base import utcnow
from pagewise.boundary.db.CRUD import chapter_crud, document_crud, job_crud
from pagewise.boundary.db.models import JobModel, JobType, ProcessingStatus
from pagewise.configs.scheduler import SchedulerSettings
from pagewise.core.exceptions import (
    JobCancelledError,
    MissingPreconditionError,
    PageWiseException,
    UnrecoverableInputError,
)
from pagewise.core.scheduling.backoff import next_retry_at
from pagewise.core.scheduling.job_filter import skip_reason
from pagewise.core.scheduling.worker_registry import WorkerRegistry, WorkerSlot
from pagewise.observability.log_utils import job_context, log_exception_with_context, log_with_context

logger = logging.getLogger(__name__)

PARTIAL_FAILURE_MESSAGE = "Some chapters failed to process"

TERMINAL_ERRORS = (MissingPreconditionError, UnrecoverableInputError)


class JobRunner(Protocol):
    """Executes the unit of work of a claimed job."""

    async def run(self, job: JobModel, checkpoint: Callable[[], None]) -> None: ...


def _error_text(error: BaseException) -> str:
    if isinstance(error, PageWiseException):
        return error.message
    return str(error) or type(error).__name__


class IngestionScheduler:
    """
    Polling scheduler for ingestion jobs.

    Usage:
        scheduler = IngestionScheduler(session_factory, handlers, settings)
        await scheduler.start()
        ...
        await scheduler.cancel(document_id)
        await scheduler.stop()
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        runner: JobRunner,
        settings: SchedulerSettings | None = None,
        registry: WorkerRegistry | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize scheduler.

        Args:
            session_factory: Async session factory for store access
            runner: Job handlers
            settings: Concurrency, retry and polling configuration
            registry: Worker slot registry (defaults to one sized by max_concurrency)
            clock: UTC clock used for backoff windows
        """
        self._session_factory = session_factory
        self._runner = runner
        self._settings = settings or SchedulerSettings()
        self._registry = registry or WorkerRegistry(self._settings.max_concurrency)
        self._clock = clock
        self._workers: dict[int, asyncio.Task] = {}
        self._loop_task: asyncio.Task | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def registry(self) -> WorkerRegistry:
        return self._registry

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    async def start(self) -> None:
        """Recover jobs left running by a previous process, then start polling."""
        if self.is_running:
            return
        recovered = await self.recover_stale_jobs()
        logger.info(f"{__name__}:start - Starting scheduler (recovered {recovered} stale jobs)")
        self._stop_event = asyncio.Event()
        self._loop_task = asyncio.create_task(self._run_loop(), name="ingestion-scheduler")

    schedule = start

    async def stop(self, timeout: float | None = 30.0) -> None:
        """
        Stop polling and wait for in-flight workers.

        Workers still running after ``timeout`` seconds are cancelled; their
        jobs stay running in the store and are recovered on the next start.

        Args:
            timeout: Seconds to wait for workers, None to wait indefinitely
        """
        if self._stop_event is not None:
            self._stop_event.set()
        if self._loop_task is not None:
            await self._loop_task
            self._loop_task = None

        pending = list(self._workers.values())
        if pending:
            done, still_running = await asyncio.wait(pending, timeout=timeout)
            for task in still_running:
                task.cancel()
            if still_running:
                await asyncio.gather(*still_running, return_exceptions=True)
        logger.info(f"{__name__}:stop - Scheduler stopped")

    async def recover_stale_jobs(self) -> int:
        """
        Reset jobs found running in the store back to pending.

        Only valid while this scheduler has no workers of its own.

        Returns:
            int: Number of recovered jobs
        """
        if self._registry.active_count:
            raise RuntimeError("Cannot recover stale jobs while workers are active")
        async with self._session_factory() as db:
            recovered = await job_crud.reset_stale_running(db)
            await db.commit()
        return recovered

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self.tick()
            except Exception as e:
                # Store errors must not kill the loop; the next tick re-polls.
                logger.error(f"{__name__}:_run_loop - Tick failed: {type(e).__name__}: {e}", exc_info=True)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._settings.poll_interval_seconds)
            except asyncio.TimeoutError:
                pass

    async def tick(self) -> list[int]:
        """
        Run one reconciliation pass.

        Reads pending candidates in priority order, filters out those that
        must wait, and spawns a worker per surviving job without awaiting it.

        Returns:
            list[int]: Ids of the jobs handed to new workers
        """
        available = self._registry.available_slots
        if available == 0:
            return []

        now = self._clock()
        async with self._session_factory() as db:
            candidates = await job_crud.fetch_claim_candidates(
                db,
                max(self._settings.candidate_window, available),
                now=now,
            )
            if not candidates:
                return []
            chapter_job_documents = await job_crud.documents_with_pending_chapter_jobs(
                db,
                {job.document_id for job in candidates if job.type.is_document_scoped},
            )

        started = []
        for job in candidates:
            if self._registry.available_slots == 0:
                break
            reason = skip_reason(job, self._registry, now, chapter_job_documents)
            if reason is not None:
                logger.debug(f"{__name__}:tick - Skipping job {job.id} ({job.type.value}): {reason.value}")
                continue
            self._registry.acquire(
                WorkerSlot(
                    job_id=job.id,
                    document_id=job.document_id,
                    chapter_id=job.chapter_id,
                    job_type=job.type,
                )
            )
            self._workers[job.id] = asyncio.create_task(self._run_worker(job), name=f"ingestion-job-{job.id}")
            started.append(job.id)

        if started:
            logger.info(f"{__name__}:tick - Started jobs {started} ({self._registry.active_count} active)")
        return started

    async def drain(self) -> None:
        """Wait until every worker spawned so far has finished."""
        while self._workers:
            await asyncio.gather(*list(self._workers.values()), return_exceptions=True)

    async def cancel(self, document_id: int) -> int:
        """
        Cancel all in-flight and queued work for a document.

        In-flight workers stop at their next checkpoint; queued jobs are
        deleted. Safe to call repeatedly and when nothing is running.

        Args:
            document_id: Document to cancel

        Returns:
            int: Number of deleted jobs
        """
        self._registry.request_cancel(document_id)
        async with self._session_factory() as db:
            deleted = await job_crud.delete_by_document(db, document_id)
            await db.commit()
        logger.info(
            f"{__name__}:cancel - document_id={document_id}: removed {deleted} jobs, "
            f"in-flight={self._registry.has_document_workers(document_id)}"
        )
        return deleted

    async def is_active(self, document_id: int) -> bool:
        """Whether any worker or pending/running job still targets a document."""
        if self._registry.has_document_workers(document_id):
            return True
        async with self._session_factory() as db:
            return await job_crud.has_open_jobs(db, document_id)

    def _checkpoint_for(self, document_id: int) -> Callable[[], None]:
        def checkpoint() -> None:
            if self._registry.is_cancelled(document_id):
                raise JobCancelledError(document_id)

        return checkpoint

    async def _run_worker(self, job: JobModel) -> None:
        context = job_context(job)
        try:
            async with self._session_factory() as db:
                claimed = await job_crud.claim(db, job.id)
                await db.commit()
            if not claimed:
                log_with_context(logger, logging.INFO, f"{__name__}:_run_worker - Job {job.id} no longer claimable", **context)
                return

            log_with_context(logger, logging.INFO, f"{__name__}:_run_worker - Running job {job.id} ({job.type.value})", **context)
            checkpoint = self._checkpoint_for(job.document_id)
            try:
                checkpoint()
                await self._runner.run(job, checkpoint)
            except JobCancelledError:
                await self._record_cancelled(job)
            except TERMINAL_ERRORS as e:
                await self._record_failure(job, e, terminal=True)
            except Exception as e:
                await self._record_failure(job, e, terminal=False)
            else:
                await self._record_success(job)
        except Exception as e:
            # Recording the outcome failed; the job stays running until restart recovery.
            log_exception_with_context(logger, f"{__name__}:_run_worker - Could not record outcome of job {job.id}", e, **context)
        finally:
            self._registry.release(job.id)
            self._workers.pop(job.id, None)

    async def _record_success(self, job: JobModel) -> None:
        async with self._session_factory() as db:
            updated = await job_crud.mark_done(db, job.id)
            if updated and job.type == JobType.EMBED:
                await chapter_crud.set_embed_status(db, job.chapter_id, ProcessingStatus.DONE)
                await self._refresh_document_status(db, job.document_id)
            await db.commit()
        logger.info(f"{__name__}:_record_success - Job {job.id} ({job.type.value}) done")

    async def _record_cancelled(self, job: JobModel) -> None:
        async with self._session_factory() as db:
            await job_crud.release(db, job.id)
            await db.commit()
        logger.info(f"{__name__}:_record_cancelled - Job {job.id} stopped for cancelled document {job.document_id}")

    async def _record_failure(self, job: JobModel, error: Exception, terminal: bool) -> None:
        attempts = job.attempts + 1
        message = _error_text(error)
        context = {**job_context(job), "attempts": attempts}

        if terminal or attempts >= self._settings.max_attempts:
            async with self._session_factory() as db:
                updated = await job_crud.mark_failed(db, job.id, attempts, message)
                if updated:
                    await self._propagate_failure(db, job, message)
                await db.commit()
            log_exception_with_context(logger, f"{__name__}:_record_failure - Job {job.id} failed permanently", error, **context)
            return

        retry_at = next_retry_at(self._clock(), attempts, self._settings.base_delay_ms, self._settings.jitter_ms)
        async with self._session_factory() as db:
            await job_crud.mark_retry(db, job.id, attempts, message, retry_at)
            await db.commit()
        log_with_context(
            logger,
            logging.WARNING,
            f"{__name__}:_record_failure - Job {job.id} attempt {attempts} failed, retry after {retry_at.isoformat()}: {message}",
            **context,
        )

    async def _propagate_failure(self, db: AsyncSession, job: JobModel, message: str) -> None:
        """Surface a terminal job error on the smallest affected unit."""
        if job.type == JobType.EMBED:
            await chapter_crud.set_embed_status(db, job.chapter_id, ProcessingStatus.ERROR, message)
            await self._refresh_document_status(db, job.document_id)
        elif job.type == JobType.SUMMARIZE:
            await chapter_crud.set_summary(db, job.chapter_id, ProcessingStatus.ERROR, error_message=message)
        elif job.type == JobType.EXTRACT_CONCEPTS:
            await chapter_crud.set_concepts_status(db, job.chapter_id, ProcessingStatus.ERROR, message)
        else:
            await document_crud.update_by_id(db, job.document_id, error_message=f"{job.type.value}: {message}")

    @staticmethod
    async def _refresh_document_status(db: AsyncSession, document_id: int) -> None:
        """Promote a document once every chapter's embed stage has settled."""
        chapters = await chapter_crud.get_by_document(db, document_id)
        statuses = [chapter.status for chapter in chapters]
        if not statuses:
            return
        if all(status == ProcessingStatus.DONE for status in statuses):
            await document_crud.set_status(db, document_id, ProcessingStatus.DONE)
        elif all(status in (ProcessingStatus.DONE, ProcessingStatus.ERROR) for status in statuses):
            await document_crud.set_status(db, document_id, ProcessingStatus.ERROR, PARTIAL_FAILURE_MESSAGE)
