"""
Claim filters for pending jobs.

Mutual exclusion between jobs is expressed here declaratively instead of
with locks: a candidate is skipped while a conflicting worker is active.
Filters are evaluated against the registry as it is updated within a
tick, so jobs selected earlier in the same tick count as active.

Dependencies: pagewise.boundary.db
System role: Scheduling eligibility rules
"""

import enum
from datetime import datetime

from pagewise.boundary.db.base import as_utc
from pagewise.boundary.db.models import JobModel
from pagewise.core.scheduling.worker_registry import WorkerRegistry


class SkipReason(str, enum.Enum):
    """Why a pending candidate was not claimed this tick."""

    CLAIMED = "claimed"
    CANCELLING = "document_cancelling"
    DOCUMENT_BUSY = "document_busy"
    DOCUMENT_JOB_RUNNING = "document_job_running"
    CHAPTER_JOBS_OUTSTANDING = "chapter_jobs_outstanding"
    EMBED_ACTIVE = "embed_active"
    BACKING_OFF = "backing_off"


def skip_reason(
    job: JobModel,
    registry: WorkerRegistry,
    now: datetime,
    pending_chapter_documents: set[int] | frozenset[int] = frozenset(),
) -> SkipReason | None:
    """
    Decide whether a pending job may be claimed now.

    Args:
        job: Pending candidate
        registry: Active worker slots and cancellation flags
        now: Current UTC time
        pending_chapter_documents: Documents with chapter-scoped jobs still
            pending, backing-off jobs included

    Returns:
        SkipReason if the job must wait, None if it may run
    """
    if registry.is_claimed(job.id):
        return SkipReason.CLAIMED
    if registry.is_cancelled(job.document_id):
        return SkipReason.CANCELLING

    if job.type.is_document_scoped:
        # Document-scoped jobs read aggregate state chapter jobs are still writing.
        if registry.has_document_workers(job.document_id):
            return SkipReason.DOCUMENT_BUSY
        if job.document_id in pending_chapter_documents:
            return SkipReason.CHAPTER_JOBS_OUTSTANDING
    elif registry.has_document_scoped_worker(job.document_id):
        return SkipReason.DOCUMENT_JOB_RUNNING

    if job.type.depends_on_embed and registry.is_embed_active(job.chapter_id):
        return SkipReason.EMBED_ACTIVE

    retry_after = as_utc(job.retry_after)
    if retry_after is not None and retry_after > now:
        return SkipReason.BACKING_OFF
    return None
