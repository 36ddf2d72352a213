"""
Integration tests for JobCRUD.

Tests the job queue operations against a real SQLite database: bulk
creation, claim candidates, the atomic claim and status transitions.

Dependencies: pytest, pytest-asyncio, sqlalchemy, aiosqlite
System role: Job persistence layer validation
"""

from datetime import datetime, timedelta, timezone

import pytest

from pagewise.boundary.db.CRUD import job_crud
from pagewise.boundary.db.models import JobStatus, JobType


@pytest.fixture
async def document_with_jobs(make_document):
    """Two-chapter document with its full job set."""
    return await make_document(chapter_titles=("One", "Two"), with_jobs=True)


async def _job(db, document_id: int, job_type: JobType, chapter_id: int | None = None):
    jobs = await job_crud.get_by_document(db, document_id)
    return next(j for j in jobs if j.type == job_type and (chapter_id is None or j.chapter_id == chapter_id))


class TestJobCreation:
    """Test suite for job creation."""

    @pytest.mark.asyncio
    async def test_create_document_jobs_should_create_full_set(self, test_async_db, document_with_jobs):
        """Test three chapter jobs per chapter plus two document jobs."""
        document_id, chapter_ids = document_with_jobs

        jobs = await job_crud.get_by_document(test_async_db, document_id)

        assert len(jobs) == 8
        for chapter_id in chapter_ids:
            assert {j.type for j in jobs if j.chapter_id == chapter_id} == {
                JobType.EMBED,
                JobType.SUMMARIZE,
                JobType.EXTRACT_CONCEPTS,
            }
        assert {j.type for j in jobs if j.chapter_id is None} == {JobType.EXTRACT_METADATA, JobType.CONSOLIDATE}
        assert all(j.status == JobStatus.PENDING and j.attempts == 0 for j in jobs)

    @pytest.mark.asyncio
    async def test_create_job_should_validate_scope(self, test_async_db, make_document):
        """Test chapter_id must match the job type's scope."""
        document_id, chapter_ids = await make_document()

        with pytest.raises(ValueError):
            await job_crud.create_job(test_async_db, document_id, JobType.EMBED)
        with pytest.raises(ValueError):
            await job_crud.create_job(test_async_db, document_id, JobType.CONSOLIDATE, chapter_id=chapter_ids[0])


class TestClaimCandidates:
    """Test suite for fetch_claim_candidates."""

    @pytest.mark.asyncio
    async def test_candidates_should_exclude_jobs_waiting_for_embed(self, test_async_db, document_with_jobs):
        """Test summarize/extract_concepts are hidden while their embed is open."""
        document_id, _ = document_with_jobs

        candidates = await job_crud.fetch_claim_candidates(test_async_db, limit=20)

        assert [job.type for job in candidates] == [
            JobType.EMBED,
            JobType.EMBED,
            JobType.EXTRACT_METADATA,
            JobType.CONSOLIDATE,
        ]

    @pytest.mark.asyncio
    async def test_completed_embed_should_release_dependents(self, test_async_db, document_with_jobs):
        """Test a chapter's dependent jobs appear once its embed is done."""
        # Arrange
        document_id, chapter_ids = document_with_jobs
        embed = await _job(test_async_db, document_id, JobType.EMBED, chapter_ids[0])
        await job_crud.claim(test_async_db, embed.id)
        await job_crud.mark_done(test_async_db, embed.id)

        # Act
        candidates = await job_crud.fetch_claim_candidates(test_async_db, limit=20)

        # Assert
        assert [(job.type, job.chapter_id) for job in candidates][:3] == [
            (JobType.EMBED, chapter_ids[1]),
            (JobType.SUMMARIZE, chapter_ids[0]),
            (JobType.EXTRACT_CONCEPTS, chapter_ids[0]),
        ]

    @pytest.mark.asyncio
    async def test_candidates_should_respect_limit(self, test_async_db, document_with_jobs):
        """Test the candidate window is bounded."""
        candidates = await job_crud.fetch_claim_candidates(test_async_db, limit=1)

        assert len(candidates) == 1

    @pytest.mark.asyncio
    async def test_candidates_should_skip_backing_off_jobs_when_given_now(self, test_async_db, document_with_jobs):
        """Test jobs inside their retry window are left out of the query."""
        # Arrange
        document_id, chapter_ids = document_with_jobs
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        embed = await _job(test_async_db, document_id, JobType.EMBED, chapter_ids[0])
        await job_crud.update_by_id(test_async_db, embed.id, retry_after=now + timedelta(minutes=5))

        # Act
        waiting = await job_crud.fetch_claim_candidates(test_async_db, limit=20, now=now)
        unfiltered = await job_crud.fetch_claim_candidates(test_async_db, limit=20)
        later = await job_crud.fetch_claim_candidates(test_async_db, limit=20, now=now + timedelta(minutes=6))

        # Assert
        assert embed.id not in [job.id for job in waiting]
        assert embed.id in [job.id for job in unfiltered]
        assert embed.id in [job.id for job in later]

    @pytest.mark.asyncio
    async def test_documents_with_pending_chapter_jobs(self, test_async_db, document_with_jobs, make_document):
        """Test only documents with pending chapter jobs are reported."""
        document_id, _ = document_with_jobs
        idle_id, _ = await make_document()

        pending = await job_crud.documents_with_pending_chapter_jobs(test_async_db, [document_id, idle_id])

        assert pending == {document_id}
        assert await job_crud.documents_with_pending_chapter_jobs(test_async_db, []) == set()


class TestTransitions:
    """Test suite for claim and status transitions."""

    @pytest.mark.asyncio
    async def test_claim_should_succeed_only_once(self, test_async_db, document_with_jobs):
        """Test the pending → running claim is atomic."""
        document_id, _ = document_with_jobs
        embed = await _job(test_async_db, document_id, JobType.EMBED)

        assert await job_crud.claim(test_async_db, embed.id) is True
        assert await job_crud.claim(test_async_db, embed.id) is False

    @pytest.mark.asyncio
    async def test_transitions_should_require_running_job(self, test_async_db, document_with_jobs):
        """Test done/failed/retry only apply to running jobs."""
        document_id, _ = document_with_jobs
        embed = await _job(test_async_db, document_id, JobType.EMBED)

        assert await job_crud.mark_done(test_async_db, embed.id) is False
        assert await job_crud.mark_failed(test_async_db, embed.id, 1, "boom") is False

    @pytest.mark.asyncio
    async def test_mark_retry_should_record_attempt(self, test_async_db, document_with_jobs):
        """Test a retried job returns to pending with its error and backoff."""
        # Arrange
        document_id, _ = document_with_jobs
        embed = await _job(test_async_db, document_id, JobType.EMBED)
        retry_after = datetime(2030, 1, 1, tzinfo=timezone.utc)
        await job_crud.claim(test_async_db, embed.id)

        # Act
        updated = await job_crud.mark_retry(test_async_db, embed.id, 1, "rate limited", retry_after)
        test_async_db.expire_all()
        job = await job_crud.get_by_id(test_async_db, embed.id)

        # Assert
        assert updated is True
        assert job.status == JobStatus.PENDING
        assert job.attempts == 1
        assert job.last_error == "rate limited"
        assert job.retry_after is not None

    @pytest.mark.asyncio
    async def test_release_should_not_count_attempt(self, test_async_db, document_with_jobs):
        """Test releasing a running job returns it to pending unchanged."""
        document_id, _ = document_with_jobs
        embed = await _job(test_async_db, document_id, JobType.EMBED)
        await job_crud.claim(test_async_db, embed.id)

        assert await job_crud.release(test_async_db, embed.id) is True
        test_async_db.expire_all()
        job = await job_crud.get_by_id(test_async_db, embed.id)
        assert (job.status, job.attempts) == (JobStatus.PENDING, 0)

    @pytest.mark.asyncio
    async def test_reset_stale_running_should_recover_running_jobs(self, test_async_db, document_with_jobs):
        """Test only running jobs are reset."""
        document_id, chapter_ids = document_with_jobs
        first = await _job(test_async_db, document_id, JobType.EMBED, chapter_ids[0])
        second = await _job(test_async_db, document_id, JobType.EMBED, chapter_ids[1])
        await job_crud.claim(test_async_db, first.id)
        await job_crud.claim(test_async_db, second.id)
        await job_crud.mark_done(test_async_db, second.id)

        assert await job_crud.reset_stale_running(test_async_db) == 1

    @pytest.mark.asyncio
    async def test_open_jobs_and_delete_by_document(self, test_async_db, document_with_jobs):
        """Test has_open_jobs follows deletion of a document's jobs."""
        document_id, _ = document_with_jobs

        assert await job_crud.has_open_jobs(test_async_db, document_id) is True
        assert await job_crud.delete_by_document(test_async_db, document_id) == 8
        assert await job_crud.has_open_jobs(test_async_db, document_id) is False
