"""
In-memory worker slot registry.

Tracks which jobs are running in this process and which documents are
under cancellation. Owned by one scheduler instance; empty at startup,
entries added on claim and removed when the worker finishes.

Dependencies: pagewise.boundary.db.models
System role: Worker slot accounting and cooperative cancellation flags
"""

from dataclasses import dataclass

from pagewise.boundary.db.models import JobType


@dataclass(frozen=True)
class WorkerSlot:
    """An active worker: the job it runs and what it targets."""

    job_id: int
    document_id: int
    chapter_id: int | None
    job_type: JobType


class WorkerRegistry:
    """
    Bounded registry of active worker slots.

    A document's cancellation flag stays set while any of its workers is
    still running so in-flight work observes it at the next checkpoint;
    it is cleared when the document's last worker is released.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._slots: dict[int, WorkerSlot] = {}
        self._cancelled: set[int] = set()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def active_count(self) -> int:
        return len(self._slots)

    @property
    def available_slots(self) -> int:
        return max(0, self._capacity - len(self._slots))

    def slots(self) -> list[WorkerSlot]:
        return list(self._slots.values())

    def acquire(self, slot: WorkerSlot) -> None:
        """
        Register an active worker.

        Raises:
            RuntimeError: If the registry is full or the job is already claimed
        """
        if slot.job_id in self._slots:
            raise RuntimeError(f"Job {slot.job_id} is already claimed")
        if self.available_slots == 0:
            raise RuntimeError("No worker slot available")
        self._slots[slot.job_id] = slot

    def release(self, job_id: int) -> WorkerSlot | None:
        """Remove a worker slot; returns it, or None if it was not registered."""
        slot = self._slots.pop(job_id, None)
        if slot is not None and not self.has_document_workers(slot.document_id):
            self._cancelled.discard(slot.document_id)
        return slot

    def is_claimed(self, job_id: int) -> bool:
        return job_id in self._slots

    def has_document_workers(self, document_id: int) -> bool:
        return any(slot.document_id == document_id for slot in self._slots.values())

    def has_document_scoped_worker(self, document_id: int) -> bool:
        return any(
            slot.document_id == document_id and slot.job_type.is_document_scoped
            for slot in self._slots.values()
        )

    def is_embed_active(self, chapter_id: int | None) -> bool:
        if chapter_id is None:
            return False
        return any(
            slot.chapter_id == chapter_id and slot.job_type == JobType.EMBED
            for slot in self._slots.values()
        )

    def request_cancel(self, document_id: int) -> None:
        """Flag a document for cooperative cancellation."""
        self._cancelled.add(document_id)
        if not self.has_document_workers(document_id):
            # Nothing in flight observes the flag; queued work is removed by the caller.
            self._cancelled.discard(document_id)

    def is_cancelled(self, document_id: int) -> bool:
        return document_id in self._cancelled
