"""
Background ingestion scheduling.

Exports:
  - IngestionScheduler: polling loop, worker spawning, job state machine
  - WorkerRegistry, WorkerSlot: in-memory worker slots and cancellation flags
  - ProgressNotifier: debounced progress fan-out
"""

from pagewise.core.scheduling.progress import ProgressNotifier
from pagewise.core.scheduling.scheduler import IngestionScheduler
from pagewise.core.scheduling.worker_registry import WorkerRegistry, WorkerSlot

__all__ = ["IngestionScheduler", "WorkerRegistry", "WorkerSlot", "ProgressNotifier"]
