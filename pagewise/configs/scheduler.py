"""
Ingestion scheduler configuration settings.

Controls concurrency, retry policy, polling cadence, embedding batch size,
progress debouncing and chunking parameters for background ingestion.

Dependencies: pydantic, pydantic_settings
System role: Background job execution configuration
"""

from pydantic import Field

from pagewise.configs.base import BaseSettings, settings_config


class SchedulerSettings(BaseSettings):
    """Ingestion scheduler configuration."""

    model_config = settings_config("SCHEDULER")

    max_concurrency: int = Field(default=3, ge=1, description="Maximum concurrent workers")
    max_attempts: int = Field(default=3, ge=1, description="Attempts before a job is marked failed")
    base_delay_ms: int = Field(default=1000, ge=0, description="Base retry delay in milliseconds")
    jitter_ms: int = Field(default=0, ge=0, description="Maximum random jitter added to retry delay")
    poll_interval_seconds: float = Field(default=0.5, gt=0, description="Delay between polling ticks")
    candidate_window: int = Field(
        default=20,
        ge=1,
        description="Pending jobs read per tick before filtering",
    )
    embed_batch_size: int = Field(default=100, ge=1, description="Chunks per embedding request")
    progress_debounce_ms: int = Field(default=100, ge=0, description="Progress coalescing window")
    chunk_size: int = Field(default=1500, description="Chunk size in characters")
    chunk_overlap: int = Field(default=200, description="Overlap between chunks in characters")
