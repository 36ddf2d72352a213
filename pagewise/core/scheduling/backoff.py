"""
Retry backoff policy.

Dependencies: random (stdlib)
System role: Exponential backoff for failed job attempts
"""

import random
from datetime import datetime, timedelta


def retry_delay_ms(attempts: int, base_delay_ms: int, jitter_ms: int = 0, rng: random.Random | None = None) -> int:
    """
    Delay before a failed job becomes eligible again.

    Args:
        attempts: Failed attempts so far (after incrementing)
        base_delay_ms: Base delay in milliseconds
        jitter_ms: Maximum uniform random jitter added
        rng: Random source, for deterministic tests

    Returns:
        int: base_delay_ms * 2**attempts plus jitter
    """
    delay = base_delay_ms * (2 ** attempts)
    if jitter_ms > 0:
        delay += (rng or random).randint(0, jitter_ms)
    return delay


def next_retry_at(now: datetime, attempts: int, base_delay_ms: int, jitter_ms: int = 0) -> datetime:
    """Retry-eligible timestamp for a job that has failed ``attempts`` times."""
    return now + timedelta(milliseconds=retry_delay_ms(attempts, base_delay_ms, jitter_ms))
