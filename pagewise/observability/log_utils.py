"""
Structured logging helpers for background jobs.

Scheduler events carry job, document and chapter ids through ``extra`` so
they can be filtered without parsing messages. Values are flattened to short
strings first; a chunk list or an LLM answer must never end up in a log line
whole.

Dependencies: logging (stdlib)
System role: Logging helper functions
"""

import enum
import logging
from typing import Any

# Keys LogRecord already defines; passing them through extra raises KeyError
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _render(value: Any, max_length: int) -> str:
    if value is None:
        return "None"
    if isinstance(value, enum.Enum):
        text = str(value.value)
    elif isinstance(value, (list, tuple, set, frozenset)):
        text = f"{type(value).__name__}({len(value)} items)"
    elif isinstance(value, dict):
        text = f"dict({len(value)} keys)"
    else:
        text = str(value)

    if len(text) > max_length:
        return f"{text[:max_length]}... ({len(text)} chars)"
    return text


def _as_extra(context: dict[str, Any], max_length: int = 300) -> dict[str, str]:
    return {
        (f"ctx_{key}" if key in _RESERVED else key): _render(value, max_length)
        for key, value in context.items()
    }


def job_context(job: Any) -> dict[str, Any]:
    """
    Identify a job for log context.

    Args:
        job: JobModel row (or anything with the same attributes)

    Returns:
        dict: job_id, document_id, chapter_id, job_type and attempts
    """
    return {
        "job_id": job.id,
        "document_id": job.document_id,
        "chapter_id": job.chapter_id,
        "job_type": job.type,
        "attempts": job.attempts,
    }


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """
    Log ``message`` with ``context`` attached as record attributes.

    Keys that collide with LogRecord attributes are prefixed with ``ctx_``.
    """
    logger.log(level, message, extra=_as_extra(context))


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context: Any,
) -> None:
    """
    Log a failure at ERROR with its traceback and context.

    Args:
        logger: Logger instance
        message: Log message
        exc: The exception being reported
        **context: Additional context, typically from job_context()
    """
    extra = _as_extra(context)
    extra["error_type"] = type(exc).__name__
    extra["error_msg"] = _render(str(exc), 1000)
    logger.error(message, exc_info=exc, extra=extra)
