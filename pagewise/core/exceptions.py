"""
Exception hierarchy for the PageWise application.

Provides layered exception structure for domain-specific errors.
The scheduler classifies job failures by these types: transient provider
errors are retried, missing preconditions and unrecoverable input are
terminal, and cancellation is a control-flow outcome rather than a failure.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class PageWiseException(Exception):
    """Base exception for all PageWise application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class DocumentError(PageWiseException):
    """Base exception for document-level errors."""


class DocumentNotFoundError(DocumentError):
    """Raised when a document cannot be found."""

    def __init__(self, document_id: int, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["document_id"] = document_id
        super().__init__(f"Document not found: {document_id}", details)


class DuplicateDocumentError(DocumentError):
    """Raised when a document with the same content hash already exists."""

    def __init__(self, existing_id: int, file_hash: str) -> None:
        self.existing_id = existing_id
        super().__init__(
            "This document has already been added",
            {"existing_id": existing_id, "file_hash": file_hash},
        )


class UnrecoverableInputError(DocumentError):
    """
    Raised when input can never be processed, e.g. too little extractable text.

    Terminal at ingestion time and never retried.
    """


class ProviderError(PageWiseException):
    """
    Raised when the language-model provider call fails.

    Treated as transient (network, timeout, rate limit) and retried with backoff.
    """

    def __init__(
        self,
        operation: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize provider error.

        Args:
            operation: Provider operation that failed (embed, generate_text, ...)
            reason: Underlying failure description
            details: Additional context
        """
        details = details or {}
        details["operation"] = operation
        super().__init__(f"Provider call '{operation}' failed: {reason}", details)


class MissingPreconditionError(PageWiseException):
    """
    Raised when a job's dependency has not produced its output.

    Terminal for the dependent job; retrying cannot fix a missing dependency.
    """


class JobCancelledError(PageWiseException):
    """Raised at a cancellation checkpoint when the owning document is being cancelled."""

    def __init__(self, document_id: int) -> None:
        self.document_id = document_id
        super().__init__(f"Processing cancelled for document {document_id}", {"document_id": document_id})


class RetrievalError(PageWiseException):
    """Raised when candidate retrieval fails."""


class SummarizationError(PageWiseException):
    """Raised when older conversation turns cannot be summarized."""
