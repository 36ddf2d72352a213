"""
API dependencies.
"""

from pagewise.api.deps.dependencies import (
    ServiceContainer,
    get_chat_service,
    get_concept_service,
    get_document_service,
    get_job_service,
    get_service_container,
)

__all__ = [
    "ServiceContainer",
    "get_chat_service",
    "get_concept_service",
    "get_document_service",
    "get_job_service",
    "get_service_container",
]
