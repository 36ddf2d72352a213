"""API routers."""

from .chat import router as chat_router
from .concepts import router as concepts_router
from .documents import router as documents_router
from .health import router as health_router
from .jobs import router as jobs_router

__all__ = [
    "chat_router",
    "concepts_router",
    "documents_router",
    "health_router",
    "jobs_router",
]
