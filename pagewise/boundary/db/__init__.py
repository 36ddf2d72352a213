"""
Relational store package.

Declarative base, async engine/session management, ORM models and CRUD.
"""

from pagewise.boundary.db.base import Base
from pagewise.boundary.db.connection import (
    create_engine_for_url,
    dispose_engine,
    get_async_db,
    get_async_engine,
    get_async_session_factory,
    init_models,
)

__all__ = [
    "Base",
    "create_engine_for_url",
    "dispose_engine",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    "init_models",
]
