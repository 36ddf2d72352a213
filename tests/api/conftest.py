"""
API test fixtures.

Provides: TestClient over an app without lifespan hooks, and plain
attribute objects standing in for ORM rows in response serialization
Dependencies: pytest, fastapi
System role: HTTP layer test infrastructure
"""

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from pagewise.api.main import create_app
from pagewise.boundary.db.models import ProcessingStatus


@pytest.fixture
def client():
    app = create_app(use_lifespan=False)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def document_row():
    """A document with one chapter, shaped like a loaded DocumentModel."""
    chapter = SimpleNamespace(
        id=10,
        title="Chapter One",
        chapter_index=0,
        start_page=1,
        end_page=12,
        status=ProcessingStatus.PROCESSING,
        error_message=None,
        summary=None,
        summary_status=ProcessingStatus.PROCESSING,
        summary_error=None,
        concepts_status=ProcessingStatus.PROCESSING,
        concepts_error=None,
    )
    return SimpleNamespace(
        id=1,
        filename="book.pdf",
        title=None,
        page_count=12,
        status=ProcessingStatus.PROCESSING,
        error_message=None,
        metadata_=None,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        chapters=[chapter],
    )
