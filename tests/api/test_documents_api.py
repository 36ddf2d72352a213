"""
Tests for document endpoints.

Dependencies: pytest, fastapi
System role: Document HTTP API validation
"""

from unittest.mock import AsyncMock

import pytest

from pagewise.api.deps import get_document_service
from pagewise.core.exceptions import (
    DocumentError,
    DocumentNotFoundError,
    DuplicateDocumentError,
    UnrecoverableInputError,
)


@pytest.fixture
def mock_document_service(client):
    service = AsyncMock()
    client.app.dependency_overrides[get_document_service] = lambda: service
    return service


def test_create_document(client, mock_document_service, document_row):
    mock_document_service.ingest.return_value = document_row

    response = client.post("/api/v1/documents", json={"path": "/data/book.pdf"})

    assert response.status_code == 201
    data = response.json()
    assert data["id"] == 1
    assert data["status"] == "processing"
    assert [chapter["title"] for chapter in data["chapters"]] == ["Chapter One"]
    mock_document_service.ingest.assert_awaited_once_with("/data/book.pdf")


def test_create_duplicate_document(client, mock_document_service):
    mock_document_service.ingest.side_effect = DuplicateDocumentError(existing_id=7, file_hash="abc")

    response = client.post("/api/v1/documents", json={"path": "/data/book.pdf"})

    assert response.status_code == 409
    assert response.json()["detail"] == {
        "message": "This document has already been added",
        "existing_id": 7,
    }


def test_create_unprocessable_document(client, mock_document_service):
    mock_document_service.ingest.side_effect = UnrecoverableInputError(
        "This PDF appears to be scanned; only text-based PDFs are supported"
    )

    response = client.post("/api/v1/documents", json={"path": "/data/scan.pdf"})

    assert response.status_code == 422
    assert "scanned" in response.json()["detail"]


def test_create_document_missing_file(client, mock_document_service):
    mock_document_service.ingest.side_effect = DocumentError("File not found: /data/missing.pdf")

    response = client.post("/api/v1/documents", json={"path": "/data/missing.pdf"})

    assert response.status_code == 404


def test_create_document_requires_path(client, mock_document_service):
    response = client.post("/api/v1/documents", json={})

    assert response.status_code == 422
    mock_document_service.ingest.assert_not_called()


def test_list_documents(client, mock_document_service, document_row):
    mock_document_service.list_documents.return_value = [document_row]

    response = client.get("/api/v1/documents")

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["filename"] == "book.pdf"
    assert "chapters" not in data[0]


def test_get_document(client, mock_document_service, document_row):
    mock_document_service.get_document.return_value = document_row

    response = client.get("/api/v1/documents/1")

    assert response.status_code == 200
    assert response.json()["chapters"][0]["summary_status"] == "processing"


def test_get_document_not_found(client, mock_document_service):
    mock_document_service.get_document.side_effect = DocumentNotFoundError(99)

    response = client.get("/api/v1/documents/99")

    assert response.status_code == 404
    assert response.json()["detail"] == "Document not found: 99"


def test_delete_document(client, mock_document_service):
    mock_document_service.delete_document.return_value = None

    response = client.delete("/api/v1/documents/1")

    assert response.status_code == 204
    mock_document_service.delete_document.assert_awaited_once_with(1)


def test_delete_document_not_found(client, mock_document_service):
    mock_document_service.delete_document.side_effect = DocumentNotFoundError(99)

    response = client.delete("/api/v1/documents/99")

    assert response.status_code == 404
