"""
Document API endpoints.

Routes:
- POST /documents - Register a PDF by server-side path and queue processing
- GET /documents - List documents
- GET /documents/{id} - Document with chapters and per-stage statuses
- DELETE /documents/{id} - Cancel processing and delete the document

Dependencies: fastapi, pagewise.application.services, pagewise.models
System role: Document HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from pagewise.api.deps import get_document_service
from pagewise.application.services import DocumentService
from pagewise.core.exceptions import (
    DocumentError,
    DocumentNotFoundError,
    DuplicateDocumentError,
    UnrecoverableInputError,
)
from pagewise.models.document import DocumentCreateRequest, DocumentResponse, DocumentSummaryResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("", response_model=DocumentResponse, status_code=201)
async def create_document(
    request: DocumentCreateRequest,
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentResponse:
    """
    Register a PDF and queue its ingestion jobs.

    Args:
        request: Server-side path of the PDF
        document_service: Injected DocumentService

    Returns:
        DocumentResponse: Created document with its chapters

    Raises:
        HTTPException(404): File not found
        HTTPException(409): Same file already added (detail carries the existing id)
        HTTPException(422): File cannot be processed (too large, scanned)
    """
    try:
        document = await document_service.ingest(request.path)
    except DuplicateDocumentError as e:
        raise HTTPException(
            status_code=409,
            detail={"message": e.message, "existing_id": e.existing_id},
        )
    except UnrecoverableInputError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except DocumentError as e:
        raise HTTPException(status_code=404, detail=e.message)

    logger.info(
        "Document registered",
        extra={"document_id": document.id, "chapter_count": len(document.chapters)},
    )
    return DocumentResponse.model_validate(document)


@router.get("", response_model=list[DocumentSummaryResponse])
async def list_documents(
    document_service: DocumentService = Depends(get_document_service),
) -> list[DocumentSummaryResponse]:
    """List documents without chapters."""
    documents = await document_service.list_documents()
    return [DocumentSummaryResponse.model_validate(document) for document in documents]


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: int,
    document_service: DocumentService = Depends(get_document_service),
) -> DocumentResponse:
    """
    Get a document with chapters and statuses.

    Raises:
        HTTPException(404): Document not found
    """
    try:
        document = await document_service.get_document(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return DocumentResponse.model_validate(document)


@router.delete("/{document_id}", status_code=204)
async def delete_document(
    document_id: int,
    document_service: DocumentService = Depends(get_document_service),
) -> None:
    """
    Delete a document after cancelling its processing.

    Returns:
        204 No Content on success

    Raises:
        HTTPException(404): Document not found
    """
    try:
        await document_service.delete_document(document_id)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
