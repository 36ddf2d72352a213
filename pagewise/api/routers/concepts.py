"""
Concept and quiz API endpoints.

Routes:
- GET /documents/{id}/concepts - Consolidated document concepts
- GET /documents/{id}/chapters/{chapter_id}/concepts - One chapter's concepts
- POST /documents/{id}/quiz - Multiple-choice quiz from stored concepts

Dependencies: fastapi, pagewise.application.services, pagewise.models
System role: Concept browsing and quiz HTTP API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from pagewise.api.deps import get_concept_service
from pagewise.application.services import ConceptService
from pagewise.core.exceptions import DocumentError, ProviderError, UnrecoverableInputError
from pagewise.models.concept import ConceptsResponse, QuizRequest, QuizResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["concepts"])


@router.get("/{document_id}/concepts", response_model=ConceptsResponse)
async def get_document_concepts(
    document_id: int,
    concept_service: ConceptService = Depends(get_concept_service),
) -> ConceptsResponse:
    """
    Get the document's consolidated concepts.

    ``status`` is pending until consolidation has run, so clients poll
    like they poll job status.

    Raises:
        HTTPException(404): Document not found
    """
    try:
        return await concept_service.get_document_concepts(document_id)
    except DocumentError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.get("/{document_id}/chapters/{chapter_id}/concepts", response_model=ConceptsResponse)
async def get_chapter_concepts(
    document_id: int,
    chapter_id: int,
    concept_service: ConceptService = Depends(get_concept_service),
) -> ConceptsResponse:
    """
    Get one chapter's concepts.

    Raises:
        HTTPException(404): Document not found, or chapter not in the document
    """
    try:
        return await concept_service.get_chapter_concepts(document_id, chapter_id)
    except DocumentError as e:
        raise HTTPException(status_code=404, detail=e.message)


@router.post("/{document_id}/quiz", response_model=QuizResponse)
async def generate_quiz(
    document_id: int,
    request: QuizRequest,
    concept_service: ConceptService = Depends(get_concept_service),
) -> QuizResponse:
    """
    Generate a quiz for the document or one of its chapters.

    Args:
        document_id: Document id
        request: Optional chapter scope and question count
        concept_service: Injected ConceptService

    Returns:
        QuizResponse: Questions, or the pending/empty/error state of the concepts

    Raises:
        HTTPException(404): Document or chapter not found
        HTTPException(422): Chapter too short to quiz on
        HTTPException(502): Question generation failed
    """
    try:
        return await concept_service.generate_quiz(document_id, request.chapter_id, request.question_count)
    except UnrecoverableInputError as e:
        raise HTTPException(status_code=422, detail=e.message)
    except DocumentError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ProviderError as e:
        logger.error(f"{__name__}:generate_quiz - document_id={document_id}: {e.message}")
        raise HTTPException(status_code=502, detail="Failed to generate a quiz")
