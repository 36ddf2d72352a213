"""
Concept service.

Read-side view of extracted concepts and quiz generation on top of them.
Chapter availability follows the chapter's ``concepts_status``; document
availability follows the document's consolidate job.

Dependencies: sqlalchemy, pagewise.boundary.db, pagewise.core.ingestion
System role: Concept browsing and quiz orchestration
"""

import logging
from collections.abc import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from pagewise.boundary.db.CRUD import chapter_crud, chunk_crud, concept_crud, document_crud, job_crud
from pagewise.boundary.db.models import ChapterModel, ConceptModel, JobStatus, JobType, ProcessingStatus
from pagewise.core.exceptions import DocumentError, DocumentNotFoundError, UnrecoverableInputError
from pagewise.core.ingestion.content_generator import ContentGenerator
from pagewise.models.concept import ConceptResponse, ConceptsResponse, ConceptState, QuizResponse

logger = logging.getLogger(__name__)

# Below this a chapter yields trivial questions
MIN_QUIZ_TOKENS = 500

_CHAPTER_STATES = {
    ProcessingStatus.DONE: ConceptState.DONE,
    ProcessingStatus.ERROR: ConceptState.ERROR,
}


class ConceptService:
    """Serves stored concepts and builds quizzes from them."""

    def __init__(self, db: AsyncSession, generator: ContentGenerator) -> None:
        """
        Initialize concept service.

        Args:
            db: AsyncSession for concept reads
            generator: Content generator used for quiz questions
        """
        self.db = db
        self._generator = generator

    async def _get_chapter(self, document_id: int, chapter_id: int) -> ChapterModel:
        if not await document_crud.exists(self.db, document_id):
            raise DocumentNotFoundError(document_id)
        chapter = await chapter_crud.get_by_id(self.db, chapter_id)
        if chapter is None or chapter.document_id != document_id:
            raise DocumentError(
                f"Chapter {chapter_id} not found in document {document_id}",
                {"document_id": document_id, "chapter_id": chapter_id},
            )
        return chapter

    async def get_chapter_concepts(self, document_id: int, chapter_id: int) -> ConceptsResponse:
        """
        Get a chapter's concepts, or why they are not available yet.

        Raises:
            DocumentNotFoundError: If the document does not exist
            DocumentError: If the chapter does not belong to the document
        """
        chapter = await self._get_chapter(document_id, chapter_id)
        state = _CHAPTER_STATES.get(chapter.concepts_status, ConceptState.PENDING)

        concepts: Sequence[ConceptModel] = []
        if state == ConceptState.DONE:
            concepts = await concept_crud.get_by_chapter(self.db, chapter_id)
        return ConceptsResponse(
            document_id=document_id,
            chapter_id=chapter_id,
            status=state,
            error=(chapter.concepts_error or "Concept extraction failed") if state == ConceptState.ERROR else None,
            concepts=[ConceptResponse.model_validate(concept) for concept in concepts],
        )

    async def get_document_concepts(self, document_id: int) -> ConceptsResponse:
        """
        Get a document's consolidated concepts.

        Pending until the consolidate job finishes; a finished job with no
        chapter concepts to merge leaves the list empty.

        Raises:
            DocumentNotFoundError: If the document does not exist
        """
        if not await document_crud.exists(self.db, document_id):
            raise DocumentNotFoundError(document_id)

        jobs = await job_crud.get_by_document(self.db, document_id)
        consolidate = next((job for job in jobs if job.type == JobType.CONSOLIDATE), None)
        if consolidate is not None and consolidate.status == JobStatus.FAILED:
            return ConceptsResponse(
                document_id=document_id,
                status=ConceptState.ERROR,
                error=consolidate.last_error or "Concept consolidation failed",
            )
        if consolidate is not None and consolidate.status != JobStatus.DONE:
            return ConceptsResponse(document_id=document_id, status=ConceptState.PENDING)

        concepts = await concept_crud.get_consolidated(self.db, document_id)
        return ConceptsResponse(
            document_id=document_id,
            status=ConceptState.DONE,
            concepts=[ConceptResponse.model_validate(concept) for concept in concepts],
        )

    async def generate_quiz(
        self,
        document_id: int,
        chapter_id: int | None = None,
        question_count: int = 5,
    ) -> QuizResponse:
        """
        Generate multiple-choice questions from a chapter's or the document's concepts.

        Args:
            document_id: Document to quiz on
            chapter_id: Restrict to one chapter's concepts
            question_count: Number of questions wanted

        Returns:
            QuizResponse: Questions when concepts are ready, otherwise the
            pending, empty or error state

        Raises:
            DocumentNotFoundError: If the document does not exist
            DocumentError: If the chapter does not belong to the document
            UnrecoverableInputError: If the chapter is too short to quiz on
            ProviderError: If question generation fails
        """
        if chapter_id is not None:
            available = await self.get_chapter_concepts(document_id, chapter_id)
        else:
            available = await self.get_document_concepts(document_id)

        if available.status != ConceptState.DONE:
            return QuizResponse(
                document_id=document_id,
                chapter_id=chapter_id,
                status=available.status,
                error=available.error,
            )

        if chapter_id is not None:
            tokens = await chunk_crud.token_total_by_chapter(self.db, chapter_id)
            if tokens < MIN_QUIZ_TOKENS:
                raise UnrecoverableInputError(
                    "This chapter does not have enough content to generate a quiz",
                    {"chapter_id": chapter_id, "tokens": tokens},
                )

        if not available.concepts:
            return QuizResponse(document_id=document_id, chapter_id=chapter_id, status=ConceptState.EMPTY)

        questions = await self._generator.generate_quiz(
            [
                {
                    "name": concept.name,
                    "definition": concept.definition,
                    "importance": concept.importance,
                    "quotes": [quote.get("text") for quote in concept.quotes],
                }
                for concept in available.concepts
            ],
            question_count,
        )
        logger.info(
            f"{__name__}:generate_quiz - document_id={document_id} chapter_id={chapter_id}: "
            f"{len(questions)} questions from {len(available.concepts)} concepts"
        )
        return QuizResponse(
            document_id=document_id,
            chapter_id=chapter_id,
            status=ConceptState.DONE,
            questions=questions,
        )
