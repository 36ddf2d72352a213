"""
Tests for ConceptService.

Dependencies: pytest, pytest-asyncio, pagewise.application.services
System role: Concept availability and quiz validation
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pagewise.application.services import ConceptService
from pagewise.boundary.db.CRUD import chapter_crud, concept_crud, job_crud
from pagewise.boundary.db.models import JobType, ProcessingStatus
from pagewise.core.exceptions import DocumentError, DocumentNotFoundError, UnrecoverableInputError
from pagewise.models.concept import ConceptState
from pagewise.models.generation import QuizQuestion


def _concept(name: str, importance: int) -> dict:
    return {
        "name": name,
        "definition": f"{name} defined.",
        "importance": importance,
        "quotes": [{"text": f"About {name}.", "page": 1}],
    }


@pytest.fixture
def generator():
    mock = MagicMock()
    mock.generate_quiz = AsyncMock(
        return_value=[
            QuizQuestion(
                question="What is Alpha?",
                options=["A letter", "A number", "A colour", "A sound"],
                correct_index=0,
                explanation="Alpha is the first letter.",
                concept_name="Alpha",
            )
        ]
    )
    return mock


@pytest.fixture
def concept_service(test_async_db, generator):
    return ConceptService(db=test_async_db, generator=generator)


@pytest.fixture
def finish_concepts(session_factory):
    """Store chapter concepts and mark the chapter's extraction done."""

    async def _finish(document_id: int, chapter_id: int, concepts: list[dict]) -> None:
        async with session_factory() as db:
            await concept_crud.replace_for_chapter(db, document_id, chapter_id, concepts)
            await chapter_crud.set_concepts_status(db, chapter_id, ProcessingStatus.DONE)
            await db.commit()

    return _finish


async def _finish_consolidate(session_factory, document_id: int, concepts: list[dict], failed: bool = False) -> None:
    async with session_factory() as db:
        jobs = await job_crud.get_by_document(db, document_id)
        consolidate = next(job for job in jobs if job.type == JobType.CONSOLIDATE)
        await job_crud.claim(db, consolidate.id)
        if failed:
            await job_crud.mark_failed(db, consolidate.id, 3, "model unavailable")
        else:
            await concept_crud.replace_consolidated(
                db,
                document_id,
                [{**concept, "source_concept_names": [concept["name"]]} for concept in concepts],
            )
            await job_crud.mark_done(db, consolidate.id)
        await db.commit()


class TestChapterConcepts:
    """Test suite for ConceptService.get_chapter_concepts."""

    @pytest.mark.asyncio
    async def test_unfinished_extraction_should_be_pending(self, concept_service, make_document):
        """Test concepts are pending while the chapter is still processing."""
        document_id, chapter_ids = await make_document(with_jobs=True)

        response = await concept_service.get_chapter_concepts(document_id, chapter_ids[0])

        assert response.status == ConceptState.PENDING
        assert response.concepts == []

    @pytest.mark.asyncio
    async def test_done_extraction_should_list_concepts_by_importance(
        self, concept_service, make_document, finish_concepts
    ):
        """Test stored concepts are returned most important first."""
        # Arrange
        document_id, chapter_ids = await make_document(with_jobs=True)
        await finish_concepts(document_id, chapter_ids[0], [_concept("Beta", 2), _concept("Alpha", 5)])

        # Act
        response = await concept_service.get_chapter_concepts(document_id, chapter_ids[0])

        # Assert
        assert response.status == ConceptState.DONE
        assert [concept.name for concept in response.concepts] == ["Alpha", "Beta"]
        assert response.concepts[0].quotes == [{"text": "About Alpha.", "page": 1}]

    @pytest.mark.asyncio
    async def test_failed_extraction_should_report_error(self, concept_service, make_document, session_factory):
        """Test the stage error is surfaced."""
        document_id, chapter_ids = await make_document(with_jobs=True)
        async with session_factory() as db:
            await chapter_crud.set_concepts_status(db, chapter_ids[0], ProcessingStatus.ERROR, "quota exceeded")
            await db.commit()

        response = await concept_service.get_chapter_concepts(document_id, chapter_ids[0])

        assert response.status == ConceptState.ERROR
        assert response.error == "quota exceeded"

    @pytest.mark.asyncio
    async def test_chapter_of_other_document_should_raise(self, concept_service, make_document):
        """Test chapters are only visible through their own document."""
        document_id, _ = await make_document()
        _, other_chapter_ids = await make_document()

        with pytest.raises(DocumentError):
            await concept_service.get_chapter_concepts(document_id, other_chapter_ids[0])

    @pytest.mark.asyncio
    async def test_missing_document_should_raise(self, concept_service):
        """Test unknown documents raise DocumentNotFoundError."""
        with pytest.raises(DocumentNotFoundError):
            await concept_service.get_chapter_concepts(404, 1)


class TestDocumentConcepts:
    """Test suite for ConceptService.get_document_concepts."""

    @pytest.mark.asyncio
    async def test_before_consolidation_should_be_pending(self, concept_service, make_document):
        """Test document concepts wait for the consolidate job."""
        document_id, _ = await make_document(with_jobs=True)

        response = await concept_service.get_document_concepts(document_id)

        assert response.status == ConceptState.PENDING

    @pytest.mark.asyncio
    async def test_after_consolidation_should_list_consolidated_concepts(
        self, concept_service, make_document, session_factory
    ):
        """Test consolidated concepts are returned once the job is done."""
        document_id, _ = await make_document(with_jobs=True)
        await _finish_consolidate(session_factory, document_id, [_concept("Alpha", 5)])

        response = await concept_service.get_document_concepts(document_id)

        assert response.status == ConceptState.DONE
        assert [(c.name, c.is_consolidated, c.source_concept_names) for c in response.concepts] == [
            ("Alpha", True, ["Alpha"])
        ]

    @pytest.mark.asyncio
    async def test_failed_consolidation_should_report_error(self, concept_service, make_document, session_factory):
        """Test a failed consolidate job is reported with its error."""
        document_id, _ = await make_document(with_jobs=True)
        await _finish_consolidate(session_factory, document_id, [], failed=True)

        response = await concept_service.get_document_concepts(document_id)

        assert response.status == ConceptState.ERROR
        assert response.error == "model unavailable"


class TestQuiz:
    """Test suite for ConceptService.generate_quiz."""

    @pytest.mark.asyncio
    async def test_chapter_quiz_should_use_chapter_concepts(
        self, concept_service, generator, make_document, make_chunks, finish_concepts
    ):
        """Test questions are generated from the chapter's concepts in importance order."""
        # Arrange
        document_id, chapter_ids = await make_document(with_jobs=True)
        await make_chunks(document_id, chapter_ids[0], ["one", "two"], token_count=400)
        await finish_concepts(document_id, chapter_ids[0], [_concept("Beta", 2), _concept("Alpha", 5)])

        # Act
        response = await concept_service.generate_quiz(document_id, chapter_ids[0], question_count=3)

        # Assert
        assert response.status == ConceptState.DONE
        assert [q.concept_name for q in response.questions] == ["Alpha"]
        concepts, count = generator.generate_quiz.call_args.args
        assert [concept["name"] for concept in concepts] == ["Alpha", "Beta"]
        assert concepts[0]["quotes"] == ["About Alpha."]
        assert count == 3

    @pytest.mark.asyncio
    async def test_short_chapter_should_raise(self, concept_service, generator, make_document, make_chunks, finish_concepts):
        """Test chapters under the token minimum cannot be quizzed."""
        document_id, chapter_ids = await make_document(with_jobs=True)
        await make_chunks(document_id, chapter_ids[0], ["tiny"], token_count=50)
        await finish_concepts(document_id, chapter_ids[0], [_concept("Alpha", 5)])

        with pytest.raises(UnrecoverableInputError):
            await concept_service.generate_quiz(document_id, chapter_ids[0])

        generator.generate_quiz.assert_not_called()

    @pytest.mark.asyncio
    async def test_pending_concepts_should_give_pending_quiz(self, concept_service, generator, make_document):
        """Test no questions are generated before concepts exist."""
        document_id, _ = await make_document(with_jobs=True)

        response = await concept_service.generate_quiz(document_id)

        assert response.status == ConceptState.PENDING
        generator.generate_quiz.assert_not_called()

    @pytest.mark.asyncio
    async def test_document_without_concepts_should_give_empty_quiz(
        self, concept_service, generator, make_document, session_factory
    ):
        """Test a finished consolidation with nothing to merge yields an empty quiz."""
        document_id, _ = await make_document(with_jobs=True)
        await _finish_consolidate(session_factory, document_id, [])

        response = await concept_service.generate_quiz(document_id)

        assert response.status == ConceptState.EMPTY
        assert response.questions == []
        generator.generate_quiz.assert_not_called()
