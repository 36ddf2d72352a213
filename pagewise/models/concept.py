"""
Concept and quiz API schemas.

Concept reads report whether extraction is still pending, failed or done;
a done chapter may have no concepts (front matter, blank pages).

Dependencies: pydantic, pagewise.models.generation
System role: Concept and quiz API contracts
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from pagewise.models.generation import QuizQuestion


class ConceptState(str, Enum):
    """Availability of concepts or a quiz for a scope."""

    PENDING = "pending"
    DONE = "done"
    ERROR = "error"
    EMPTY = "empty"


class ConceptResponse(BaseModel):
    """A stored chapter or document-level concept."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    chapter_id: int | None = None
    name: str
    definition: str
    importance: int
    quotes: list[dict] = Field(default_factory=list)
    is_consolidated: bool
    source_concept_names: list[str] | None = None


class ConceptsResponse(BaseModel):
    """
    Concepts of a chapter, or consolidated concepts of a document.

    Attributes:
        document_id: Owning document
        chapter_id: Chapter scope; None for the document-level concepts
        status: pending while extraction has not finished, error with
            ``error`` set when it failed, done otherwise
        concepts: Most important first; empty unless status is done
    """

    document_id: int
    chapter_id: int | None = None
    status: ConceptState
    error: str | None = None
    concepts: list[ConceptResponse] = Field(default_factory=list)


class QuizRequest(BaseModel):
    """Quiz over a whole document, or one chapter when chapter_id is set."""

    chapter_id: int | None = Field(default=None, description="Chapter to quiz on; omit for the whole document")
    question_count: int = Field(default=5, ge=1, le=10, description="Number of questions")


class QuizResponse(BaseModel):
    """
    Generated quiz.

    ``status`` is pending while the concepts it needs are still being
    extracted, empty when extraction found no concepts, error when it failed.
    """

    document_id: int
    chapter_id: int | None = None
    status: ConceptState
    error: str | None = None
    questions: list[QuizQuestion] = Field(default_factory=list)
