"""
Language-model content generation for ingestion jobs.

Chapter summaries, bibliographic metadata, chapter concepts, the
document-level consolidation of those concepts, and quiz questions built
from stored concepts. Inputs are truncated to
keep prompts within the model's context window.

Dependencies: pagewise.core.interfaces, pagewise.core.prompts, pagewise.models.generation
System role: Content generation for summarize/metadata/concepts/consolidate jobs
"""

import json
import logging
from collections.abc import Sequence

from pagewise.core.interfaces import LLMProvider
from pagewise.core.prompts import (
    CONCEPTS_PROMPT,
    CONCEPTS_SYSTEM,
    CONSOLIDATE_PROMPT,
    CONSOLIDATE_SYSTEM,
    METADATA_PROMPT,
    METADATA_SYSTEM,
    QUIZ_PROMPT,
    QUIZ_SYSTEM,
    SUMMARY_PROMPT,
    SUMMARY_SYSTEM,
)
from pagewise.models.generation import (
    ChapterConcepts,
    ConsolidatedConcepts,
    DocumentMetadata,
    QuizQuestion,
    QuizQuestions,
)

logger = logging.getLogger(__name__)

MAX_CHAPTER_CHARS = 100_000
MAX_METADATA_CHARS = 20_000
MAX_CONSOLIDATION_CHARS = 80_000
MIN_SUMMARY_CHARS = 100
MAX_QUIZ_CONCEPTS = 15


class ContentGenerator:
    """Generate summaries, metadata and concepts through an LLMProvider."""

    def __init__(self, llm: LLMProvider) -> None:
        self._llm = llm

    async def summarize_chapter(self, title: str, text: str) -> str | None:
        """
        Summarize a chapter.

        Args:
            title: Chapter title
            text: Chapter text

        Returns:
            Summary text, or None when the chapter is too short to summarize
        """
        if len(text.strip()) < MIN_SUMMARY_CHARS:
            logger.info(f"{__name__}:summarize_chapter - Skipping short chapter '{title}' ({len(text)} chars)")
            return None

        prompt = SUMMARY_PROMPT.format(title=title, text=text[:MAX_CHAPTER_CHARS])
        parts = [part async for part in self._llm.generate_text(SUMMARY_SYSTEM, prompt)]
        return "".join(parts).strip()

    async def extract_metadata(self, document_text: str) -> DocumentMetadata:
        """Extract bibliographic metadata from the start of a document."""
        prompt = METADATA_PROMPT.format(text=document_text[:MAX_METADATA_CHARS])
        return await self._llm.generate_structured(DocumentMetadata, METADATA_SYSTEM, prompt)

    async def extract_concepts(self, title: str, text: str) -> ChapterConcepts:
        """Extract a chapter's key concepts, most important first."""
        prompt = CONCEPTS_PROMPT.format(title=title, text=text[:MAX_CHAPTER_CHARS])
        return await self._llm.generate_structured(ChapterConcepts, CONCEPTS_SYSTEM, prompt)

    async def consolidate_concepts(
        self,
        concepts_by_chapter: dict[str, Sequence[dict]],
    ) -> ConsolidatedConcepts:
        """
        Merge chapter concepts into document-level concepts.

        Args:
            concepts_by_chapter: Chapter title → list of {name, definition, importance}

        Returns:
            ConsolidatedConcepts
        """
        concepts_json = json.dumps(concepts_by_chapter, ensure_ascii=False)[:MAX_CONSOLIDATION_CHARS]
        prompt = CONSOLIDATE_PROMPT.format(concepts_json=concepts_json)
        return await self._llm.generate_structured(ConsolidatedConcepts, CONSOLIDATE_SYSTEM, prompt)

    async def generate_quiz(self, concepts: Sequence[dict], question_count: int) -> list[QuizQuestion]:
        """
        Write multiple-choice questions from stored concepts.

        Args:
            concepts: {name, definition, importance, quotes} dicts, most important first
            question_count: Number of questions wanted

        Returns:
            list[QuizQuestion]: At most ``question_count`` questions whose
            correct_index points at one of their options
        """
        selected = list(concepts[:MAX_QUIZ_CONCEPTS])
        prompt = QUIZ_PROMPT.format(
            question_count=question_count,
            concepts_json=json.dumps(selected, ensure_ascii=False),
        )
        result = await self._llm.generate_structured(QuizQuestions, QUIZ_SYSTEM, prompt)

        questions = [q for q in result.questions if q.correct_index < len(q.options)]
        if len(questions) < len(result.questions):
            logger.warning(
                f"{__name__}:generate_quiz - Dropped {len(result.questions) - len(questions)} "
                "questions with an out-of-range answer"
            )
        return questions[:question_count]
