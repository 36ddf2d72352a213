"""
Query admissibility guard.

A binary classification call made before retrieval. Refused queries get a
fixed answer; a classifier failure lets the query through.

Dependencies: pagewise.core.interfaces, pagewise.models.generation
System role: Off-topic and prompt-injection gate for chat
"""

import logging

from pagewise.core.interfaces import LLMProvider
from pagewise.core.prompts import GUARD_PROMPT, GUARD_REFUSAL, GUARD_SYSTEM
from pagewise.models.generation import GuardDecision

logger = logging.getLogger(__name__)

REFUSAL_MESSAGE = GUARD_REFUSAL


class QueryGuard:
    """Classifies user messages as admissible or not."""

    def __init__(self, llm: LLMProvider) -> None:
        self._llm = llm

    async def classify(self, query: str) -> GuardDecision:
        """
        Classify a user message.

        Args:
            query: User message

        Returns:
            GuardDecision: ``allowed`` is True when the classifier fails
        """
        try:
            decision = await self._llm.generate_structured(
                GuardDecision,
                GUARD_SYSTEM,
                GUARD_PROMPT.format(query=query),
            )
        except Exception as e:
            logger.warning(f"{__name__}:classify - Guard unavailable, allowing query: {type(e).__name__}: {e}")
            return GuardDecision(allowed=True, reason="guard unavailable")

        if not decision.allowed:
            logger.info(f"{__name__}:classify - Query refused: {decision.reason}")
        return decision
