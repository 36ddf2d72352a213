"""
Google Gemini provider via langchain-google-genai.

Implements the LLMProvider interface: batched document embeddings, query
embeddings, streamed text generation and schema-constrained structured
generation. Every provider failure is wrapped in ProviderError so the
scheduler treats it as transient and retries with backoff.

Dependencies: langchain_google_genai, langchain_core
System role: Language-model provider for ingestion, retrieval and chat
"""

import logging
from collections.abc import AsyncIterator, Sequence
from typing import TypeVar

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI, GoogleGenerativeAIEmbeddings
from pydantic import BaseModel

from pagewise.configs.llm import LLMSettings
from pagewise.core.exceptions import ProviderError

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class GeminiProvider:
    """Gemini chat and embedding models behind the LLMProvider interface."""

    def __init__(self, settings: LLMSettings) -> None:
        """
        Initialize chat and embedding clients.

        Args:
            settings: Model identifiers, temperature and API key
        """
        api_key = settings.google_api_key.get_secret_value() if settings.google_api_key else None
        key_kwargs = {"google_api_key": api_key} if api_key else {}

        self._chat_model = ChatGoogleGenerativeAI(
            model=settings.chat_model,
            temperature=settings.temperature,
            **key_kwargs,
        )
        self._embeddings = GoogleGenerativeAIEmbeddings(
            model=settings.embedding_model,
            **key_kwargs,
        )
        logger.info(
            f"{__name__}:__init__ - chat_model={settings.chat_model}, "
            f"embedding_model={settings.embedding_model}"
        )

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """
        Embed a batch of document texts.

        Args:
            texts: Texts to embed

        Returns:
            list[list[float]]: One vector per text, in input order

        Raises:
            ProviderError: When the embedding call fails
        """
        if not texts:
            return []
        try:
            return await self._embeddings.aembed_documents(list(texts))
        except Exception as e:
            raise ProviderError("embed", f"{type(e).__name__}: {e}", {"batch_size": len(texts)}) from e

    async def embed_query(self, text: str) -> list[float]:
        """Embed a search query."""
        try:
            return await self._embeddings.aembed_query(text)
        except Exception as e:
            raise ProviderError("embed_query", f"{type(e).__name__}: {e}") from e

    async def generate_text(self, system: str, prompt: str) -> AsyncIterator[str]:
        """
        Stream generated text.

        Args:
            system: System instructions
            prompt: User prompt

        Yields:
            str: Text fragments as they arrive

        Raises:
            ProviderError: When the generation call fails
        """
        messages = [SystemMessage(content=system), HumanMessage(content=prompt)]
        try:
            async for chunk in self._chat_model.astream(messages):
                # `text` is a method on older langchain-core and a str property on newer releases.
                text = chunk.text if isinstance(chunk.text, str) else chunk.text()
                if text:
                    yield text
        except Exception as e:
            raise ProviderError("generate_text", f"{type(e).__name__}: {e}") from e

    async def generate_structured(self, schema: type[SchemaT], system: str, prompt: str) -> SchemaT:
        """
        Generate an object conforming to a Pydantic schema.

        Args:
            schema: Pydantic model describing the expected output
            system: System instructions
            prompt: User prompt

        Returns:
            Instance of ``schema``

        Raises:
            ProviderError: When the call fails or returns no parsable object
        """
        structured_model = self._chat_model.with_structured_output(schema)
        messages = [SystemMessage(content=system), HumanMessage(content=prompt)]
        try:
            result = await structured_model.ainvoke(messages)
        except Exception as e:
            raise ProviderError("generate_structured", f"{type(e).__name__}: {e}", {"schema": schema.__name__}) from e
        if result is None:
            raise ProviderError("generate_structured", "empty response", {"schema": schema.__name__})
        if isinstance(result, dict):
            return schema.model_validate(result)
        return result
