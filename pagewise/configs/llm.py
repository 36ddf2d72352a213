"""
Language-model provider settings.

Dependencies: pydantic, pydantic_settings
System role: Gemini chat and embedding model configuration
"""

from pydantic import Field, SecretStr

from pagewise.configs.base import BaseSettings, settings_config


class LLMSettings(BaseSettings):
    """Google Gemini configuration used through langchain-google-genai."""

    model_config = settings_config("LLM")

    google_api_key: SecretStr | None = Field(
        default=None,
        description="Google AI Studio API key (falls back to GOOGLE_API_KEY when unset)",
    )
    chat_model: str = Field(default="gemini-2.5-flash", description="Chat/generation model ID")
    embedding_model: str = Field(
        default="models/gemini-embedding-001",
        description="Embedding model ID",
    )
    temperature: float = Field(default=0.0, description="Generation temperature")
