"""
Unified application settings.

Top-level server options plus one nested section per subsystem, each read
from its own ``PAGEWISE_<SECTION>_*`` variables.

Dependencies: pydantic, All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from pagewise.configs.base import BaseSettings
from pagewise.configs.database import DatabaseSettings
from pagewise.configs.llm import LLMSettings
from pagewise.configs.retrieval import HistorySettings, RetrievalSettings
from pagewise.configs.scheduler import SchedulerSettings
from pagewise.configs.vector_index import VectorIndexSettings


class Settings(BaseSettings):
    """PageWise settings: server options and every subsystem section."""

    host: str = Field(default="0.0.0.0", description="Bind address when run as a module")
    port: int = Field(default=8000, description="Bind port when run as a module")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"], description="Allowed browser origins")

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)
    vector_index: VectorIndexSettings = Field(default_factory=VectorIndexSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    retrieval: RetrievalSettings = Field(default_factory=RetrievalSettings)
    history: HistorySettings = Field(default_factory=HistorySettings)


@lru_cache
def get_settings() -> Settings:
    """
    Settings singleton, read from the environment on first call.

    Call ``get_settings.cache_clear()`` after changing ``PAGEWISE_*`` variables.
    """
    return Settings()
