"""
Vector index configuration settings.

Dependencies: pydantic, pydantic_settings
System role: Local FAISS index location
"""

from pydantic import Field

from pagewise.configs.base import BaseSettings, settings_config


class VectorIndexSettings(BaseSettings):
    """FAISS index persistence configuration."""

    model_config = settings_config("VECTOR")

    index_dir: str = Field(default=".faiss_index", description="Directory holding the persisted index")
    index_name: str = Field(default="chunks", description="Index file stem")
