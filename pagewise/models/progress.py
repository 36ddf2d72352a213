"""
Ingestion progress event schema.

Dependencies: pydantic
System role: Progress notification payload
"""

from pydantic import BaseModel, Field, computed_field


class ProgressEvent(BaseModel):
    """Coarse progress of an embed job."""

    document_id: int
    chapter_id: int | None = None
    stage: str = Field(default="embedding", description="Processing stage name")
    processed: int = Field(ge=0, description="Items processed so far")
    total: int = Field(ge=0, description="Total items")

    @computed_field
    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 100
        return min(100, round(self.processed * 100 / self.total))

    def to_dict(self) -> dict:
        return self.model_dump()
