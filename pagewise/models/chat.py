"""
Chat API schemas.

Dependencies: pydantic
System role: Chat API contracts
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pagewise.boundary.db.models import MessageRole


class ChatRequest(BaseModel):
    """A question asked in a document or chapter scope."""

    message: str = Field(min_length=1, description="User question")
    chapter_id: int | None = Field(default=None, description="Optional chapter sub-scope")


class MessageResponse(BaseModel):
    """One persisted chat message."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    role: MessageRole
    content: str
    metadata: dict[str, Any] | None = Field(default=None, validation_alias="metadata_")
    created_at: datetime
