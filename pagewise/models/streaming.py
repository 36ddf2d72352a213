"""
Chat stream events.

An answer is streamed as newline-delimited JSON: zero or more ``token``
events carrying answer text, then exactly one ``complete`` event with the
stored message id and answer metadata, or one ``error`` event if generation
failed part way.

Dependencies: pydantic
System role: Streaming protocol schemas
"""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel


class StreamEventType(str, Enum):
    TOKEN = "token"
    COMPLETE = "complete"
    ERROR = "error"


class StreamEvent(BaseModel):
    """
    One line of the chat stream.

    Attributes:
        event: token, complete or error
        data: ``{"text"}``, ``{"message_id", "metadata"}`` or ``{"message"}``
    """

    event: StreamEventType
    data: dict[str, Any]

    def to_dict(self) -> dict[str, Any]:
        return {"event": self.event.value, "data": self.data}

    def to_ndjson(self) -> str:
        """Serialize as a single NDJSON line, trailing newline included."""
        return json.dumps(self.to_dict(), ensure_ascii=False) + "\n"

    @classmethod
    def token(cls, text: str) -> "StreamEvent":
        return cls(event=StreamEventType.TOKEN, data={"text": text})

    @classmethod
    def complete(cls, message_id: int, metadata: dict[str, Any]) -> "StreamEvent":
        return cls(event=StreamEventType.COMPLETE, data={"message_id": message_id, "metadata": metadata})

    @classmethod
    def error(cls, message: str) -> "StreamEvent":
        return cls(event=StreamEventType.ERROR, data={"message": message})
