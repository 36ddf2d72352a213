"""
Chat API endpoints.

Routes:
- POST /chat/{document_id}/messages - Stream an answer as NDJSON events
- GET /chat/{document_id}/messages - Conversation history of a scope

Dependencies: fastapi, pagewise.application.services.chat_service, pagewise.models
System role: Chat HTTP API
"""

import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from pagewise.api.deps import get_chat_service
from pagewise.application.services import ChatService
from pagewise.core.exceptions import DocumentError, PageWiseException
from pagewise.core.interfaces import RetrievalScope
from pagewise.models.chat import ChatRequest, MessageResponse
from pagewise.models.streaming import StreamEvent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

NDJSON_MEDIA_TYPE = "application/x-ndjson"


async def _ndjson_events(
    chat_service: ChatService,
    message: str,
    scope: RetrievalScope,
) -> AsyncGenerator[str, None]:
    """Serialize stream events as NDJSON; failures end the stream with an error event."""
    try:
        async for event in chat_service.stream_answer(message, scope):
            yield event.to_ndjson()
    except PageWiseException as e:
        logger.error(
            "Chat stream failed",
            extra={"document_id": scope.document_id, "error_type": type(e).__name__, "error": e.message},
        )
        yield StreamEvent.error(e.message).to_ndjson()
    except Exception as e:
        logger.exception(
            "Chat stream failed unexpectedly",
            extra={"document_id": scope.document_id, "error_type": type(e).__name__},
        )
        yield StreamEvent.error("Failed to generate an answer").to_ndjson()


async def _validated_scope(chat_service: ChatService, document_id: int, chapter_id: int | None) -> RetrievalScope:
    scope = RetrievalScope(document_id=document_id, chapter_id=chapter_id)
    try:
        await chat_service.validate_scope(scope)
    except DocumentError as e:
        raise HTTPException(status_code=404, detail=e.message)
    return scope


@router.post("/{document_id}/messages")
async def send_message(
    document_id: int,
    request: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> StreamingResponse:
    """
    Ask a question and stream the answer.

    Each line of the response body is one JSON event:
        {"event": "token", "data": {"text": "..."}}
        {"event": "complete", "data": {"message_id": 12, "metadata": {...}}}
        {"event": "error", "data": {"message": "..."}}

    Args:
        document_id: Document to ask about
        request: Question and optional chapter scope
        chat_service: Injected ChatService

    Raises:
        HTTPException(404): Document or chapter not found
    """
    scope = await _validated_scope(chat_service, document_id, request.chapter_id)
    logger.info(
        "Chat message received",
        extra={"document_id": document_id, "chapter_id": request.chapter_id, "message_length": len(request.message)},
    )
    return StreamingResponse(
        _ndjson_events(chat_service, request.message, scope),
        media_type=NDJSON_MEDIA_TYPE,
    )


@router.get("/{document_id}/messages", response_model=list[MessageResponse])
async def get_messages(
    document_id: int,
    chapter_id: int | None = None,
    chat_service: ChatService = Depends(get_chat_service),
) -> list[MessageResponse]:
    """
    Get the conversation history of a document or chapter scope.

    Raises:
        HTTPException(404): Document or chapter not found
    """
    scope = await _validated_scope(chat_service, document_id, chapter_id)
    messages = await chat_service.get_history(scope)
    return [MessageResponse.model_validate(message) for message in messages]
