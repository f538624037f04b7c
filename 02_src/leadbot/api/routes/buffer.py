"""Delayed-fire callback route."""

from pydantic import BaseModel, ConfigDict, Field
from fastapi import APIRouter, HTTPException

from ...app import Application
from ...logging_config import get_logger

logger = get_logger(__name__)


class ProcessBufferRequest(BaseModel):
    """Request model for a buffer drain."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str | None = Field(None, alias="conversationId")


class ProcessBufferResponse(BaseModel):
    """Response model for a buffer drain."""

    processed: int


def create_buffer_router(app: Application) -> APIRouter:
    """Create buffer router."""
    router = APIRouter(prefix="/tasks", tags=["tasks"])

    @router.post("/process-buffer", response_model=ProcessBufferResponse)
    async def process_buffer(request: ProcessBufferRequest | None = None) -> dict:
        """Drain a conversation's buffer. Safe to call repeatedly."""
        conversation_id = ((request and request.conversation_id) or "").strip()
        if not conversation_id:
            raise HTTPException(status_code=400, detail="conversationId is required")

        try:
            processed = await app.pipeline.process_buffer(conversation_id)
        except Exception as e:
            logger.error(f"Buffer processing failed for {conversation_id}: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=str(e))

        return {"processed": processed}

    return router
