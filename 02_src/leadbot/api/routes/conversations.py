"""Start-conversation route."""

from pydantic import BaseModel, ConfigDict, Field
from fastapi import APIRouter, HTTPException

from ...app import Application
from ...logging_config import get_logger
from ...messaging import SendError
from ...pipeline import ListingNotFound

logger = get_logger(__name__)


class StartConversationRequest(BaseModel):
    """Request model for opening a conversation about a listing."""

    model_config = ConfigDict(populate_by_name=True)

    phone: str | None = None
    listing_code: str | None = Field(None, alias="listingCode")


class StartConversationResponse(BaseModel):
    """Response model for a started conversation."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(serialization_alias="conversationId")


def create_conversations_router(app: Application) -> APIRouter:
    """Create conversations router."""
    router = APIRouter(tags=["conversations"])

    @router.post("/conversations")
    async def start_conversation(request: StartConversationRequest | None = None) -> dict:
        """Send the opening messages for a listing and persist the conversation."""
        request = request or StartConversationRequest()
        phone = (request.phone or "").strip()
        listing_code = (request.listing_code or "").strip()
        if not phone or not listing_code:
            raise HTTPException(status_code=400, detail="phone and listingCode are required")

        try:
            conversation_id = await app.pipeline.start_conversation(phone, listing_code)
        except ListingNotFound as e:
            raise HTTPException(status_code=404, detail=str(e))
        except SendError as e:
            raise HTTPException(
                status_code=502, detail=f"Opening messages could not be sent: {e}"
            )
        except Exception as e:
            logger.error(f"Starting conversation for {phone} failed: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=str(e))

        return StartConversationResponse(conversation_id=conversation_id).model_dump(
            by_alias=True
        )

    return router
