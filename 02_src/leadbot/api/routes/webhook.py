"""Gateway webhook routes."""

from fastapi import APIRouter, HTTPException, Request

from ...app import Application
from ...logging_config import get_logger

logger = get_logger(__name__)


def create_webhook_router(app: Application) -> APIRouter:
    """Create webhook router."""
    router = APIRouter(tags=["webhook"])

    @router.get("/webhook")
    async def webhook_ready() -> dict:
        """Readiness probe for the gateway."""
        return {"status": "ok", "message": "Webhook is ready"}

    @router.post("/webhook")
    async def receive_webhook(request: Request) -> dict:
        """Buffer inbound messages. Never waits for the quiet period."""
        try:
            body = await request.json()
        except ValueError:
            logger.warning("Webhook body is not valid JSON")
            body = None

        delay = app.settings.buffer_delay_seconds
        try:
            result = await app.pipeline.handle_webhook(body)
        except Exception as e:
            logger.error(f"Webhook processing failed: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=str(e))

        if not result.received:
            return {"received": False, "count": 0}

        return {
            "received": True,
            "buffered": result.buffered > 0,
            "count": result.count,
            "bufferDelaySeconds": delay,
        }

    return router
