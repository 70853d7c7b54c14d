"""
WhatsApp Webhook Handler

Receives inbound WhatsApp messages relayed by the gateway and answers them
through the reply pipeline.

Update Flow:
  webhook -> extract_payload -> normalize -> pipeline -> JSON status

Status codes:
  200: reply generated and delivered
  400: missing/invalid Body or From (no upstream calls made)
  500: delivery or unexpected failure (apology attempted)
"""

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import ClientDisconnect

from agent.pipeline import ReplyPipeline
from infra import bootstrap_infrastructure
from transport.whatsapp import (
    ErrorResponse,
    NormalizationError,
    WebhookAck,
    extract_payload,
    normalize_message,
)

# Setup logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/webhook", tags=["WhatsApp"])

SUCCESS_MESSAGE = "Message processed and reply sent."


def get_pipeline() -> ReplyPipeline:
    """Get the shared reply pipeline (singleton via InfraBootstrap)."""
    return bootstrap_infrastructure().get_pipeline()


def _error(status_code: int, error: str, details=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details).model_dump(),
    )


@router.post("/whatsapp")
async def whatsapp_webhook(request: Request):
    """
    Receive a WhatsApp message and reply to the sender.

    Accepts either a JSON body:
        {"Body": "Hello", "From": "whatsapp:+14155550100"}
    or the gateway's form-encoded webhook with the same fields.

    Returns:
        {"success": true, "message": "..."} on success
        {"error": "...", "details": ...} with 400 or 500 otherwise
    """

    # Step 1: Read and validate the payload
    try:
        payload = await extract_payload(request)
        message = normalize_message(payload)
    except NormalizationError as e:
        logger.warning(f"Rejected webhook payload: {e.details}")
        return _error(status.HTTP_400_BAD_REQUEST, e.message, e.details)
    except (ClientDisconnect, StarletteHTTPException) as e:
        # Client went away or the form body could not be parsed
        logger.warning(f"Failed to read request: {e!r}")
        return _error(
            status.HTTP_400_BAD_REQUEST,
            "Invalid request payload.",
            [{"field": "payload", "message": "Failed to read request"}],
        )
    except Exception as e:
        logger.error(f"Error reading WhatsApp webhook: {e}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to process request", str(e))

    logger.info(
        f"Received message from {message.sender_id}: {message.body[:50]}",
        extra={"sender_id": message.sender_id, "message_sid": message.message_sid},
    )

    # Step 2: Run the reply pipeline
    try:
        pipeline = get_pipeline()
        outcome = await pipeline.handle(message)
    except Exception as e:
        logger.error(f"Error processing WhatsApp message: {e}", exc_info=True)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to process request", str(e))

    if not outcome.ok:
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to process request", outcome.error)

    return WebhookAck(success=True, message=SUCCESS_MESSAGE).model_dump()


@router.get("/whatsapp/health")
async def whatsapp_health():
    """Health check for WhatsApp webhook."""
    try:
        bootstrap = bootstrap_infrastructure()
        return {
            "status": "ok",
            "llm_backend": bootstrap.config.llm_backend,
            "messaging_backend": bootstrap.config.messaging_backend,
            "active_conversations": len(bootstrap.get_context_store()),
        }
    except Exception as e:
        logger.error(f"Health check failed: {str(e)}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Health check failed", str(e))
