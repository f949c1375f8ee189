"""
Webhook endpoints the WhatsApp Web bridge posts events to.
"""

import logging

from fastapi import APIRouter, Depends

from offhours.domain.chat import ConnectionUpdate, MessagesUpsert
from offhours.usecases.runtime import BotRuntime, get_runtime

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/webhook/messages")
async def messages_webhook(
    event: MessagesUpsert,
    runtime: BotRuntime = Depends(get_runtime),
):
    """
    Handle a batch of inbound messages.

    Only the first message of the batch is considered. The reply itself is
    sent later by a background task, so the bridge gets an answer right away.
    """
    message = event.first()
    if message is None:
        return {"status": "ignored"}

    try:
        task = runtime.responder.submit(message)
    except Exception as e:
        logger.exception(f"Error processing message {message.id}: {e}")
        return {"status": "ignored"}

    return {"status": "accepted" if task is not None else "ignored"}


@router.post("/webhook/connection")
async def connection_webhook(
    update: ConnectionUpdate,
    runtime: BotRuntime = Depends(get_runtime),
):
    """Handle a connection lifecycle update."""
    await runtime.connection.handle_update(update)
    return {"status": runtime.connection.status}


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "offhours-bot"}
