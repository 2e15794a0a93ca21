# =============================================================================
# app/routers/messages.py - Direct Messaging Endpoints
# =============================================================================
# Conversations between crew members, optionally scoped to a project.
# Only participants can read or post to a conversation.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from app.auth import CallerDep
from app.dependencies import DatabaseDep
from core.models.messaging import AppendMessageRequest, SendMessageRequest
from core.services.message_service import MessageService

router = APIRouter()

ConversationId = Annotated[str, Path(description="Conversation id")]


@router.get("/messages")
async def list_conversations(
    caller: CallerDep,
    db: DatabaseDep,
    q: Annotated[str | None, Query(description="Match subject or participant name")] = None,
):
    """Your conversations, latest activity first, with last message and unread count."""
    return await MessageService.list_conversations(db, caller, q=q)


@router.post("/messages", status_code=status.HTTP_201_CREATED)
async def send_message(body: SendMessageRequest, caller: CallerDep, db: DatabaseDep):
    """
    Send a message.

    A two-person conversation with the same project is reused; anything
    else starts a new conversation.
    """
    return await MessageService.send_message(db, caller, body)


@router.get("/messages/unread-count")
async def unread_count(caller: CallerDep, db: DatabaseDep):
    return await MessageService.unread_counts(db, caller)


@router.get("/messages/{conversation_id}")
async def get_conversation(conversation_id: ConversationId, caller: CallerDep, db: DatabaseDep):
    return await MessageService.get_conversation(db, caller, conversation_id)


@router.post("/messages/{conversation_id}", status_code=status.HTTP_201_CREATED)
async def append_message(
    conversation_id: ConversationId,
    body: AppendMessageRequest,
    caller: CallerDep,
    db: DatabaseDep,
):
    return await MessageService.append_message(db, caller, conversation_id, body)


@router.patch("/messages/{conversation_id}")
async def mark_conversation_read(conversation_id: ConversationId, caller: CallerDep, db: DatabaseDep):
    """Mark the other participants' messages read."""
    return await MessageService.mark_read(db, caller, conversation_id)
