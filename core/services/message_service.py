# =============================================================================
# core/services/message_service.py - Conversations and Messages
# =============================================================================
# Conversation resolution on send:
#   participants = recipients + sender (de-duplicated, order kept)
#   exactly two participants -> reuse the conversation with the same pair
#                               and the same project (or both without one)
#   otherwise / no match     -> create a new conversation
# A message row is then always inserted.
#
# Read-state is a single set-based update per conversation: every unread
# message not sent by the caller flips to read. Repeating it changes nothing.
# Messages are never deleted.
# =============================================================================

import asyncio
import logging
from typing import Any

from app.exceptions import NotFoundError, ValidationFailedError
from core.models.messaging import AppendMessageRequest, SendMessageRequest
from core.models.profile import Caller
from core.services.authorization import AccessTarget, Action, authorize_project, ensure_allowed
from core.services.notification_service import NotificationService
from lib.supabase_client import SupabaseClient, SupabaseClientError
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = "id, full_name, email, avatar_url, role, department"

RECIPIENTS_REQUIRED_MESSAGE = "Recipients are required and must be an array"
CONTENT_REQUIRED_MESSAGE = "Message content is required"


def _clean_recipients(recipients: Any) -> list[str]:
    if (
        not isinstance(recipients, list)
        or not recipients
        or not all(isinstance(r, str) and r.strip() for r in recipients)
    ):
        raise ValidationFailedError(RECIPIENTS_REQUIRED_MESSAGE)
    return [r.strip() for r in recipients]


def _clean_content(content: Any) -> str:
    if not isinstance(content, str) or not content.strip():
        raise ValidationFailedError(CONTENT_REQUIRED_MESSAGE)
    return content.strip()


class MessageService:
    """Service for direct and group messaging."""

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    async def _fetch_conversation(db: SupabaseClient, conversation_id: str) -> dict[str, Any]:
        client = await db.get_client()
        conversation = await db.fetch_one(
            client.table("conversations").select("*").eq("id", conversation_id).limit(1),
            "fetch conversation",
        )
        if conversation is None:
            raise NotFoundError("Conversation", conversation_id)
        return conversation

    @staticmethod
    async def _ensure_participant(
        db: SupabaseClient,
        caller: Caller,
        conversation_id: str,
    ) -> dict[str, Any]:
        conversation = await MessageService._fetch_conversation(db, conversation_id)
        target = AccessTarget(participant_ids=frozenset(conversation.get("participants") or []))
        ensure_allowed(caller, Action.READ_CONVERSATION, target)
        return conversation

    @staticmethod
    async def _find_pair_conversation(
        db: SupabaseClient,
        participants: list[str],
        project_id: str | None,
    ) -> dict[str, Any] | None:
        """The two-party conversation with exactly these participants and project."""
        client = await db.get_client()
        query = (
            client.table("conversations")
            .select("*")
            .contains("participants", participants)
            .contained_by("participants", participants)
        )
        if project_id:
            query = query.eq("project_id", project_id)
        else:
            query = query.is_("project_id", "null")
        return await db.fetch_one(query.limit(1), "find existing conversation")

    @staticmethod
    async def _insert_message(
        db: SupabaseClient,
        conversation_id: str,
        sender_id: str,
        content: str,
    ) -> dict[str, Any]:
        client = await db.get_client()
        message = await db.fetch_one(
            client.table("messages").insert({
                "conversation_id": conversation_id,
                "sender_id": sender_id,
                "content": content,
                "is_read": False,
            }),
            "send message",
        )
        if message is None:
            raise ValidationFailedError("Message could not be sent")

        # Keeps conversation lists ordered by latest activity
        try:
            await db.execute(
                client.table("conversations")
                .update({"updated_at": utc_now_iso()})
                .eq("id", conversation_id),
                "touch conversation",
            )
        except SupabaseClientError as e:
            logger.warning(f"Could not bump updated_at for conversation {conversation_id}: {e}")

        return message

    @staticmethod
    async def _enrich_conversation(
        db: SupabaseClient,
        caller: Caller,
        conversation: dict[str, Any],
    ) -> dict[str, Any]:
        """Attach last message, unread count, participant profiles and project."""
        client = await db.get_client()
        conversation_id = conversation["id"]

        async def project() -> dict[str, Any] | None:
            if not conversation.get("project_id"):
                return None
            return await db.fetch_one(
                client.table("projects")
                .select("id, title, status")
                .eq("id", conversation["project_id"])
                .limit(1),
                "fetch conversation project",
            )

        last_message, unread, profiles, project_row = await asyncio.gather(
            db.fetch_one(
                client.table("messages")
                .select("*")
                .eq("conversation_id", conversation_id)
                .order("created_at", desc=True)
                .limit(1),
                "fetch last message",
            ),
            db.fetch_all(
                client.table("messages")
                .select("id")
                .eq("conversation_id", conversation_id)
                .neq("sender_id", caller.id)
                .eq("is_read", False),
                "count unread messages",
            ),
            db.fetch_all(
                client.table("profiles")
                .select(PROFILE_COLUMNS)
                .in_("id", conversation.get("participants") or []),
                "fetch participant profiles",
            ),
            project(),
        )

        return {
            **conversation,
            "last_message": last_message,
            "unread_count": len(unread),
            "participants_profiles": profiles,
            "project": project_row,
        }

    @staticmethod
    def _matches(conversation: dict[str, Any], term: str) -> bool:
        term = term.lower()
        if term in (conversation.get("subject") or "").lower():
            return True
        return any(
            term in (p.get("full_name") or "").lower()
            for p in conversation.get("participants_profiles") or []
        )

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    @staticmethod
    async def send_message(
        db: SupabaseClient,
        caller: Caller,
        body: SendMessageRequest,
    ) -> dict[str, Any]:
        """
        Send a message, creating or reusing the conversation.

        Returns:
            {"success": True, "conversation": {...}, "message": {...}}

        Raises:
            ValidationFailedError: Empty recipients or blank content
            ForbiddenError: project_id given without access to that project
        """
        recipients = _clean_recipients(body.recipients)
        content = _clean_content(body.content)
        project_id = body.project_id or None

        if project_id:
            await authorize_project(db, caller, project_id, Action.READ_PROJECT)

        participants = list(dict.fromkeys([*recipients, caller.id]))

        conversation = None
        if len(participants) == 2:
            conversation = await MessageService._find_pair_conversation(db, participants, project_id)

        if conversation is None:
            client = await db.get_client()
            conversation = await db.fetch_one(
                client.table("conversations").insert({
                    "participants": participants,
                    "subject": body.subject,
                    "project_id": project_id,
                    "created_by": caller.id,
                }),
                "create conversation",
            )
            if conversation is None:
                raise ValidationFailedError("Conversation could not be created")
            logger.info(f"Created conversation {conversation['id']} with {len(participants)} participants")

        message = await MessageService._insert_message(db, conversation["id"], caller.id, content)
        return {"success": True, "conversation": conversation, "message": message}

    @staticmethod
    async def list_conversations(
        db: SupabaseClient,
        caller: Caller,
        q: str | None = None,
    ) -> dict[str, Any]:
        """
        Conversations the caller takes part in, latest activity first.

        Each conversation is enriched concurrently; `q` filters on subject or
        participant name.
        """
        client = await db.get_client()
        conversations = await db.fetch_all(
            client.table("conversations")
            .select("*")
            .contains("participants", [caller.id])
            .order("updated_at", desc=True),
            "list conversations",
        )

        enriched = await asyncio.gather(
            *(MessageService._enrich_conversation(db, caller, c) for c in conversations)
        )
        if q and q.strip():
            enriched = [c for c in enriched if MessageService._matches(c, q.strip())]

        return {"success": True, "conversations": list(enriched)}

    @staticmethod
    async def get_conversation(db: SupabaseClient, caller: Caller, conversation_id: str) -> dict[str, Any]:
        """A conversation with participant profiles and its messages, oldest first."""
        conversation = await MessageService._ensure_participant(db, caller, conversation_id)

        client = await db.get_client()
        profiles, messages = await asyncio.gather(
            db.fetch_all(
                client.table("profiles")
                .select(PROFILE_COLUMNS)
                .in_("id", conversation.get("participants") or []),
                "fetch participant profiles",
            ),
            db.fetch_all(
                client.table("messages")
                .select("*")
                .eq("conversation_id", conversation_id)
                .order("created_at"),
                "fetch messages",
            ),
        )

        sender_ids = list(dict.fromkeys(m["sender_id"] for m in messages))
        senders = await asyncio.gather(*(
            db.fetch_one(
                client.table("profiles").select(PROFILE_COLUMNS).eq("id", sender_id).limit(1),
                "fetch message sender",
            )
            for sender_id in sender_ids
        ))
        by_id = dict(zip(sender_ids, senders))

        return {
            "success": True,
            "conversation": {**conversation, "participants_profiles": profiles},
            "messages": [{**m, "sender": by_id.get(m["sender_id"])} for m in messages],
        }

    @staticmethod
    async def append_message(
        db: SupabaseClient,
        caller: Caller,
        conversation_id: str,
        body: AppendMessageRequest,
    ) -> dict[str, Any]:
        content = _clean_content(body.content)
        await MessageService._ensure_participant(db, caller, conversation_id)

        message = await MessageService._insert_message(db, conversation_id, caller.id, content)
        return {"success": True, "message": message}

    @staticmethod
    async def mark_read(db: SupabaseClient, caller: Caller, conversation_id: str) -> dict[str, Any]:
        """Mark every unread message from the other participants read."""
        await MessageService._ensure_participant(db, caller, conversation_id)

        client = await db.get_client()
        updated = await db.fetch_all(
            client.table("messages")
            .update({"is_read": True})
            .eq("conversation_id", conversation_id)
            .neq("sender_id", caller.id)
            .eq("is_read", False),
            "mark messages read",
        )
        logger.debug(f"Marked {len(updated)} messages read in {conversation_id} for {caller.id}")
        return {"success": True, "message": "Messages marked as read"}

    @staticmethod
    async def unread_counts(db: SupabaseClient, caller: Caller) -> dict[str, int]:
        """Unread messages across the caller's conversations plus unread notifications."""
        client = await db.get_client()
        conversations, notifications = await asyncio.gather(
            db.fetch_all(
                client.table("conversations").select("id").contains("participants", [caller.id]),
                "list conversation ids",
            ),
            NotificationService.unread_count(db, caller.id),
        )

        messages = 0
        conversation_ids = [c["id"] for c in conversations]
        if conversation_ids:
            unread = await db.fetch_all(
                client.table("messages")
                .select("id")
                .in_("conversation_id", conversation_ids)
                .neq("sender_id", caller.id)
                .eq("is_read", False),
                "count unread messages",
            )
            messages = len(unread)

        return {"messages": messages, "notifications": notifications, "total": messages + notifications}
