# =============================================================================
# core/models/messaging.py - Conversation, Message and Notification Schemas
# =============================================================================
# Conversations hold a participant id set and an optional project. Two-party
# conversations are reused for the same pair and project; group conversations
# are always created fresh.
#
# Notifications are written by server-side fan-out (report submissions) and
# only ever marked read by their recipient.
# =============================================================================

from typing import Any

from pydantic import BaseModel, Field


class SendMessageRequest(BaseModel):
    """
    Body for POST /messages.

    `recipients` and `content` are validated by the service so that a
    missing or empty value gets the same 400 as a wrong type.

    Example:
        {
            "recipients": ["660e8400-..."],
            "content": "Call time moved to 05:30",
            "project_id": "550e8400-..."
        }
    """

    recipients: Any = None
    content: Any = None
    subject: str | None = Field(default=None, max_length=200)
    project_id: str | None = None


class AppendMessageRequest(BaseModel):
    """Body for POST /messages/{id}."""

    content: Any = None


# Notification constants for report submissions
REPORT_SUBMITTED_TYPE = "report_submitted"
REPORT_SUBMITTED_TITLE = "New Report Submitted"
REPORT_ENTITY_TYPE = "report"
SEVERITY_INFO = "info"

# Placeholders used when the reporter or project can't be resolved
UNKNOWN_REPORTER = "A crew member"
UNKNOWN_PROJECT = "a project"
