# =============================================================================
# core/models/task.py - Task Schemas
# =============================================================================

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """Task progress. Flow: todo -> in_progress -> done"""
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


TASK_STATUS_LABELS = {
    TaskStatus.TODO.value: "To Do",
    TaskStatus.IN_PROGRESS.value: "In Progress",
    TaskStatus.DONE.value: "Done",
}


class TaskCreate(BaseModel):
    """
    Body for POST /tasks.

    Example:
        {
            "project_id": "550e8400-...",
            "title": "Lock location permits",
            "priority": "high",
            "due_date": "2026-11-05",
            "assigned_to": "660e8400-..."
        }
    """

    project_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=300)
    description: str | None = None
    assigned_to: str | None = Field(default=None, description="Profile id of the assignee")
    status: TaskStatus = Field(default=TaskStatus.TODO)
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM)
    due_date: date | None = None


class TaskUpdate(BaseModel):
    """Body for PATCH /tasks/{id}; only provided fields change."""

    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    assigned_to: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: date | None = None
