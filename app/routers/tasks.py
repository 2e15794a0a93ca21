# =============================================================================
# app/routers/tasks.py - Task Endpoints
# =============================================================================
# Task listing covers every task in your projects plus tasks assigned to you,
# ordered by due date (undated last) then priority.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path, Query, status

from app.auth import CallerDep
from app.dependencies import DatabaseDep
from core.models.task import TaskCreate, TaskPriority, TaskStatus, TaskUpdate
from core.services.task_service import TaskService

router = APIRouter()

TaskId = Annotated[str, Path(description="Task id")]


@router.get("/tasks")
async def list_tasks(
    caller: CallerDep,
    db: DatabaseDep,
    status: Annotated[TaskStatus | None, Query(description="Filter by status")] = None,
    priority: Annotated[TaskPriority | None, Query(description="Filter by priority")] = None,
    assigned_to: Annotated[str | None, Query(description="Filter by assignee id")] = None,
):
    return await TaskService.list_tasks(db, caller, status=status, priority=priority, assigned_to=assigned_to)


@router.get("/tasks/assignable-users")
async def assignable_users(caller: CallerDep, db: DatabaseDep):
    """Profiles tasks can be assigned to."""
    return await TaskService.assignable_users(db)


@router.post("/tasks", status_code=status.HTTP_201_CREATED)
async def create_task(body: TaskCreate, caller: CallerDep, db: DatabaseDep):
    """Create a task (admins, the project owner, or department heads on the crew)."""
    return await TaskService.create_task(db, caller, body)


@router.get("/tasks/{task_id}")
async def get_task(task_id: TaskId, caller: CallerDep, db: DatabaseDep):
    return await TaskService.get_task(db, caller, task_id)


@router.patch("/tasks/{task_id}")
async def update_task(task_id: TaskId, body: TaskUpdate, caller: CallerDep, db: DatabaseDep):
    return await TaskService.update_task(db, caller, task_id, body)


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: TaskId, caller: CallerDep, db: DatabaseDep):
    await TaskService.delete_task(db, caller, task_id)
    return {"success": True, "message": "Task deleted successfully"}


@router.get("/projects/{project_id}/tasks")
async def list_project_tasks(
    project_id: Annotated[str, Path(description="Project id")],
    caller: CallerDep,
    db: DatabaseDep,
):
    return await TaskService.list_project_tasks(db, caller, project_id)
