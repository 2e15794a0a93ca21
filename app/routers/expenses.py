# =============================================================================
# app/routers/expenses.py - Expense and Budget Endpoints
# =============================================================================
# Expense CRUD plus the per-project rollups: category summary, budget vs
# spend, monthly totals and CSV export.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path, Query, Response, status

from app.auth import CallerDep
from app.dependencies import DatabaseDep
from core.models.expense import ExpenseCreate, ExpenseUpdate
from core.services.expense_service import ExpenseService

router = APIRouter()

ExpenseId = Annotated[str, Path(description="Expense id")]
ProjectId = Annotated[str, Path(description="Project id")]


# =============================================================================
# Expenses
# =============================================================================

@router.get("/expenses")
async def list_expenses(caller: CallerDep, db: DatabaseDep):
    """Expenses across your projects, newest expense date first."""
    return await ExpenseService.list_expenses(db, caller)


@router.post("/expenses", status_code=status.HTTP_201_CREATED)
async def create_expense(body: ExpenseCreate, caller: CallerDep, db: DatabaseDep):
    return await ExpenseService.create_expense(db, caller, body)


@router.get("/expenses/{expense_id}")
async def get_expense(expense_id: ExpenseId, caller: CallerDep, db: DatabaseDep):
    return await ExpenseService.get_expense(db, caller, expense_id)


@router.patch("/expenses/{expense_id}")
async def update_expense(expense_id: ExpenseId, body: ExpenseUpdate, caller: CallerDep, db: DatabaseDep):
    return await ExpenseService.update_expense(db, caller, expense_id, body)


@router.delete("/expenses/{expense_id}")
async def delete_expense(expense_id: ExpenseId, caller: CallerDep, db: DatabaseDep):
    await ExpenseService.delete_expense(db, caller, expense_id)
    return {"success": True, "message": "Expense deleted successfully"}


# =============================================================================
# Project Rollups
# =============================================================================

@router.get("/projects/{project_id}/expenses")
async def list_project_expenses(project_id: ProjectId, caller: CallerDep, db: DatabaseDep):
    return await ExpenseService.list_project_expenses(db, caller, project_id)


@router.get("/projects/{project_id}/expenses/summary")
async def expense_summary(project_id: ProjectId, caller: CallerDep, db: DatabaseDep):
    """Total plus one bucket per expense category."""
    return await ExpenseService.expense_summary(db, caller, project_id)


@router.get("/projects/{project_id}/budget")
async def budget_comparison(project_id: ProjectId, caller: CallerDep, db: DatabaseDep):
    return await ExpenseService.budget_comparison(db, caller, project_id)


@router.get("/projects/{project_id}/expenses/by-month")
async def expenses_by_month(
    project_id: ProjectId,
    caller: CallerDep,
    db: DatabaseDep,
    months: Annotated[int, Query(description="Number of months ending with the current one")] = 6,
):
    return await ExpenseService.expenses_by_month(db, caller, project_id, months=months)


@router.get("/projects/{project_id}/expenses/export")
async def export_expenses(project_id: ProjectId, caller: CallerDep, db: DatabaseDep):
    """Download a project's expenses as CSV."""
    csv_text = await ExpenseService.export_csv(db, caller, project_id)
    return Response(
        content=csv_text,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="expenses-{project_id}.csv"'},
    )
