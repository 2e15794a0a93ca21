# =============================================================================
# core/services/expense_service.py - Expenses and Budget Tracking
# =============================================================================
# Handles expense CRUD plus the per-project budget views:
# - summary: totals in the five fixed category buckets
# - budget: budget vs spent, remaining and percentage used
# - by-month: the last N calendar months, every month present
# - export: CSV download of a project's expenses (pandas)
# =============================================================================

import io
import logging
from datetime import date
from typing import Any

import pandas as pd

from app.exceptions import NotFoundError, ValidationFailedError
from core.models.expense import ExpenseCreate, ExpenseUpdate
from core.models.profile import Caller
from core.services.authorization import (
    Action,
    accessible_project_ids,
    authorize_project,
    ensure_allowed,
)
from lib.aggregations import budget_comparison, expenses_by_month, summarize_expenses
from lib.supabase_client import SupabaseClient
from lib.utils import utc_now_iso

logger = logging.getLogger(__name__)

EXPENSE_WITH_PROJECT = "*, project:projects(id, title, budget)"

EXPORT_COLUMNS = ["expense_date", "category", "description", "amount", "receipt_url", "created_at"]

MAX_MONTHS = 24


class ExpenseService:
    """Service for expense operations and budget aggregation."""

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    async def _fetch_expense(db: SupabaseClient, expense_id: str, columns: str = "*") -> dict[str, Any]:
        client = await db.get_client()
        expense = await db.fetch_one(
            client.table("expenses").select(columns).eq("id", expense_id).limit(1),
            "fetch expense",
        )
        if expense is None:
            raise NotFoundError("Expense", expense_id)
        return expense

    @staticmethod
    async def _project_expenses(db: SupabaseClient, project_id: str) -> list[dict[str, Any]]:
        client = await db.get_client()
        return await db.fetch_all(
            client.table("expenses")
            .select("*")
            .eq("project_id", project_id)
            .order("expense_date", desc=True),
            "fetch project expenses",
        )

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    @staticmethod
    async def list_expenses(db: SupabaseClient, caller: Caller) -> list[dict[str, Any]]:
        """All expenses across the caller's projects, most recent expense date first."""
        project_ids = await accessible_project_ids(db, caller.id)
        if not project_ids:
            return []

        client = await db.get_client()
        return await db.fetch_all(
            client.table("expenses")
            .select(EXPENSE_WITH_PROJECT)
            .in_("project_id", project_ids)
            .order("expense_date", desc=True),
            "list expenses",
        )

    @staticmethod
    async def list_project_expenses(db: SupabaseClient, caller: Caller, project_id: str) -> list[dict[str, Any]]:
        await authorize_project(db, caller, project_id, Action.READ_PROJECT)
        return await ExpenseService._project_expenses(db, project_id)

    @staticmethod
    async def get_expense(db: SupabaseClient, caller: Caller, expense_id: str) -> dict[str, Any]:
        expense = await ExpenseService._fetch_expense(db, expense_id, EXPENSE_WITH_PROJECT)
        await authorize_project(db, caller, expense["project_id"], Action.READ_PROJECT)
        return expense

    @staticmethod
    async def create_expense(db: SupabaseClient, caller: Caller, body: ExpenseCreate) -> dict[str, Any]:
        """Record an expense against a project the caller can write to."""
        await authorize_project(db, caller, body.project_id, Action.WRITE_PROJECT)

        data = body.model_dump(mode="json", exclude_none=True)
        data["created_by"] = caller.id

        client = await db.get_client()
        expense = await db.fetch_one(client.table("expenses").insert(data), "create expense")
        if expense is None:
            raise ValidationFailedError("Expense could not be created")

        logger.info(f"Recorded {body.category.value} expense of {body.amount} in project {body.project_id}")
        return expense

    @staticmethod
    async def update_expense(
        db: SupabaseClient,
        caller: Caller,
        expense_id: str,
        body: ExpenseUpdate,
    ) -> dict[str, Any]:
        expense = await ExpenseService._fetch_expense(db, expense_id)
        await authorize_project(db, caller, expense["project_id"], Action.WRITE_PROJECT)

        updates = body.model_dump(mode="json", exclude_unset=True)
        if not updates:
            raise ValidationFailedError("No fields to update")
        updates["updated_at"] = utc_now_iso()

        client = await db.get_client()
        updated = await db.fetch_one(
            client.table("expenses").update(updates).eq("id", expense_id),
            "update expense",
        )
        if updated is None:
            raise NotFoundError("Expense", expense_id)
        return updated

    @staticmethod
    async def delete_expense(db: SupabaseClient, caller: Caller, expense_id: str) -> None:
        expense = await ExpenseService._fetch_expense(db, expense_id)
        await authorize_project(db, caller, expense["project_id"], Action.WRITE_PROJECT)

        client = await db.get_client()
        deleted = await db.fetch_all(
            client.table("expenses").delete().eq("id", expense_id),
            "delete expense",
        )
        if not deleted:
            raise NotFoundError("Expense", expense_id)
        logger.info(f"Deleted expense {expense_id}")

    # -------------------------------------------------------------------------
    # Aggregations
    # -------------------------------------------------------------------------

    @staticmethod
    async def expense_summary(db: SupabaseClient, caller: Caller, project_id: str) -> dict[str, Any]:
        """Totals by fixed category for one project."""
        expenses = await ExpenseService.list_project_expenses(db, caller, project_id)
        return summarize_expenses(expenses)

    @staticmethod
    async def budget_comparison(db: SupabaseClient, caller: Caller, project_id: str) -> dict[str, Any]:
        """Budget vs spent for one project."""
        await authorize_project(db, caller, project_id, Action.READ_PROJECT)

        client = await db.get_client()
        project = await db.fetch_one(
            client.table("projects").select("id, budget").eq("id", project_id).limit(1),
            "fetch project budget",
        )
        if project is None:
            raise NotFoundError("Project", project_id)

        expenses = await ExpenseService._project_expenses(db, project_id)
        return budget_comparison(project.get("budget"), expenses)

    @staticmethod
    async def expenses_by_month(
        db: SupabaseClient,
        caller: Caller,
        project_id: str,
        months: int = 6,
        today: date | None = None,
    ) -> list[dict[str, Any]]:
        """
        Spending per calendar month, oldest first, ending with the current month.

        Raises:
            ValidationFailedError: If months is outside 1..24
        """
        if months < 1 or months > MAX_MONTHS:
            raise ValidationFailedError(f"months must be between 1 and {MAX_MONTHS}")

        expenses = await ExpenseService.list_project_expenses(db, caller, project_id)
        return expenses_by_month(expenses, months, today or date.today())

    @staticmethod
    async def export_csv(db: SupabaseClient, caller: Caller, project_id: str) -> str:
        """
        Render a project's expenses as CSV (admins and department heads).

        Returns:
            CSV text with a header row, even when there are no expenses
        """
        ensure_allowed(caller, Action.EXPORT_DATA)
        expenses = await ExpenseService.list_project_expenses(db, caller, project_id)

        df = pd.DataFrame(expenses, columns=EXPORT_COLUMNS)
        df["amount"] = pd.to_numeric(df["amount"], errors="coerce").fillna(0.0)

        csv_buffer = io.StringIO()
        df.to_csv(csv_buffer, index=False)
        logger.info(f"Exported {len(df)} expenses for project {project_id}")
        return csv_buffer.getvalue()
