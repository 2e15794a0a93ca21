# =============================================================================
# core/services/insights_service.py - AI Insight Requests
# =============================================================================
# Loads the project and expense data an insight needs (with the usual access
# checks) and hands it to the InsightsAgent.
# =============================================================================

import asyncio
import logging
from typing import Any

from agents.insights import InsightsAgent
from agents.models.insights import BudgetAnalysis, ProductionReport
from app.exceptions import NotFoundError, ValidationFailedError
from core.models.profile import Caller
from core.services.authorization import Action, accessible_project_ids, authorize_project
from lib.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


class InsightsService:
    """Service for AI production insights."""

    @staticmethod
    async def _project_with_expenses(
        db: SupabaseClient,
        caller: Caller,
        project_id: str,
    ) -> tuple[dict[str, Any], list[dict[str, Any]]]:
        await authorize_project(db, caller, project_id, Action.READ_PROJECT)

        client = await db.get_client()
        project, expenses = await asyncio.gather(
            db.fetch_one(
                client.table("projects")
                .select("id, title, description, status, budget")
                .eq("id", project_id)
                .limit(1),
                "fetch project for insights",
            ),
            db.fetch_all(
                client.table("expenses").select("category, amount").eq("project_id", project_id),
                "fetch expenses for insights",
            ),
        )
        if project is None:
            raise NotFoundError("Project", project_id)
        return project, expenses

    @staticmethod
    async def production_report(
        db: SupabaseClient,
        caller: Caller,
        project_id: str,
        agent: InsightsAgent | None = None,
    ) -> ProductionReport:
        project, _ = await InsightsService._project_with_expenses(db, caller, project_id)
        agent = agent or InsightsAgent()
        return await agent.generate_production_report(project)

    @staticmethod
    async def budget_analysis(
        db: SupabaseClient,
        caller: Caller,
        project_id: str,
        agent: InsightsAgent | None = None,
    ) -> BudgetAnalysis:
        """
        Raises:
            ValidationFailedError: If the project has no positive budget
        """
        project, expenses = await InsightsService._project_with_expenses(db, caller, project_id)

        budget = float(project.get("budget") or 0)
        if budget <= 0:
            raise ValidationFailedError("Project has no budget set")

        agent = agent or InsightsAgent()
        return await agent.analyze_budget(budget, expenses)

    @staticmethod
    async def portfolio_analysis(
        db: SupabaseClient,
        caller: Caller,
        agent: InsightsAgent | None = None,
    ) -> BudgetAnalysis:
        """
        Analyze spending across every project the caller can see.

        Raises:
            ValidationFailedError: If the caller has no projects or no budgets are set
        """
        project_ids = await accessible_project_ids(db, caller.id)
        if not project_ids:
            raise ValidationFailedError("No projects to analyze")

        client = await db.get_client()
        projects, expenses = await asyncio.gather(
            db.fetch_all(
                client.table("projects").select("id, budget").in_("id", project_ids),
                "fetch portfolio projects",
            ),
            db.fetch_all(
                client.table("expenses").select("category, amount").in_("project_id", project_ids),
                "fetch portfolio expenses",
            ),
        )

        budget = sum(float(p.get("budget") or 0) for p in projects)
        if budget <= 0:
            raise ValidationFailedError("No project budgets set")

        logger.info(f"Portfolio analysis for {caller.id}: {len(projects)} projects, {len(expenses)} expenses")
        agent = agent or InsightsAgent()
        return await agent.analyze_portfolio(budget, expenses, len(projects))
