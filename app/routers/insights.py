# =============================================================================
# app/routers/insights.py - AI Insight Endpoints
# =============================================================================
# Production reports and budget analysis generated by the insights agent.
# Returns 503 AI_NOT_CONFIGURED when no model API key is set.
# =============================================================================

from typing import Annotated

from fastapi import APIRouter, Path

from app.auth import CallerDep
from app.dependencies import DatabaseDep
from core.services.insights_service import InsightsService

router = APIRouter()

ProjectId = Annotated[str, Path(description="Project id")]


@router.post("/insights/projects/{project_id}/report")
async def production_report(project_id: ProjectId, caller: CallerDep, db: DatabaseDep):
    """Summary, recommendations, insights and risk assessment for a project."""
    report = await InsightsService.production_report(db, caller, project_id)
    return report.model_dump(by_alias=True)


@router.post("/insights/projects/{project_id}/budget")
async def budget_analysis(project_id: ProjectId, caller: CallerDep, db: DatabaseDep):
    analysis = await InsightsService.budget_analysis(db, caller, project_id)
    return analysis.model_dump(by_alias=True)


@router.post("/insights/portfolio")
async def portfolio_analysis(caller: CallerDep, db: DatabaseDep):
    """Budget analysis across every project you can see."""
    analysis = await InsightsService.portfolio_analysis(db, caller)
    return analysis.model_dump(by_alias=True)
