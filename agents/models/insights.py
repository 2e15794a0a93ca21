# =============================================================================
# agents/models/insights.py - AI Insight Schemas
# =============================================================================
# This module defines the shapes the insights agent returns:
# - ProductionReport: project summary, recommendations, insights, risks
# - BudgetAnalysis: budget/timeline/resource assessment plus recommendations
#   (used for both single-project and portfolio analysis)
#
# Field names are snake_case in Python and camelCase on the wire, which is
# also the JSON shape the model is asked to produce.
#
# Example:
#   report = ProductionReport.model_validate(json.loads(response_text))
#   report.model_dump(by_alias=True)
#   # {"summary": ..., "recommendations": [...], "insights": [...], "riskAssessment": ...}
# =============================================================================

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_text_list(value: Any) -> list[str]:
    """Accept a list of anything or a single string; always return strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item) for item in value if item is not None and str(item).strip()]
    return [str(value)]


class ProductionReport(BaseModel):
    """
    AI assessment of one project.

    Attributes:
        summary: Short status summary
        recommendations: 3-5 concrete improvements
        insights: Key observations
        risk_assessment: Risks to schedule, budget or delivery
    """

    model_config = ConfigDict(populate_by_name=True)

    summary: str = Field(
        ...,
        description="Brief summary of the project status"
    )

    recommendations: list[str] = Field(
        default_factory=list,
        description="Specific recommendations for improvement"
    )

    insights: list[str] = Field(
        default_factory=list,
        description="Key insights about the project"
    )

    risk_assessment: str = Field(
        default="",
        alias="riskAssessment",
        description="Risk assessment"
    )

    @field_validator("recommendations", "insights", mode="before")
    @classmethod
    def coerce_lists(cls, value: Any) -> list[str]:
        return _as_text_list(value)


class BudgetAnalysis(BaseModel):
    """
    AI analysis of spending against budget, for a project or a portfolio.

    Attributes:
        budget_status: Spent vs budget with amounts and percentage
        timeline_status: What the utilization implies for the schedule
        resource_utilization: Category breakdown and cost drivers
        recommendations: Actionable recommendations with amounts
    """

    model_config = ConfigDict(populate_by_name=True)

    budget_status: str = Field(..., alias="budgetStatus")
    timeline_status: str = Field(default="", alias="timelineStatus")
    resource_utilization: str = Field(default="", alias="resourceUtilization")
    recommendations: list[str] = Field(default_factory=list)

    @field_validator("recommendations", mode="before")
    @classmethod
    def coerce_recommendations(cls, value: Any) -> list[str]:
        return _as_text_list(value)


class CategorySpend(BaseModel):
    """One category's share of spending, as fed into the prompts."""

    category: str
    amount: float
    percentage: float = Field(..., description="Share of total spending, 0-100")
