# =============================================================================
# agents/insights.py - Production Insights Agent
# =============================================================================
# This module implements the AI insights agent: production reports, budget
# analysis and portfolio analysis, generated by an OpenAI-compatible chat
# completions endpoint (DeepSeek by default).
#
# Flow for every insight:
# 1. Build the prompt from project / expense data
# 2. Call the model in JSON mode
# 3. Validate the JSON against the insight schema
# 4. If the reply isn't usable JSON, build a deterministic fallback from the
#    same numbers so the caller still gets an answer
#
# Errors:
# - No AI_API_KEY configured  -> AINotConfiguredError (503)
# - Provider call fails       -> UpstreamFailureError (500, generic message)
#
# Usage:
#   from agents.insights import InsightsAgent
#   agent = InsightsAgent()
#   analysis = await agent.analyze_budget(budget=500000, expenses=rows)
# =============================================================================

from __future__ import annotations

import json
import logging
from typing import Any, TypeVar

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from agents.models.insights import BudgetAnalysis, CategorySpend, ProductionReport
from agents.prompts.insights_system import (
    INSIGHTS_SYSTEM_PROMPT,
    build_budget_prompt,
    build_portfolio_prompt,
    build_report_prompt,
)
from app.config import settings
from app.exceptions import AINotConfiguredError, UpstreamFailureError
from lib.aggregations import format_ksh

# Set up logging for this module
logger = logging.getLogger(__name__)

InsightT = TypeVar("InsightT", bound=BaseModel)


# =============================================================================
# Spending Breakdown
# =============================================================================

def category_breakdown(expenses: list[dict[str, Any]]) -> list[CategorySpend]:
    """
    Total spending per category, largest first.

    Missing categories count as "other"; percentages are shares of the total
    (0 when nothing has been spent).
    """
    totals: dict[str, float] = {}
    for expense in expenses:
        category = expense.get("category") or "other"
        totals[category] = totals.get(category, 0.0) + float(expense.get("amount") or 0)

    spent = sum(totals.values())
    breakdown = [
        CategorySpend(
            category=category,
            amount=amount,
            percentage=(amount / spent * 100) if spent else 0.0,
        )
        for category, amount in totals.items()
    ]
    return sorted(breakdown, key=lambda c: c.amount, reverse=True)


# =============================================================================
# Deterministic Fallbacks
# =============================================================================

def fallback_report(content: str) -> ProductionReport:
    """Structure a free-text model reply into a ProductionReport."""
    lines = [line.strip() for line in content.splitlines() if line.strip()]
    return ProductionReport(
        summary=lines[0] if lines else "Analysis completed",
        recommendations=[line for line in lines if "•" in line or "-" in line][:5],
        insights=["AI analysis completed successfully"],
        risk_assessment="Review the recommendations above for potential risks",
    )


def fallback_budget_analysis(
    budget: float,
    spent: float,
    categories: list[CategorySpend],
) -> BudgetAnalysis:
    """
    Rule-based budget analysis from the raw numbers.

    Thresholds on percentage used: over 100 is over budget, over 90 is
    approaching the limit, over 75 still leaves a healthy buffer.
    """
    remaining = budget - spent
    pct = spent / budget * 100

    if pct > 100:
        status = f"You are OVER BUDGET by {format_ksh(abs(remaining))}!"
    elif pct > 90:
        status = f"You are approaching your budget limit with only {format_ksh(remaining)} remaining."
    elif pct > 75:
        status = f"You have {format_ksh(remaining)} remaining (healthy buffer)."
    else:
        status = f"Budget is on track with {format_ksh(remaining)} remaining."

    if pct > 90:
        timeline = "timeline may be at risk. Consider reviewing remaining deliverables and budget allocation."
    elif pct > 75:
        timeline = "timeline appears on track but monitor spending closely for remaining production phases."
    else:
        timeline = "timeline is healthy with adequate budget remaining for planned activities."

    if categories:
        top = ", ".join(
            f"{c.category} ({format_ksh(c.amount)}, {c.percentage:.1f}%)" for c in categories[:3]
        )
        utilization = f"Top spending categories: {top}. Review if allocation aligns with production priorities."
    else:
        utilization = "No expense data available for analysis."

    if pct > 90:
        first = f"Critical: Only {format_ksh(abs(remaining))} remaining. Freeze non-essential spending immediately."
    else:
        pace = "monitor remaining expenses closely" if pct > 75 else "healthy spending pace"
        first = f"Budget utilization at {pct:.1f}% - {pace}"

    if categories:
        largest = (
            f"{categories[0].category} is your largest expense at {format_ksh(categories[0].amount)}"
            " - verify this aligns with production needs"
        )
    else:
        largest = "Track expenses by category for better budget visibility"

    return BudgetAnalysis(
        budget_status=(
            f"You have spent {format_ksh(spent)} out of {format_ksh(budget)} "
            f"({pct:.1f}% of budget). {status}"
        ),
        timeline_status=f"With {pct:.1f}% of budget utilized, {timeline}",
        resource_utilization=utilization,
        recommendations=[
            first,
            largest,
            "Review and update budget forecasts weekly to avoid surprises",
            "Consider accelerating planned expenditures if timeline permits"
            if pct < 50 else "Prioritize remaining budget for critical production needs",
        ],
    )


def fallback_portfolio_analysis(
    budget: float,
    spent: float,
    project_count: int,
    categories: list[CategorySpend],
) -> BudgetAnalysis:
    """Rule-based portfolio analysis from the raw numbers."""
    remaining = budget - spent
    pct = spent / budget * 100
    average = spent / project_count
    top = categories[:3]

    if pct > 90:
        health = (
            f"CRITICAL: You are at {pct:.1f}% budget utilization with only "
            f"{format_ksh(remaining)} remaining across all projects."
        )
    elif pct > 75:
        health = (
            f"WARNING: At {pct:.1f}% utilization, you have {format_ksh(remaining)} remaining. "
            "Monitor spending closely."
        )
    else:
        health = (
            f"HEALTHY: At {pct:.1f}% utilization with {format_ksh(remaining)} remaining, "
            "your portfolio is on track."
        )

    if pct > 85:
        pacing = (
            f"At this utilization rate, your remaining {format_ksh(remaining)} provides limited budget. "
            "Consider pausing non-critical expenses."
        )
    elif pct > 60:
        pacing = (
            f"You have utilized {pct:.1f}% of your portfolio budget with {format_ksh(remaining)} remaining. "
            "Monitor spending trends closely."
        )
    else:
        pacing = (
            f"Your spending is well-paced at {pct:.1f}% utilization. "
            f"You have {format_ksh(remaining)} remaining to maintain this trajectory."
        )

    category_lines = []
    for index, c in enumerate(top):
        line = f"{index + 1}. {c.category.upper()}: {format_ksh(c.amount)} ({c.percentage:.1f}% of total spending)"
        if index == 0:
            line += (
                " - This is your largest cost driver. A 10% reduction would save "
                f"{format_ksh(c.amount * 0.1)}."
            )
        category_lines.append(line)

    if top and top[0].percentage > 50:
        efficiency = (
            f"{top[0].category} dominates at {top[0].percentage:.1f}% of spending. "
            "Consider bulk deals or resource sharing across projects."
        )
    else:
        efficiency = "Spending is reasonably distributed across categories."

    first_name = top[0].category if top else "equipment"
    first_amount = top[0].amount if top else 0.0
    second_name = top[1].category if len(top) > 1 else "crew"
    second_amount = top[1].amount if len(top) > 1 else 0.0

    if pct > 80:
        reserve_note = (
            f"URGENT: With only {format_ksh(remaining)} remaining ({100 - pct:.1f}%), "
            "defer non-essential expenses and renegotiate vendor contracts."
        )
    else:
        reserve_note = f"Maintain current spending pace. You have {format_ksh(remaining)} buffer for contingencies."

    return BudgetAnalysis(
        budget_status=(
            f"Portfolio Analysis: You have spent {format_ksh(spent)} out of {format_ksh(budget)} "
            f"({pct:.1f}% utilization) across {project_count} projects. "
            f"Average spending per project is {format_ksh(average)}. {health}"
        ),
        timeline_status=(
            f"Spending Analysis: With {format_ksh(spent)} spent across {project_count} projects, "
            f"average spending per project is {format_ksh(average)}. {pacing}"
        ),
        resource_utilization=(
            "Category Analysis:\n" + "\n".join(category_lines) + f"\n\nPortfolio Efficiency: {efficiency}"
        ),
        recommendations=[
            f"Negotiate bulk {first_name} deals across all {project_count} projects. "
            f"Potential savings: {format_ksh(first_amount * 0.15)} (15% reduction).",
            f"Implement cross-project resource sharing for {second_name}. "
            f"Current spending: {format_ksh(second_amount)}. Sharing could reduce costs by 20%.",
            f"Set project-specific spending caps: {format_ksh(round(remaining / project_count))} "
            "per project for remaining budget.",
            f"Review {first_name} expenses ({format_ksh(first_amount)}). "
            "Identify items that can be reused across projects.",
            reserve_note,
            f"Analyze per-project efficiency: Average spend is {format_ksh(average)}. "
            "Identify outliers and apply best practices from efficient projects.",
            "Create a portfolio reserve fund: Allocate 10% of remaining budget "
            f"({format_ksh(remaining * 0.1)}) for unexpected costs across all projects.",
        ],
    )


# =============================================================================
# Insights Agent
# =============================================================================

class InsightsAgent:
    """
    Generates production insights with an OpenAI-compatible chat model.

    Example:
        agent = InsightsAgent()
        report = await agent.generate_production_report(project_row)
        print(report.summary)

    Attributes:
        model: Chat model id (default from settings)
        temperature: Generation temperature (default from settings)
        max_tokens: Completion token cap (default from settings)
    """

    def __init__(
        self,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        client: AsyncOpenAI | None = None,
    ):
        """
        Initialize the agent.

        Raises:
            AINotConfiguredError: If no client is given and AI_API_KEY is unset
        """
        if client is None:
            if not settings.ai_enabled:
                raise AINotConfiguredError()
            client = AsyncOpenAI(api_key=settings.AI_API_KEY, base_url=settings.AI_BASE_URL)

        self.client = client
        self.model = model or settings.AI_MODEL
        self.temperature = temperature if temperature is not None else settings.AI_TEMPERATURE
        self.max_tokens = max_tokens or settings.AI_MAX_TOKENS

        logger.info(f"InsightsAgent initialized with model={self.model}, temp={self.temperature}")

    # -------------------------------------------------------------------------
    # Model Calls
    # -------------------------------------------------------------------------

    async def _complete(self, user_prompt: str, action: str) -> str:
        """Run one JSON-mode chat completion and return the reply text."""
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
                response_format={"type": "json_object"},  # Force JSON output
                messages=[
                    {"role": "system", "content": INSIGHTS_SYSTEM_PROMPT},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except OpenAIError as e:
            logger.error(f"AI provider call failed ({action}): {e}")
            raise UpstreamFailureError(f"Failed to {action}")

        response_text = response.choices[0].message.content or ""
        logger.debug(f"AI response ({action}): {response_text[:200]}...")
        return response_text

    @staticmethod
    def _parse(response_text: str, schema: type[InsightT]) -> InsightT | None:
        """Validate a JSON reply against `schema`; None when it isn't usable."""
        try:
            data = json.loads(response_text)
            return schema.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"AI reply did not match {schema.__name__}, using fallback: {e}")
            return None

    # -------------------------------------------------------------------------
    # Insights
    # -------------------------------------------------------------------------

    async def generate_production_report(self, project: dict[str, Any]) -> ProductionReport:
        """Summary, recommendations, insights and risk assessment for a project."""
        text = await self._complete(build_report_prompt(project), "generate AI report")
        return self._parse(text, ProductionReport) or fallback_report(text)

    async def analyze_budget(self, budget: float, expenses: list[dict[str, Any]]) -> BudgetAnalysis:
        """
        Analyze one project's spending against its budget.

        Args:
            budget: Project budget, must be positive
            expenses: Expense rows (category, amount)
        """
        categories = category_breakdown(expenses)
        spent = sum(c.amount for c in categories)

        text = await self._complete(build_budget_prompt(budget, spent, categories), "analyze budget")
        return self._parse(text, BudgetAnalysis) or fallback_budget_analysis(budget, spent, categories)

    async def analyze_portfolio(
        self,
        budget: float,
        expenses: list[dict[str, Any]],
        project_count: int,
    ) -> BudgetAnalysis:
        """
        Analyze spending across a portfolio of projects.

        Args:
            budget: Sum of the projects' budgets, must be positive
            expenses: Expense rows across all projects
            project_count: Number of projects, must be positive
        """
        categories = category_breakdown(expenses)
        spent = sum(c.amount for c in categories)

        text = await self._complete(
            build_portfolio_prompt(budget, spent, project_count, categories),
            "analyze portfolio",
        )
        return self._parse(text, BudgetAnalysis) or fallback_portfolio_analysis(
            budget, spent, project_count, categories
        )
