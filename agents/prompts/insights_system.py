# =============================================================================
# agents/prompts/insights_system.py - Production Insights Prompts
# =============================================================================
# This module contains the prompts for the insights agent:
# - Production report for a single project
# - Budget analysis for a single project
# - Portfolio analysis across every project the caller can see
#
# Every prompt asks for a JSON object whose keys match agents/models/insights.py.
# Amounts are always shown in KSh with thousands separators.
#
# Usage:
#   messages = [
#       {"role": "system", "content": INSIGHTS_SYSTEM_PROMPT},
#       {"role": "user", "content": build_budget_prompt(budget, spent, categories)},
#   ]
# =============================================================================

from __future__ import annotations

from typing import Any

from agents.models.insights import CategorySpend
from lib.aggregations import format_ksh

# =============================================================================
# System Prompt
# =============================================================================

INSIGHTS_SYSTEM_PROMPT = """
<role>
You are an expert film production financial analyst advising producers in Kenya.
You give detailed, data-driven analysis with specific numbers and actionable recommendations.
</role>

<rules>
- Every statement about money includes the KSh amount.
- Percentages use one decimal place.
- Never give generic advice like "monitor spending"; say what to monitor and why.
- Do NOT calculate burn rates (money per week or month); there is no timeline data.
  Reason from budget utilization percentages instead.
- Respond with a single valid JSON object and nothing else.
</rules>
""".strip()


# =============================================================================
# Prompt Builders
# =============================================================================

def _category_lines(categories: list[CategorySpend]) -> str:
    if not categories:
        return "- No expenses recorded yet"
    return "\n".join(
        f"- {c.category}: {format_ksh(c.amount)} ({c.percentage:.1f}% of total spending)"
        for c in categories
    )


def build_report_prompt(project: dict[str, Any]) -> str:
    """
    Prompt for a production report on one project.

    Args:
        project: Project row (title, budget, status, description)
    """
    budget = project.get("budget")
    budget_text = format_ksh(budget) if budget else "Not set"

    return f"""
Analyze this film production project and provide a comprehensive report.

<project>
Project: {project.get("title")}
Budget: {budget_text}
Status: {project.get("status")}
Description: {project.get("description") or "No description"}
</project>

<output_format>
{{
    "summary": "A brief summary of the project status",
    "recommendations": ["3-5 specific recommendations for improvement"],
    "insights": ["Key insights about the project"],
    "riskAssessment": "Risk assessment"
}}
</output_format>
""".strip()


def build_budget_prompt(budget: float, spent: float, categories: list[CategorySpend]) -> str:
    """Prompt for a single project's budget analysis."""
    remaining = budget - spent
    percentage_used = spent / budget * 100

    return f"""
Analyze this film production budget.

<budget_overview>
- Total Budget: {format_ksh(budget)}
- Total Spent: {format_ksh(spent)}
- Remaining: {format_ksh(remaining)}
- Percentage Used: {percentage_used:.1f}%
</budget_overview>

<spending_by_category>
{_category_lines(categories)}
</spending_by_category>

<requirements>
1. budgetStatus: actual amounts and percentages; say whether on track, over budget
   or approaching the limit, and the exact remaining amount.
2. timelineStatus: what {percentage_used:.1f}% utilization implies for the schedule.
   Over 90% warns of delays; under 50% is healthy.
3. resourceUtilization: each category with amounts; which categories consume the
   most and whether that is typical for film production.
4. recommendations: 3-5 specific, actionable items referencing categories and amounts
   (e.g. equipment over 60% of budget suggests rental alternatives).
</requirements>

<output_format>
{{
    "budgetStatus": "...",
    "timelineStatus": "...",
    "resourceUtilization": "...",
    "recommendations": ["..."]
}}
</output_format>
""".strip()


def build_portfolio_prompt(
    budget: float,
    spent: float,
    project_count: int,
    categories: list[CategorySpend],
) -> str:
    """Prompt for a multi-project portfolio analysis."""
    remaining = budget - spent
    percentage_used = spent / budget * 100

    return f"""
Analyze this multi-project film production portfolio.

<portfolio_overview>
- Number of Projects: {project_count}
- Total Portfolio Budget: {format_ksh(budget)}
- Total Spent Across All Projects: {format_ksh(spent)}
- Remaining Budget: {format_ksh(remaining)}
- Portfolio Budget Utilization: {percentage_used:.1f}%
</portfolio_overview>

<spending_by_category>
{_category_lines(categories)}
</spending_by_category>

<requirements>
1. budgetStatus: "You have spent KSh X out of KSh Y (Z% of portfolio budget)", compared
   to healthy utilization for film portfolios, with risk indicators.
2. timelineStatus: utilization-based health; warn if spending is too fast or too slow.
3. resourceUtilization: the top 3 cost drivers with amounts, potential savings
   (e.g. "reducing equipment costs by 10% would save KSh X"), cross-project opportunities.
4. recommendations: 5-7 items, each with numbers, prioritized by estimated savings,
   focused on portfolio-level strategies such as bulk deals and resource sharing.
</requirements>

<output_format>
{{
    "budgetStatus": "...",
    "timelineStatus": "...",
    "resourceUtilization": "...",
    "recommendations": ["..."]
}}
</output_format>
""".strip()
