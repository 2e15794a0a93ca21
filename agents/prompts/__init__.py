# =============================================================================
# agents/prompts/ - System Prompts for AI Agents
# =============================================================================
# This package contains the prompts for the insights agent:
# - insights_system.py: system prompt plus report/budget/portfolio builders
#
# Organized with XML tags for clear structure.
# =============================================================================

from agents.prompts.insights_system import (
    INSIGHTS_SYSTEM_PROMPT,
    build_budget_prompt,
    build_portfolio_prompt,
    build_report_prompt,
)

__all__ = [
    "INSIGHTS_SYSTEM_PROMPT",
    "build_budget_prompt",
    "build_portfolio_prompt",
    "build_report_prompt",
]
