# =============================================================================
# agents/ - AI Agent Definitions
# =============================================================================
# This package contains the production insights agent:
# - insights.py: InsightsAgent - reports, budget and portfolio analysis over
#   an OpenAI-compatible chat API, with rule-based fallbacks
#
# Models:
# - models/insights.py: ProductionReport, BudgetAnalysis schemas
#
# Prompts:
# - prompts/insights_system.py: System prompt and prompt builders
# =============================================================================

from agents.insights import InsightsAgent, category_breakdown
from agents.models.insights import BudgetAnalysis, CategorySpend, ProductionReport

__all__ = [
    # Agent
    "InsightsAgent",
    "category_breakdown",
    # Models
    "BudgetAnalysis",
    "CategorySpend",
    "ProductionReport",
]
