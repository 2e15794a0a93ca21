# =============================================================================
# agents/models/ - Agent Output Schemas
# =============================================================================
# This package contains Pydantic models for what the insights agent returns:
# - insights.py: ProductionReport, BudgetAnalysis, CategorySpend
# =============================================================================

from agents.models.insights import (
    BudgetAnalysis,
    CategorySpend,
    ProductionReport,
)

__all__ = [
    "BudgetAnalysis",
    "CategorySpend",
    "ProductionReport",
]
