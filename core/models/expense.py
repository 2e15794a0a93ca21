# =============================================================================
# core/models/expense.py - Expense Schemas
# =============================================================================

from datetime import date
from enum import Enum

from pydantic import BaseModel, Field


class ExpenseCategory(str, Enum):
    """
    The five fixed expense buckets.

    Category summaries always report every one of these keys.
    """
    EQUIPMENT = "equipment"
    CREW = "crew"
    LOCATION = "location"
    POST_PRODUCTION = "post-production"
    OTHER = "other"


EXPENSE_CATEGORIES = tuple(category.value for category in ExpenseCategory)


class ExpenseCreate(BaseModel):
    """
    Body for POST /expenses.

    Example:
        {
            "project_id": "550e8400-...",
            "category": "equipment",
            "description": "Lens rental, week 1",
            "amount": 45000,
            "expense_date": "2026-10-14"
        }
    """

    project_id: str = Field(..., min_length=1)
    category: ExpenseCategory
    description: str = Field(..., min_length=1, max_length=500)
    amount: float = Field(..., ge=0, description="Amount in KSh")
    expense_date: date
    receipt_url: str | None = None


class ExpenseUpdate(BaseModel):
    """Body for PATCH /expenses/{id}; only provided fields change."""

    category: ExpenseCategory | None = None
    description: str | None = Field(default=None, min_length=1, max_length=500)
    amount: float | None = Field(default=None, ge=0)
    expense_date: date | None = None
    receipt_url: str | None = None
