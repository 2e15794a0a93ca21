# =============================================================================
# tests/test_insights.py - Insights Agent Tests
# =============================================================================
# This module contains tests for:
# - Category breakdown of expenses
# - Deterministic fallbacks when the model reply isn't usable JSON
# - InsightsAgent parsing (with mocked OpenAI)
# - Configuration and input errors at the service and HTTP layers
#
# Tests use mocked OpenAI responses to avoid API costs.
# =============================================================================

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import OpenAIError

from agents.insights import (
    InsightsAgent,
    category_breakdown,
    fallback_budget_analysis,
    fallback_portfolio_analysis,
    fallback_report,
)
from app.exceptions import AINotConfiguredError, ForbiddenError, UpstreamFailureError, ValidationFailedError
from core.services.insights_service import InsightsService
from tests.conftest import PROJECT_ID


def mock_client(content: str) -> MagicMock:
    """An AsyncOpenAI stand-in whose completion returns `content`."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
    )
    return client


EXPENSES = [
    {"category": "equipment", "amount": 60000},
    {"category": "crew", "amount": 25000},
    {"category": None, "amount": 5000},
]


# =============================================================================
# Breakdown and Fallbacks
# =============================================================================

class TestFallbacks:
    """Test the rule-based analysis used when the model reply is unusable."""

    def test_category_breakdown_sorted_with_percentages(self):
        breakdown = category_breakdown(EXPENSES)

        assert [c.category for c in breakdown] == ["equipment", "crew", "other"]
        assert breakdown[0].percentage == pytest.approx(66.666, rel=1e-3)

    def test_category_breakdown_empty(self):
        assert category_breakdown([]) == []

    def test_over_budget_status(self):
        analysis = fallback_budget_analysis(80000, 90000, category_breakdown(EXPENSES))

        assert "OVER BUDGET by KSh 10,000" in analysis.budget_status
        assert "112.5%" in analysis.budget_status
        assert analysis.recommendations[0].startswith("Critical: Only KSh 10,000 remaining")
        assert len(analysis.recommendations) == 4

    def test_on_track_status(self):
        analysis = fallback_budget_analysis(1000000, 90000, category_breakdown(EXPENSES))

        assert "Budget is on track with KSh 910,000 remaining." in analysis.budget_status
        assert "timeline is healthy" in analysis.timeline_status
        assert analysis.recommendations[3].startswith("Consider accelerating")

    def test_portfolio_health_levels(self):
        categories = category_breakdown(EXPENSES)

        critical = fallback_portfolio_analysis(95000, 90000, 3, categories)
        healthy = fallback_portfolio_analysis(500000, 90000, 3, categories)

        assert "CRITICAL" in critical.budget_status
        assert "HEALTHY" in healthy.budget_status
        assert "across 3 projects" in healthy.budget_status
        assert len(healthy.recommendations) == 7
        assert "1. EQUIPMENT: KSh 60,000" in healthy.resource_utilization

    def test_fallback_report_from_free_text(self):
        report = fallback_report("Project is on schedule.\n- Lock locations\n- Hire gaffer\n")

        assert report.summary == "Project is on schedule."
        assert report.recommendations == ["- Lock locations", "- Hire gaffer"]


# =============================================================================
# Agent
# =============================================================================

class TestInsightsAgent:
    """Test InsightsAgent with a mocked OpenAI client."""

    def test_requires_configuration(self, monkeypatch):
        monkeypatch.setattr("agents.insights.settings.AI_API_KEY", None)

        with pytest.raises(AINotConfiguredError):
            InsightsAgent()

    @pytest.mark.asyncio
    async def test_parses_camel_case_reply(self):
        reply = json.dumps({
            "summary": "Principal photography is 60% complete",
            "recommendations": ["Book the second unit", "Lock the edit suite"],
            "insights": "Night shoots run long",
            "riskAssessment": "Weather on exterior days",
        })
        agent = InsightsAgent(client=mock_client(reply))

        report = await agent.generate_production_report({"title": "Nairobi Nights", "budget": 100000})

        assert report.insights == ["Night shoots run long"]
        assert report.model_dump(by_alias=True)["riskAssessment"] == "Weather on exterior days"

    @pytest.mark.asyncio
    async def test_invalid_json_uses_fallback(self):
        agent = InsightsAgent(client=mock_client("not json at all"))

        analysis = await agent.analyze_budget(100000, EXPENSES)

        assert analysis.budget_status.startswith("You have spent KSh 90,000 out of KSh 100,000 (90.0% of budget)")

    @pytest.mark.asyncio
    async def test_requests_json_mode(self):
        client = mock_client(json.dumps({"budgetStatus": "ok"}))
        agent = InsightsAgent(client=client)

        await agent.analyze_portfolio(200000, EXPENSES, 2)

        kwargs = client.chat.completions.create.await_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert "Number of Projects: 2" in kwargs["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_provider_failure_is_generic(self):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=OpenAIError("rate limited"))
        agent = InsightsAgent(client=client)

        with pytest.raises(UpstreamFailureError) as exc_info:
            await agent.analyze_budget(100000, EXPENSES)

        assert exc_info.value.message == "Failed to analyze budget"


# =============================================================================
# Service and Routes
# =============================================================================

class TestInsightsService:
    """Test access and input checks before the model is called."""

    @pytest.mark.asyncio
    async def test_budget_analysis_needs_a_budget(self, db, head, fake_supabase):
        fake_supabase.rows("projects")[0]["budget"] = None
        agent = InsightsAgent(client=mock_client("{}"))

        with pytest.raises(ValidationFailedError):
            await InsightsService.budget_analysis(db, head, PROJECT_ID, agent=agent)

        agent.client.chat.completions.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_outsider_cannot_analyze_project(self, db, outsider):
        with pytest.raises(ForbiddenError):
            await InsightsService.production_report(db, outsider, PROJECT_ID, agent=InsightsAgent(client=mock_client("{}")))

    @pytest.mark.asyncio
    async def test_portfolio_without_projects(self, db, outsider):
        with pytest.raises(ValidationFailedError) as exc_info:
            await InsightsService.portfolio_analysis(db, outsider, agent=InsightsAgent(client=mock_client("{}")))

        assert exc_info.value.message == "No projects to analyze"

    @pytest.mark.asyncio
    async def test_portfolio_uses_all_accessible_projects(self, db, head, fake_supabase):
        fake_supabase.add("expenses", {"project_id": PROJECT_ID, "category": "equipment", "amount": 40000})
        agent = InsightsAgent(client=mock_client("oops"))

        analysis = await InsightsService.portfolio_analysis(db, head, agent=agent)

        assert "KSh 40,000 out of KSh 100,000" in analysis.budget_status

    def test_route_returns_503_when_not_configured(self, make_client, head, monkeypatch):
        monkeypatch.setattr("agents.insights.settings.AI_API_KEY", None)

        response = make_client(head).post(f"/api/v1/insights/projects/{PROJECT_ID}/report")

        assert response.status_code == 503
        assert response.json() == {"error": "AI insights are not configured", "code": "AI_NOT_CONFIGURED"}
