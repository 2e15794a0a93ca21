# =============================================================================
# tests/ - Test Suite
# =============================================================================
# This package contains all tests for the CrewDesk API:
# - fakes.py: In-memory Supabase double used by every service test
# - test_authorization.py: Access guard rules and target loaders
# - test_aggregations.py: Pure task/expense/file/dashboard summaries
# - test_*_service.py: Service behaviour against the in-memory database
# - test_*_routes.py: HTTP surface through FastAPI's TestClient
# - test_insights.py: AI insights with mocked OpenAI
#
# Run tests with: pytest
# =============================================================================
