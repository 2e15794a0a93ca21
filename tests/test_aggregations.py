# =============================================================================
# tests/test_aggregations.py - Derived View Tests
# =============================================================================
# This module contains tests for:
# - Task merge, filtering and ordering
# - Expense summaries, budget comparison and month buckets
# - File size formatting and per-type tallies
# - Dashboard counting and the activity feed
# =============================================================================

from datetime import date

from lib.aggregations import (
    budget_comparison,
    count_projects_by_status,
    count_tasks_by_status,
    expenses_by_month,
    file_stats,
    filter_tasks,
    format_file_size,
    format_ksh,
    merge_tasks,
    month_keys,
    project_budget_rows,
    recent_activity,
    sort_tasks,
    spending_by_category,
    summarize_expenses,
)


# =============================================================================
# Tasks
# =============================================================================

class TestTaskViews:
    """Test merging, filtering and ordering of task rows."""

    def test_project_row_wins_on_duplicate_id(self):
        project_tasks = [{"id": "t1", "title": "From project"}]
        assigned_tasks = [{"id": "t1", "title": "From assignment"}, {"id": "t2", "title": "Other"}]

        merged = merge_tasks(project_tasks, assigned_tasks)

        assert [t["id"] for t in merged] == ["t1", "t2"]
        assert merged[0]["title"] == "From project"

    def test_filters_combine(self):
        tasks = [
            {"id": "a", "status": "todo", "priority": "high", "assigned_to": "u1"},
            {"id": "b", "status": "todo", "priority": "low", "assigned_to": "u1"},
            {"id": "c", "status": "done", "priority": "high", "assigned_to": "u2"},
        ]

        assert [t["id"] for t in filter_tasks(tasks, status="todo", priority="high")] == ["a"]
        assert [t["id"] for t in filter_tasks(tasks, assigned_to="u2")] == ["c"]
        assert len(filter_tasks(tasks)) == 3

    def test_sort_by_due_date_then_priority_with_undated_last(self):
        tasks = [
            {"id": "undated-high", "due_date": None, "priority": "high"},
            {"id": "late", "due_date": "2026-03-10", "priority": "high"},
            {"id": "early-low", "due_date": "2026-03-01", "priority": "low"},
            {"id": "early-high", "due_date": "2026-03-01", "priority": "high"},
            {"id": "undated-low", "priority": "low"},
        ]

        ordered = [t["id"] for t in sort_tasks(tasks)]

        assert ordered == ["early-high", "early-low", "late", "undated-high", "undated-low"]

    def test_count_tasks_by_status_labels(self):
        tasks = [{"status": "todo"}, {"status": "done"}, {"status": None}, {"status": "in_progress"}]

        counts = {row["status"]: row["count"] for row in count_tasks_by_status(tasks)}

        assert counts == {"To Do": 2, "Done": 1, "In Progress": 1}


# =============================================================================
# Expenses
# =============================================================================

class TestExpenseViews:
    """Test category summaries, budget comparison and month buckets."""

    def test_summary_reports_all_five_categories(self):
        expenses = [
            {"category": "equipment", "amount": 1500},
            {"category": "equipment", "amount": "500.50"},
            {"category": "catering", "amount": 200},
        ]

        summary = summarize_expenses(expenses)

        assert summary["expense_count"] == 3
        assert summary["total_expenses"] == 2200.5
        assert summary["by_category"] == {
            "equipment": 2000.5,
            "crew": 0.0,
            "location": 0.0,
            "post-production": 0.0,
            "other": 0.0,
        }

    def test_budget_comparison_without_budget(self):
        result = budget_comparison(None, [{"amount": 100}])

        assert result == {"budget": None, "spent": 100.0, "remaining": None, "percentage_used": None}

    def test_budget_comparison_allows_overspend(self):
        result = budget_comparison(1000, [{"amount": 800}, {"amount": 400}])

        assert result["remaining"] == -200.0
        assert result["percentage_used"] == 120.0

    def test_zero_budget_counts_as_no_budget(self):
        comparison = budget_comparison(0, [{"amount": 250}])

        assert comparison == {"budget": None, "spent": 250.0, "remaining": None, "percentage_used": None}

    def test_month_keys_cross_year_boundary(self):
        keys = month_keys(3, date(2026, 1, 15))

        assert keys == [("2025-11", "Nov 2025"), ("2025-12", "Dec 2025"), ("2026-01", "Jan 2026")]

    def test_expenses_by_month_zero_fills(self):
        expenses = [
            {"expense_date": "2026-10-02", "amount": 300},
            {"expense_date": "2026-10-20", "amount": 200},
            {"expense_date": "2026-08-05", "amount": 50},
            {"expense_date": "2025-10-01", "amount": 999},
        ]

        buckets = expenses_by_month(expenses, 3, date(2026, 10, 18))

        assert [(b["month"], b["total"], b["count"]) for b in buckets] == [
            ("2026-08", 50.0, 1),
            ("2026-09", 0.0, 0),
            ("2026-10", 500.0, 2),
        ]

    def test_spending_by_category_includes_unknown_categories(self):
        expenses = [
            {"category": "post-production", "amount": 100},
            {"category": None, "amount": 5},
            {"category": "catering", "amount": 20},
        ]

        assert spending_by_category(expenses) == [
            {"category": "Post production", "amount": 100.0},
            {"category": "Other", "amount": 5.0},
            {"category": "Catering", "amount": 20.0},
        ]

    def test_project_budget_rows_skip_unbudgeted_and_floor_remaining(self):
        projects = [
            {"id": "p1", "title": "Feature", "budget": 1000},
            {"id": "p2", "title": "Short", "budget": 0},
        ]
        expenses = [{"project_id": "p1", "amount": 1500}]

        rows = project_budget_rows(projects, expenses)

        assert rows == [{"project_id": "p1", "name": "Feature", "budget": 1000.0, "spent": 1500.0, "remaining": 0.0}]


# =============================================================================
# Files
# =============================================================================

class TestFileViews:
    """Test file size formatting and per-type tallies."""

    def test_format_file_size(self):
        assert format_file_size(None) == "Unknown size"
        assert format_file_size(0) == "Unknown size"
        assert format_file_size(512) == "512.0 B"
        assert format_file_size(1536) == "1.5 KB"
        assert format_file_size(5 * 1024 * 1024) == "5.0 MB"

    def test_file_stats(self):
        files = [
            {"file_type": "script", "file_size": 1024},
            {"file_type": "script", "file_size": 1024},
            {"file_type": "call_sheet", "file_size": None},
        ]

        stats = file_stats(files)

        assert stats["total_files"] == 3
        assert stats["total_size"] == 2048
        assert stats["total_size_display"] == "2.0 KB"
        assert stats["by_type"] == {"script": 2, "contract": 0, "call_sheet": 1, "other": 0}


# =============================================================================
# Dashboard
# =============================================================================

class TestDashboardViews:
    """Test labels, currency formatting and the activity feed."""

    def test_count_projects_by_status(self):
        projects = [{"status": "pre-production"}, {"status": "production"}, {"status": "pre-production"}]

        assert count_projects_by_status(projects) == [
            {"status": "Pre Production", "count": 2},
            {"status": "Production", "count": 1},
        ]

    def test_format_ksh(self):
        assert format_ksh(12500) == "KSh 12,500"
        assert format_ksh(12500.5) == "KSh 12,500.5"
        assert format_ksh(None) == "KSh 0"
        assert format_ksh(0.001) == "KSh 0"
        assert format_ksh(1500.25) == "KSh 1,500.25"

    def test_recent_activity_merges_newest_first(self):
        tasks = [{"id": "t1", "title": "Rig lights", "created_at": "2026-10-01T10:00:00"}]
        expenses = [{
            "id": "e1",
            "description": "Dolly rental",
            "amount": 4500,
            "project": {"title": "Nairobi Nights"},
            "created_at": "2026-10-03T10:00:00",
        }]
        schedules = [
            {"id": "s1", "scene_number": "12", "shoot_date": "2026-10-20", "created_at": "2026-10-02T10:00:00"},
            {"id": "s2", "scene_number": None, "shoot_date": "2026-10-21", "created_at": "2026-09-01T10:00:00"},
        ]

        feed = recent_activity(tasks, expenses, schedules, limit=3)

        assert [a["id"] for a in feed] == ["e1", "s1", "t1"]
        assert feed[0]["description"] == "Expense logged: KSh 4,500"
        assert feed[0]["project"] == "Nairobi Nights"
        assert feed[1]["title"] == "Scene 12"
        assert feed[1]["description"] == "Scheduled for 2026-10-20"
