# =============================================================================
# lib/aggregations.py - Derived Views over Entity Rows
# =============================================================================
# Pure functions that turn lists of rows (dicts as returned by Supabase) into
# the summaries the API serves:
# - Task merge / filter / sort for task listings
# - Expense totals by category, budget comparison, month buckets
# - File size formatting and per-type tallies
# - Dashboard label/count helpers
#
# Nothing here performs I/O, so every function is tested directly.
#
# Usage:
#   from lib.aggregations import sort_tasks, summarize_expenses
#   summary = summarize_expenses(expense_rows)
# =============================================================================

from __future__ import annotations

from collections import Counter
from datetime import date
from typing import Any, Iterable

from core.models.expense import EXPENSE_CATEGORIES
from core.models.file import FILE_TYPES
from core.models.task import TASK_STATUS_LABELS

Row = dict[str, Any]


# =============================================================================
# Tasks
# =============================================================================

PRIORITY_WEIGHTS = {"high": 3, "medium": 2, "low": 1}


def merge_tasks(project_tasks: Iterable[Row], assigned_tasks: Iterable[Row]) -> list[Row]:
    """
    Union project-derived and directly-assigned tasks, de-duplicated by id.

    A project-derived row always wins: an assigned row with the same id is
    ignored, not merged over it. Insertion order is preserved.
    """
    merged: dict[str, Row] = {}
    for task in project_tasks:
        merged[task["id"]] = task
    for task in assigned_tasks:
        merged.setdefault(task["id"], task)
    return list(merged.values())


def filter_tasks(
    tasks: Iterable[Row],
    status: str | None = None,
    priority: str | None = None,
    assigned_to: str | None = None,
) -> list[Row]:
    """Apply optional equality filters after the merge."""
    result = []
    for task in tasks:
        if status and task.get("status") != status:
            continue
        if priority and task.get("priority") != priority:
            continue
        if assigned_to and task.get("assigned_to") != assigned_to:
            continue
        result.append(task)
    return result


def _task_sort_key(task: Row) -> tuple:
    due = task.get("due_date")
    # Dated tasks first (0), undated after (1); then earliest date; then heaviest priority
    return (
        0 if due else 1,
        str(due) if due else "",
        -PRIORITY_WEIGHTS.get(task.get("priority") or "", 0),
    )


def sort_tasks(tasks: Iterable[Row]) -> list[Row]:
    """
    Order tasks by due date ascending, undated tasks last.

    Ties (same date, or both undated) go high > medium > low > unknown.
    Dates are ISO strings, so string order is date order.
    """
    return sorted(tasks, key=_task_sort_key)


def count_tasks_by_status(tasks: Iterable[Row]) -> list[Row]:
    """
    Count tasks per status with display labels, for the dashboard chart.

    Only statuses that occur are returned; a missing status counts as todo.
    """
    counts = Counter((task.get("status") or "todo") for task in tasks)
    return [
        {"status": TASK_STATUS_LABELS.get(status, status), "count": count}
        for status, count in counts.items()
    ]


# =============================================================================
# Expenses
# =============================================================================

def _amount(row: Row) -> float:
    value = row.get("amount")
    return float(value) if value is not None else 0.0


def expense_totals_by_category(expenses: Iterable[Row]) -> dict[str, float]:
    """
    Sum expense amounts into the five fixed category buckets.

    Every category key is present (zero when unused). Rows whose category
    isn't one of the five are dropped rather than folded into "other".
    """
    totals = {category: 0.0 for category in EXPENSE_CATEGORIES}
    for expense in expenses:
        category = expense.get("category")
        if category in totals:
            totals[category] += _amount(expense)
    return totals


def summarize_expenses(expenses: list[Row]) -> Row:
    """
    Project expense summary.

    Returns:
        {"total_expenses": float, "by_category": {...five keys...}, "expense_count": int}
    """
    return {
        "total_expenses": sum(_amount(expense) for expense in expenses),
        "by_category": expense_totals_by_category(expenses),
        "expense_count": len(expenses),
    }


def budget_comparison(budget: float | None, expenses: Iterable[Row]) -> Row:
    """
    Compare a project's budget with what has been spent.

    A missing or zero budget counts as no budget: `budget`, `remaining` and
    `percentage_used` are then None.
    """
    spent = sum(_amount(expense) for expense in expenses)
    if not budget:
        return {"budget": None, "spent": spent, "remaining": None, "percentage_used": None}

    budget = float(budget)
    return {
        "budget": budget,
        "spent": spent,
        "remaining": budget - spent,
        "percentage_used": spent / budget * 100,
    }


def month_keys(months: int, today: date) -> list[tuple[str, str]]:
    """
    The `months` consecutive calendar months ending at today's month.

    Returns:
        [(key, label)] oldest first, e.g. [("2026-09", "Sep 2026"), ("2026-10", "Oct 2026")]
    """
    keys = []
    for offset in range(months - 1, -1, -1):
        index = today.year * 12 + (today.month - 1) - offset
        year, month = divmod(index, 12)
        first_day = date(year, month + 1, 1)
        keys.append((first_day.strftime("%Y-%m"), first_day.strftime("%b %Y")))
    return keys


def expenses_by_month(expenses: list[Row], months: int, today: date) -> list[Row]:
    """
    Month-bucketed expense totals.

    Exactly `months` buckets come back, most recent last; months with no
    expenses report zero total and count. An expense belongs to a bucket
    when its date string starts with the bucket's YYYY-MM key.
    """
    buckets = []
    for key, label in month_keys(months, today):
        matching = [e for e in expenses if str(e.get("expense_date") or "").startswith(key)]
        buckets.append({
            "month": key,
            "label": label,
            "total": sum(_amount(e) for e in matching),
            "count": len(matching),
        })
    return buckets


def category_label(category: str) -> str:
    """Display label for a category key: 'post-production' -> 'Post production'."""
    if not category:
        return "Other"
    return category[0].upper() + category[1:].replace("-", " ", 1)


def spending_by_category(expenses: Iterable[Row]) -> list[Row]:
    """
    Labelled category totals for the dashboard.

    Unlike `expense_totals_by_category`, every category present in the data
    shows up (missing categories count as "other"), in first-seen order.
    """
    totals: dict[str, float] = {}
    for expense in expenses:
        category = expense.get("category") or "other"
        totals[category] = totals.get(category, 0.0) + _amount(expense)
    return [{"category": category_label(c), "amount": amount} for c, amount in totals.items()]


def project_budget_rows(projects: Iterable[Row], expenses: list[Row]) -> list[Row]:
    """
    Per-project budget vs spent for the dashboard chart.

    Only projects with a positive budget are listed; remaining never goes
    below zero here.
    """
    spent_by_project: dict[str, float] = {}
    for expense in expenses:
        project_id = expense.get("project_id")
        spent_by_project[project_id] = spent_by_project.get(project_id, 0.0) + _amount(expense)

    rows = []
    for project in projects:
        budget = float(project.get("budget") or 0)
        if budget <= 0:
            continue
        spent = spent_by_project.get(project["id"], 0.0)
        rows.append({
            "project_id": project["id"],
            "name": project.get("title"),
            "budget": budget,
            "spent": spent,
            "remaining": max(0.0, budget - spent),
        })
    return rows


# =============================================================================
# Files
# =============================================================================

def format_file_size(size: int | float | None) -> str:
    """
    Human-readable file size.

    Examples:
        format_file_size(None)     # "Unknown size"
        format_file_size(512)      # "512.0 B"
        format_file_size(1536)     # "1.5 KB"
        format_file_size(5242880)  # "5.0 MB"
    """
    if not size:
        return "Unknown size"

    units = ["B", "KB", "MB", "GB"]
    value = float(size)
    unit_index = 0
    while value >= 1024 and unit_index < len(units) - 1:
        value /= 1024
        unit_index += 1
    return f"{value:.1f} {units[unit_index]}"


def file_extension(filename: str) -> str:
    """Lowercased extension without the dot, or '' when there is none."""
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def file_stats(files: list[Row]) -> Row:
    """
    Totals for a project's files.

    Returns:
        {"total_files", "total_size", "total_size_display", "by_type": {four keys}}
    """
    by_type = {file_type: 0 for file_type in FILE_TYPES}
    total_size = 0
    for row in files:
        total_size += int(row.get("file_size") or 0)
        file_type = row.get("file_type")
        if file_type in by_type:
            by_type[file_type] += 1

    return {
        "total_files": len(files),
        "total_size": total_size,
        "total_size_display": format_file_size(total_size),
        "by_type": by_type,
    }


# =============================================================================
# Counting
# =============================================================================

def count_by(rows: Iterable[Row], field: str, default: str) -> dict[str, int]:
    """Count rows by a field's value, substituting `default` for empty values."""
    return dict(Counter((row.get(field) or default) for row in rows))


def status_label(status: str) -> str:
    """Title-case a hyphenated status key: 'pre-production' -> 'Pre Production'."""
    return " ".join(word[:1].upper() + word[1:] for word in status.split("-"))


def count_projects_by_status(projects: Iterable[Row]) -> list[Row]:
    """Labelled project counts per status, in first-seen order."""
    counts = Counter(p.get("status") for p in projects if p.get("status"))
    return [{"status": status_label(status), "count": count} for status, count in counts.items()]


# =============================================================================
# Activity Feed
# =============================================================================

def format_ksh(amount: Any) -> str:
    """'KSh 12,500' for whole amounts, 'KSh 12,500.5' otherwise."""
    value = float(amount or 0)
    if value.is_integer():
        return f"KSh {value:,.0f}"
    return f"KSh {value:,.2f}".rstrip("0").rstrip(".")


def _related(row: Row, key: str, field: str) -> Any:
    related = row.get(key)
    return related.get(field) if isinstance(related, dict) else None


def recent_activity(
    tasks: Iterable[Row],
    expenses: Iterable[Row],
    schedules: Iterable[Row],
    limit: int = 10,
) -> list[Row]:
    """
    Merge recent tasks, expenses and schedules into one feed, newest first.

    Each entry: {id, type, title, description, project, creator, created_at}.
    """
    activities: list[Row] = []
    for task in tasks:
        activities.append({
            "id": task["id"],
            "type": "task",
            "title": task.get("title"),
            "description": "Task created",
            "project": _related(task, "project", "title"),
            "creator": _related(task, "creator", "full_name"),
            "created_at": task.get("created_at"),
        })
    for expense in expenses:
        activities.append({
            "id": expense["id"],
            "type": "expense",
            "title": expense.get("description"),
            "description": f"Expense logged: {format_ksh(expense.get('amount'))}",
            "project": _related(expense, "project", "title"),
            "creator": _related(expense, "creator", "full_name"),
            "created_at": expense.get("created_at"),
        })
    for schedule in schedules:
        scene = schedule.get("scene_number")
        activities.append({
            "id": schedule["id"],
            "type": "schedule",
            "title": f"Scene {scene}" if scene else "Shoot",
            "description": f"Scheduled for {schedule.get('shoot_date')}",
            "project": _related(schedule, "project", "title"),
            "creator": _related(schedule, "creator", "full_name"),
            "created_at": schedule.get("created_at"),
        })

    activities.sort(key=lambda a: str(a.get("created_at") or ""), reverse=True)
    return activities[:limit]
