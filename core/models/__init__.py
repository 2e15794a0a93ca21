# =============================================================================
# core/models/ - Pydantic Data Models
# =============================================================================
# This package contains Pydantic schemas and domain enums:
# - profile.py: Role, Department, Caller and profile request bodies
# - project.py: Project status, project/membership request bodies
# - task.py: Task status/priority and request bodies
# - schedule.py: Shoot schedule request bodies
# - expense.py: Expense categories and request bodies
# - file.py: File types and metadata updates
# - report.py: Reports, report comments and listing filters
# - messaging.py: Messaging request bodies and notification constants
#
# Rows read from the database travel as plain dicts; these models define the
# request side of the API contract and the shared enums.
# =============================================================================

# -----------------------------------------------------------------------------
# Profile Models - Users, roles and departments
# -----------------------------------------------------------------------------
from .profile import (
    AdminUserCreate,
    AdminUserUpdate,
    Caller,
    DEPARTMENT_LABELS,
    Department,
    ProfileUpdate,
    ROLE_VALUES,
    Role,
)

# -----------------------------------------------------------------------------
# Project Models - Projects and crew membership
# -----------------------------------------------------------------------------
from .project import (
    ACTIVE_PROJECT_STATUSES,
    DEFAULT_MEMBER_ROLE,
    MemberAdd,
    MemberRoleUpdate,
    PROJECT_MANAGER_ROLE,
    ProjectCreate,
    ProjectStatus,
    ProjectUpdate,
)

# -----------------------------------------------------------------------------
# Project-scoped Entities
# -----------------------------------------------------------------------------
from .task import TASK_STATUS_LABELS, TaskCreate, TaskPriority, TaskStatus, TaskUpdate
from .schedule import ScheduleCreate, ScheduleUpdate
from .expense import EXPENSE_CATEGORIES, ExpenseCategory, ExpenseCreate, ExpenseUpdate
from .file import FILE_TYPES, FileType, FileUpdate

# -----------------------------------------------------------------------------
# Reports and Messaging
# -----------------------------------------------------------------------------
from .report import CommentCreate, CommentUpdate, ReportCreate, ReportFilters, ReportUpdate
from .messaging import AppendMessageRequest, SendMessageRequest

__all__ = [
    # Profile
    "AdminUserCreate",
    "AdminUserUpdate",
    "Caller",
    "DEPARTMENT_LABELS",
    "Department",
    "ProfileUpdate",
    "ROLE_VALUES",
    "Role",
    # Project
    "ACTIVE_PROJECT_STATUSES",
    "DEFAULT_MEMBER_ROLE",
    "MemberAdd",
    "MemberRoleUpdate",
    "PROJECT_MANAGER_ROLE",
    "ProjectCreate",
    "ProjectStatus",
    "ProjectUpdate",
    # Task
    "TASK_STATUS_LABELS",
    "TaskCreate",
    "TaskPriority",
    "TaskStatus",
    "TaskUpdate",
    # Schedule
    "ScheduleCreate",
    "ScheduleUpdate",
    # Expense
    "EXPENSE_CATEGORIES",
    "ExpenseCategory",
    "ExpenseCreate",
    "ExpenseUpdate",
    # File
    "FILE_TYPES",
    "FileType",
    "FileUpdate",
    # Report
    "CommentCreate",
    "CommentUpdate",
    "ReportCreate",
    "ReportFilters",
    "ReportUpdate",
    # Messaging
    "AppendMessageRequest",
    "SendMessageRequest",
]
