# =============================================================================
# core/services/__init__.py - Service Layer Exports
# =============================================================================

from .authorization import AccessTarget, Action, Decision, authorize, ensure_allowed
from .dashboard_service import DashboardService
from .expense_service import ExpenseService
from .file_service import FileService
from .insights_service import InsightsService
from .message_service import MessageService
from .notification_service import FanOutResult, NotificationService
from .project_service import ProjectService
from .report_service import ReportService
from .schedule_service import ScheduleService
from .storage_service import StorageService
from .task_service import TaskService
from .user_service import UserService

__all__ = [
    "AccessTarget",
    "Action",
    "Decision",
    "authorize",
    "ensure_allowed",
    "DashboardService",
    "ExpenseService",
    "FileService",
    "InsightsService",
    "MessageService",
    "FanOutResult",
    "NotificationService",
    "ProjectService",
    "ReportService",
    "ScheduleService",
    "StorageService",
    "TaskService",
    "UserService",
]
