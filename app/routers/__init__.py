# =============================================================================
# app/routers/ - API Route Definitions
# =============================================================================
# This package contains FastAPI routers organized by feature:
# - health.py: Health check endpoints
# - users.py / admin_users.py: Profiles and account management
# - projects.py: Projects and crew membership
# - tasks.py, schedules.py, expenses.py, files.py: Production data
# - reports.py: Daily reports and comments
# - messages.py, notifications.py: Communication
# - dashboard.py, insights.py: Rollups and AI analysis
#
# Routers declare full paths; main.py mounts them all under /api/v1.
# =============================================================================

from . import admin_users
from . import dashboard
from . import expenses
from . import files
from . import health
from . import insights
from . import messages
from . import notifications
from . import projects
from . import reports
from . import schedules
from . import tasks
from . import users

__all__ = [
    "admin_users",
    "dashboard",
    "expenses",
    "files",
    "health",
    "insights",
    "messages",
    "notifications",
    "projects",
    "reports",
    "schedules",
    "tasks",
    "users",
]
