# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the CrewDesk API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.auth import routes as auth_routes
from app.config import settings
from app.exceptions import (
    CrewDeskException,
    crewdesk_exception_handler,
    supabase_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from app.routers import (
    admin_users,
    dashboard,
    expenses,
    files,
    health,
    insights,
    messages,
    notifications,
    projects,
    reports,
    schedules,
    tasks,
    users,
)
from lib.supabase_client import SupabaseClient, SupabaseClientError

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    - Startup: build the shared database handle
    - Shutdown: log only; the Supabase client holds no pooled state of ours
    """
    logger.info(f"Starting CrewDesk API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    if not settings.ai_enabled:
        logger.warning("AI_API_KEY is not set; insight endpoints will return 503")

    if getattr(app.state, "db", None) is None:
        app.state.db = SupabaseClient.from_settings(settings)

    yield

    logger.info("Shutting down CrewDesk API")


# Create FastAPI application
app = FastAPI(
    title="CrewDesk API",
    description="""
## Film Production Management API

CrewDesk coordinates a production's crew, work and money in one place.

### Features

- **Projects & Crew** - projects with per-project crew and role labels
- **Tasks** - assignment, priorities and due dates
- **Schedules** - shooting days with locations and call times
- **Expenses** - budgets, category rollups and CSV export
- **Files** - scripts, contracts and call sheets in object storage
- **Daily Reports** - crew reports with comments and lead notifications
- **Messages** - direct and group conversations
- **Insights** - AI production reports and budget analysis

All endpoints except health checks require a Supabase access token, sent as
`Authorization: Bearer <token>` or in the auth cookie.
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {"name": "Auth", "description": "Verify tokens and fetch the current profile"},
        {"name": "Users", "description": "Profiles, directory search and role statistics"},
        {"name": "Admin", "description": "Account management (admins only)"},
        {"name": "Projects", "description": "Projects and their crew"},
        {"name": "Tasks", "description": "Production tasks"},
        {"name": "Schedules", "description": "Shooting schedules"},
        {"name": "Expenses", "description": "Expenses and budget rollups"},
        {"name": "Files", "description": "Project documents"},
        {"name": "Reports", "description": "Daily reports and comments"},
        {"name": "Messages", "description": "Conversations between crew members"},
        {"name": "Notifications", "description": "In-app notifications"},
        {"name": "Dashboard", "description": "Overview statistics"},
        {"name": "Insights", "description": "AI production and budget analysis"},
        {"name": "Health", "description": "API health and readiness checks"},
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - credentials are needed for the auth cookie
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

app.add_exception_handler(CrewDeskException, crewdesk_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SupabaseClientError, supabase_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)


# =============================================================================
# Routers
# =============================================================================

# Auth routes carry their own /auth prefix
app.include_router(auth_routes.router, prefix=API_PREFIX, tags=["Auth"])

app.include_router(health.router, prefix=API_PREFIX, tags=["Health"])
app.include_router(users.router, prefix=API_PREFIX, tags=["Users"])
app.include_router(admin_users.router, prefix=API_PREFIX, tags=["Admin"])
app.include_router(projects.router, prefix=API_PREFIX, tags=["Projects"])
app.include_router(tasks.router, prefix=API_PREFIX, tags=["Tasks"])
app.include_router(schedules.router, prefix=API_PREFIX, tags=["Schedules"])
app.include_router(expenses.router, prefix=API_PREFIX, tags=["Expenses"])
app.include_router(files.router, prefix=API_PREFIX, tags=["Files"])
app.include_router(reports.router, prefix=API_PREFIX, tags=["Reports"])
app.include_router(messages.router, prefix=API_PREFIX, tags=["Messages"])
app.include_router(notifications.router, prefix=API_PREFIX, tags=["Notifications"])
app.include_router(dashboard.router, prefix=API_PREFIX, tags=["Dashboard"])
app.include_router(insights.router, prefix=API_PREFIX, tags=["Insights"])


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "CrewDesk API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": f"{API_PREFIX}/health",
    }
