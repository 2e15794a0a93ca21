# =============================================================================
# core/models/schedule.py - Shoot Schedule Schemas
# =============================================================================

from datetime import date, time

from pydantic import BaseModel, Field


class ScheduleCreate(BaseModel):
    """
    Body for POST /schedules: one shoot day entry for a scene.

    Example:
        {
            "project_id": "550e8400-...",
            "scene_number": "12A",
            "shoot_date": "2026-11-03",
            "shoot_time": "06:30",
            "location": "Karura Forest",
            "required_crew": ["Camera Department", "Sound Department"],
            "equipment_needed": ["Cinema Camera", "Boom Pole"]
        }
    """

    project_id: str = Field(..., min_length=1)
    scene_number: str | None = Field(default=None, max_length=50)
    scene_description: str | None = None
    shoot_date: date = Field(..., description="Day of the shoot")
    shoot_time: time | None = Field(default=None, description="Call time")
    location: str | None = None
    required_crew: list[str] | None = None
    equipment_needed: list[str] | None = None
    notes: str | None = None


class ScheduleUpdate(BaseModel):
    """Body for PATCH /schedules/{id}; only provided fields change."""

    scene_number: str | None = Field(default=None, max_length=50)
    scene_description: str | None = None
    shoot_date: date | None = None
    shoot_time: time | None = None
    location: str | None = None
    required_crew: list[str] | None = None
    equipment_needed: list[str] | None = None
    notes: str | None = None
