# =============================================================================
# core/models/profile.py - User Profile Schemas
# =============================================================================
# A profile is the application-level user record: one row in `profiles` per
# authenticated identity, created by the signup trigger (or the admin create
# endpoint) and keyed by the identity's user id.
#
# This module defines:
# - Role: the three application roles
# - Department: the twelve production departments with display labels
# - Caller: the resolved identity + role of the current request
# - Request bodies for self-service and admin profile changes
# =============================================================================

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """
    Application role stored in `profiles.role`.

    - admin: manages users, sees every project
    - department_head: manages tasks, schedules and crew within their projects
    - crew: works on assigned tasks and files reports
    """
    ADMIN = "admin"
    DEPARTMENT_HEAD = "department_head"
    CREW = "crew"

    @classmethod
    def parse(cls, value: str | None) -> "Role | None":
        """Return the Role for a raw string, or None when it isn't one."""
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def is_manager(self) -> bool:
        """Admins and department heads share the management permissions."""
        return self in (Role.ADMIN, Role.DEPARTMENT_HEAD)


ROLE_VALUES = [role.value for role in Role]


class Department(str, Enum):
    """Production departments a profile can belong to."""
    CAMERA = "camera"
    SOUND = "sound"
    LIGHTING = "lighting"
    ART = "art"
    PRODUCTION = "production"
    COSTUME = "costume"
    MAKEUP = "makeup"
    POST_PRODUCTION = "post_production"
    VFX = "vfx"
    STUNTS = "stunts"
    TRANSPORT = "transport"
    CATERING = "catering"

    @property
    def label(self) -> str:
        return DEPARTMENT_LABELS[self]


DEPARTMENT_LABELS: dict[Department, str] = {
    Department.CAMERA: "Camera Department",
    Department.SOUND: "Sound Department",
    Department.LIGHTING: "Lighting Department",
    Department.ART: "Art Department",
    Department.PRODUCTION: "Production Department",
    Department.COSTUME: "Costume Department",
    Department.MAKEUP: "Makeup & Hair Department",
    Department.POST_PRODUCTION: "Post Production Department",
    Department.VFX: "VFX Department",
    Department.STUNTS: "Stunts Department",
    Department.TRANSPORT: "Transport Department",
    Department.CATERING: "Catering Department",
}


class Caller(BaseModel):
    """
    The authenticated user behind the current request, with their role.

    Built fresh on every request from the `profiles` row, so a role change
    applies on the very next call.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Profile / auth user id")
    email: str | None = Field(default=None, description="Email on the profile")
    full_name: str | None = Field(default=None, description="Display name")
    role: Role = Field(..., description="Application role")
    department: str | None = Field(default=None, description="Department key, if set")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def display_name(self) -> str:
        return self.full_name or self.email or "Unknown user"


# =============================================================================
# Request Bodies
# =============================================================================

class ProfileUpdate(BaseModel):
    """
    Fields a user may change on their own profile.

    Role is deliberately absent: only admins change roles, through
    PATCH /admin/users/{id}.
    """

    full_name: str | None = Field(default=None, min_length=1, max_length=200)
    department: Department | None = Field(default=None)
    avatar_url: str | None = Field(default=None, max_length=2048)


class AdminUserCreate(BaseModel):
    """
    Body for POST /admin/users.

    Every field is optional at the schema level so the service can answer
    missing fields with one consistent message.
    """

    email: str | None = None
    password: str | None = None
    fullName: str | None = None
    role: str | None = None


class AdminUserUpdate(BaseModel):
    """Body for PATCH /admin/users/{id}; at least one field is required."""

    full_name: str | None = None
    role: str | None = None
    email: str | None = None
