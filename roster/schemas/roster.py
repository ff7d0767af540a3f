# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Request / Response schemas — API contract definitions.
These are Pydantic models used ONLY at the controller (HTTP) boundary.
"""

from typing import Optional

from pydantic import BaseModel, Field


# ── Auth Schemas ──

class LoginRequest(BaseModel):
    email: str = Field(default="", description="Account email")
    password: str = Field(default="", description="Account password")


class MagicLinkRequest(BaseModel):
    email: str = Field(default="", description="Account email")


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    bus_id: Optional[int] = None
    created_at: Optional[str] = None
    last_login: Optional[str] = None


class LoginResponse(BaseModel):
    api_key: str
    user: UserResponse
    message: str


# ── Roster Schemas ──

class AssignRequest(BaseModel):
    bus_id: int = Field(..., gt=0, description="Target bus id")


class RemoveRequest(BaseModel):
    """The bus the caller believes the participant is on."""
    bus_id: int = Field(..., gt=0, description="Bus to remove the participant from")


class ParticipantResponse(BaseModel):
    id: str
    first_name: str
    last_name: str
    ticket_id: str
    bus_id: Optional[int] = None
    assigned_at: Optional[str] = None
    assigned_by: Optional[str] = None


class AssignmentResponse(BaseModel):
    participant: ParticipantResponse
    previous_bus_id: Optional[int] = None
    changed: bool
    over_capacity: bool = False


class BusResponse(BaseModel):
    id: int
    name: str
    capacity: int


class BusCapacityResponse(BaseModel):
    id: int
    name: str
    used: int
    capacity: int


# ── Controller Management Schemas ──

class ControllerCreateRequest(BaseModel):
    name: str = Field(default="", max_length=255)
    email: str = Field(default="", max_length=255)
    password: str = Field(default="")
    bus_id: Optional[int] = Field(default=None, description="Bus the controller manages")


class ControllerUpdateRequest(BaseModel):
    """Partial update model for PATCH /api/v1/controllers/{id}."""
    name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    bus_id: Optional[int] = None


# ── Settings Schemas ──

class SettingsUpdateRequest(BaseModel):
    sheet_url: Optional[str] = Field(default=None, description="Spreadsheet URL, empty to clear")
    auto_sync: Optional[bool] = None
    sync_interval_minutes: Optional[int] = Field(default=None, description="Minutes between syncs")
    notify_controllers: Optional[bool] = None


class SettingsResponse(BaseModel):
    sheet_url: str
    sheet_id: Optional[str] = None
    auto_sync: bool
    sync_interval_minutes: int
    notify_controllers: bool
