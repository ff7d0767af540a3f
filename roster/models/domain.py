# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models — pure data structures, NO FastAPI dependency.

A participant's assignment is a single optional value: ``None`` means
unassigned, an ``Assignment`` carries bus, timestamp, and actor together.
The three flat fields exposed to clients are derived from it, so they are
always set and cleared as a group.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class Role(str, Enum):
    ADMIN = "admin"
    CONTROLLER = "controller"


class Assignment(BaseModel):
    """Participant is on ``bus_id`` since ``assigned_at``, placed by ``assigned_by``."""

    model_config = ConfigDict(frozen=True)

    bus_id: int = Field(..., gt=0)
    assigned_at: datetime
    assigned_by: str = Field(..., min_length=1)


class Participant(BaseModel):
    """A ticket holder eligible for assignment to a bus. Immutable."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    first_name: str = ""
    last_name: str = ""
    ticket_id: str = ""
    assignment: Optional[Assignment] = None

    @property
    def bus_id(self) -> Optional[int]:
        return self.assignment.bus_id if self.assignment else None

    @property
    def assigned_at(self) -> Optional[datetime]:
        return self.assignment.assigned_at if self.assignment else None

    @property
    def assigned_by(self) -> Optional[str]:
        return self.assignment.assigned_by if self.assignment else None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def assigned_to(self, bus_id: int, at: datetime, by: str) -> "Participant":
        return self.model_copy(
            update={"assignment": Assignment(bus_id=bus_id, assigned_at=at, assigned_by=by)}
        )

    def unassigned(self) -> "Participant":
        return self.model_copy(update={"assignment": None})

    def to_dict(self) -> dict[str, Any]:
        """Flat wire representation."""
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "ticket_id": self.ticket_id,
            "bus_id": self.bus_id,
            "assigned_at": self.assigned_at.isoformat() if self.assigned_at else None,
            "assigned_by": self.assigned_by,
        }


class Bus(BaseModel):
    """A fixed-capacity bus. The set of buses is fixed for the process lifetime."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., gt=0)
    name: str = Field(..., min_length=1)
    capacity: int = Field(..., ge=0)


class Identity(BaseModel):
    """The acting user, as supplied by the identity provider."""

    model_config = ConfigDict(frozen=True)

    display_name: str = Field(..., min_length=1)
    role: Role
    bus_id: Optional[int] = None
    user_id: Optional[str] = None

    @model_validator(mode="after")
    def controller_needs_bus(self) -> "Identity":
        if self.role == Role.CONTROLLER and self.bus_id is None:
            raise ValueError("A controller identity must be bound to a bus")
        return self

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
