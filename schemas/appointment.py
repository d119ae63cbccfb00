"""Calendar appointment schemas."""
from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


AppointmentStatus = Literal["scheduled", "completed", "cancelled"]


class AppointmentCreate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    type: str = "meeting"
    scheduled_at: datetime  # naive values are local CRM time
    duration_minutes: int = Field(default=30, ge=1)
    location: Optional[str] = None
    status: AppointmentStatus = "scheduled"
    contact_id: Optional[UUID] = None
    attendees: List[str] = Field(default_factory=list)


class AppointmentUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    type: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(default=None, ge=1)
    location: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    contact_id: Optional[UUID] = None
    attendees: Optional[List[str]] = None
