"""Contact, history, pipeline and import schemas."""
from datetime import datetime
from typing import Any, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


HistoryType = Literal["call", "email", "meeting", "warranty", "repair", "task"]


class ContactFields(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    zalo: Optional[str] = None
    company: Optional[str] = None
    company_size: Optional[str] = None
    industry: Optional[str] = None
    data_source: Optional[str] = None
    life_stage: Optional[str] = None
    assigned_to: Optional[UUID] = None
    next_appointment_at: Optional[datetime] = None
    notes: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    address: Optional[str] = None
    position: Optional[str] = None


class ContactCreate(ContactFields):
    name: str = Field(min_length=1)


class ContactUpdate(ContactFields):
    name: Optional[str] = Field(default=None, min_length=1)
    tags: Optional[List[str]] = None


class HistoryCreate(BaseModel):
    type: HistoryType
    content: Optional[str] = None
    action_time: Optional[datetime] = None  # naive values are local CRM time
    duration_minutes: Optional[int] = Field(default=None, ge=1)
    location: Optional[str] = None
    due_date: Optional[datetime] = None


class PipelineMove(BaseModel):
    contact_id: UUID
    to: str


class ImportContactsRequest(BaseModel):
    contacts: List[dict[str, Any]]


class ImportContactsResult(BaseModel):
    success: bool
    inserted: int
    skipped: int
    duplicates: List[dict[str, Any]]
    invalid: int = 0
