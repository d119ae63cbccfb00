"""User administration and own-profile schemas."""
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


Role = Literal["admin", "manager", "sales"]


def _lower(value):
    return value.strip().lower() if isinstance(value, str) else value


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    phone: Optional[str] = None
    role: Role = "sales"
    status: Literal["active", "inactive"] = "active"
    password: Optional[str] = None  # generated when shorter than 6 chars
    manager_id: Optional[UUID] = None

    normalize_choices = field_validator("role", "status", mode="before")(_lower)


class UserUpdate(BaseModel):
    id: Optional[UUID] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[Role] = None
    status: Optional[Literal["active", "inactive"]] = None
    manager_id: Optional[UUID] = None
    password: Optional[str] = None

    normalize_choices = field_validator("role", "status", mode="before")(_lower)


class UserDelete(BaseModel):
    id: Optional[UUID] = None


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None


class PasswordChange(BaseModel):
    password: str = Field(min_length=6)
    confirm_password: str


class FcmTokenUpdate(BaseModel):
    token: Optional[str] = None  # None unsubscribes this browser
