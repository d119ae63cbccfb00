"""Calendar: month view and appointment CRUD with overlap checks."""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, status

import db.repositories.appointments as appointments_repo
from api.dependencies import CurrentProfile, SessionDep, error
from db.models import Appointment, Profile
from db.serialize import to_dict
from schemas.appointment import AppointmentCreate, AppointmentUpdate
from services.activities import log_activity
from services.scheduling import find_conflicts, month_range, month_summary, to_utc
from settings import crm_timezone

logger = logging.getLogger(__name__)

router = APIRouter()

CONFLICT_MESSAGE = "Bạn đã có lịch hẹn khác bị trùng trong khoảng thời gian này!"

REQUIRED_FIELDS = ("scheduled_at", "status", "attendees")


def _owns(profile: Profile, appointment: Appointment) -> bool:
    return profile.role == "admin" or appointment.created_by == profile.id


def _conflict_response(conflicts: list[Appointment]):
    return error(
        409,
        CONFLICT_MESSAGE,
        conflicts=[
            {
                "id": str(a.id),
                "title": a.title,
                "scheduled_at": a.scheduled_at.isoformat(),
                "duration_minutes": a.duration_minutes,
            }
            for a in conflicts
        ],
    )


@router.get("")
async def list_appointments(
    session: SessionDep, profile: CurrentProfile, month: Optional[str] = None
):
    """Appointments of a 'YYYY-MM' month (default: current month) plus header counts.

    Admins see every calendar, everyone else sees their own.
    """
    tz = crm_timezone()
    month = month or datetime.now(tz).strftime("%Y-%m")
    try:
        start, end = month_range(month, tz)
    except ValueError:
        return error(400, "month must be in YYYY-MM format")
    owner = None if profile.role == "admin" else profile.id
    appointments = await appointments_repo.list_between(session, start, end, created_by=owner)
    return {
        "month": month,
        "appointments": [to_dict(a) for a in appointments],
        "summary": month_summary(appointments),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_appointment(
    body: AppointmentCreate, session: SessionDep, profile: CurrentProfile
):
    scheduled_at = to_utc(body.scheduled_at, crm_timezone())
    if body.status == "scheduled":
        conflicts = await find_conflicts(session, profile.id, scheduled_at, body.duration_minutes)
        if conflicts:
            logger.info("Appointment for %s at %s conflicts with %d", profile.id, scheduled_at, len(conflicts))
            return _conflict_response(conflicts)

    appointment = await appointments_repo.create(session, {
        **body.model_dump(),
        "scheduled_at": scheduled_at,
        "attendees": body.attendees or [str(profile.id)],
        "created_by": profile.id,
    })
    await log_activity(
        session, profile.id, "appointment_created", str(appointment.id), "appointment",
        {"title": appointment.title, "scheduled_at": scheduled_at.isoformat()},
    )
    await session.commit()
    return to_dict(appointment)


@router.put("/{appointment_id}")
async def update_appointment(
    appointment_id: UUID,
    body: AppointmentUpdate,
    session: SessionDep,
    profile: CurrentProfile,
):
    """Update sent fields; moving or lengthening a scheduled slot is re-checked for overlaps."""
    current = await appointments_repo.get(session, appointment_id)
    if current is None or not _owns(profile, current):
        return error(404, "Appointment not found")

    values = {field: getattr(body, field) for field in body.model_fields_set}
    # NOT NULL columns: an explicit null leaves the stored value alone
    for field in REQUIRED_FIELDS:
        if values.get(field) is None:
            values.pop(field, None)
    if "scheduled_at" in values:
        values["scheduled_at"] = to_utc(values["scheduled_at"], crm_timezone())

    new_status = values.get("status") or current.status
    slot_changed = "scheduled_at" in values or "duration_minutes" in values or "status" in values
    if new_status == "scheduled" and slot_changed and current.created_by is not None:
        conflicts = await find_conflicts(
            session,
            current.created_by,
            values.get("scheduled_at", current.scheduled_at),
            values.get("duration_minutes") or current.duration_minutes,
            exclude_id=appointment_id,
        )
        if conflicts:
            return _conflict_response(conflicts)

    appointment = await appointments_repo.update_fields(session, appointment_id, values)
    await log_activity(
        session, profile.id, "appointment_updated", str(appointment_id), "appointment",
        {"fields": sorted(values)},
    )
    await session.commit()
    return to_dict(appointment)


@router.delete("/{appointment_id}")
async def delete_appointment(appointment_id: UUID, session: SessionDep, profile: CurrentProfile):
    current = await appointments_repo.get(session, appointment_id)
    if current is None or not _owns(profile, current):
        return error(404, "Appointment not found")
    await appointments_repo.delete_appointment(session, appointment_id)
    await log_activity(
        session, profile.id, "appointment_deleted", str(appointment_id), "appointment",
        {"title": current.title},
    )
    await session.commit()
    return {"success": True}
