"""Appointment repository: calendar CRUD and reminder time-window queries."""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import Interval, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Appointment

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 30


def _ends_at():
    """SQL end time of an appointment; a missing duration counts as the default."""
    minutes = func.coalesce(Appointment.duration_minutes, DEFAULT_DURATION_MINUTES)
    return Appointment.scheduled_at + func.make_interval(0, 0, 0, 0, 0, minutes, type_=Interval)


async def get(session: AsyncSession, appointment_id: UUID) -> Optional[Appointment]:
    """Return the Appointment with this id, or None."""
    result = await session.execute(
        select(Appointment).where(Appointment.id == appointment_id)
    )
    return result.scalar_one_or_none()


async def list_between(
    session: AsyncSession,
    start: datetime,
    end: datetime,
    created_by: Optional[UUID] = None,
) -> list[Appointment]:
    """Appointments scheduled in [start, end), optionally for one owner."""
    stmt = (
        select(Appointment)
        .where(Appointment.scheduled_at >= start)
        .where(Appointment.scheduled_at < end)
    )
    if created_by is not None:
        stmt = stmt.where(Appointment.created_by == created_by)
    result = await session.execute(stmt.order_by(Appointment.scheduled_at))
    return list(result.scalars().all())


async def owner_candidates(
    session: AsyncSession,
    created_by: UUID,
    start: datetime,
    end: datetime,
    exclude_id: Optional[UUID] = None,
) -> list[Appointment]:
    """Owner's scheduled appointments that could overlap [start, end).

    The caller decides actual overlap using each row's duration.
    """
    stmt = (
        select(Appointment)
        .where(Appointment.created_by == created_by)
        .where(Appointment.status == "scheduled")
        .where(Appointment.scheduled_at < end)
        .where(_ends_at() > start)
    )
    if exclude_id is not None:
        stmt = stmt.where(Appointment.id != exclude_id)
    result = await session.execute(stmt.order_by(Appointment.scheduled_at))
    return list(result.scalars().all())


async def create(session: AsyncSession, data: dict) -> Appointment:
    """Insert an appointment.

    data dict keys: title, description, type, scheduled_at,
    duration_minutes, location, status, contact_id, created_by, attendees
    """
    appointment = Appointment(**data)
    session.add(appointment)
    await session.flush()
    return appointment


async def update_fields(
    session: AsyncSession, appointment_id: UUID, values: dict
) -> Optional[Appointment]:
    result = await session.execute(
        update(Appointment)
        .where(Appointment.id == appointment_id)
        .values(**values, updated_at=func.now())
        .returning(Appointment)
    )
    await session.flush()
    return result.scalar_one_or_none()


async def delete_appointment(session: AsyncSession, appointment_id: UUID) -> bool:
    result = await session.execute(
        delete(Appointment).where(Appointment.id == appointment_id)
    )
    await session.flush()
    return result.rowcount > 0


async def in_window(
    session: AsyncSession, start: datetime, end: datetime
) -> list[Appointment]:
    """Scheduled appointments with scheduled_at in [start, end]."""
    result = await session.execute(
        select(Appointment)
        .where(Appointment.status == "scheduled")
        .where(Appointment.scheduled_at >= start)
        .where(Appointment.scheduled_at <= end)
    )
    return list(result.scalars().all())


async def created_recently_in_window(
    session: AsyncSession, start: datetime, end: datetime, created_since: datetime
) -> list[Appointment]:
    """Scheduled appointments in [start, end] that were created at or after created_since."""
    result = await session.execute(
        select(Appointment)
        .where(Appointment.status == "scheduled")
        .where(Appointment.scheduled_at >= start)
        .where(Appointment.scheduled_at <= end)
        .where(Appointment.created_at >= created_since)
    )
    return list(result.scalars().all())


async def dashboard_rows(
    session: AsyncSession,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> list:
    """Lightweight rows (scheduled_at, type, status) for stats."""
    stmt = select(Appointment.scheduled_at, Appointment.type, Appointment.status)
    if date_from is not None:
        stmt = stmt.where(Appointment.scheduled_at >= date_from)
    if date_to is not None:
        stmt = stmt.where(Appointment.scheduled_at <= date_to)
    result = await session.execute(stmt)
    return list(result.all())
