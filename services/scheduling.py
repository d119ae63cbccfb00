"""Appointment time handling: timezone normalization, overlap detection, month views."""
import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Iterable, Optional
from uuid import UUID

from dateutil.relativedelta import relativedelta
from sqlalchemy.ext.asyncio import AsyncSession

import db.repositories.appointments as appointments_repo
from db.models import Appointment

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = appointments_repo.DEFAULT_DURATION_MINUTES


def to_utc(moment: datetime, tz: tzinfo) -> datetime:
    """Return an aware UTC datetime; naive values are read as local time in tz."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=tz)
    return moment.astimezone(timezone.utc)


def duration_of(minutes: Optional[int]) -> timedelta:
    return timedelta(minutes=minutes or DEFAULT_DURATION_MINUTES)


def overlaps(
    start_a: datetime, minutes_a: Optional[int], start_b: datetime, minutes_b: Optional[int]
) -> bool:
    """True when [start_a, end_a) and [start_b, end_b) intersect."""
    end_a = start_a + duration_of(minutes_a)
    end_b = start_b + duration_of(minutes_b)
    return start_a < end_b and start_b < end_a


async def find_conflicts(
    session: AsyncSession,
    owner_id: UUID,
    start: datetime,
    duration_minutes: Optional[int],
    exclude_id: Optional[UUID] = None,
) -> list[Appointment]:
    """Owner's scheduled appointments overlapping the proposed slot.

    exclude_id skips the appointment being edited.
    """
    end = start + duration_of(duration_minutes)
    candidates = await appointments_repo.owner_candidates(
        session, owner_id, start, end, exclude_id=exclude_id
    )
    return [
        a for a in candidates
        if overlaps(start, duration_minutes, a.scheduled_at, a.duration_minutes)
    ]


def month_range(month: str, tz: tzinfo) -> tuple[datetime, datetime]:
    """UTC [start, end) bounds of a 'YYYY-MM' month in local time.

    Raises:
        ValueError: month is not in YYYY-MM form.
    """
    start_local = datetime.strptime(month, "%Y-%m").replace(tzinfo=tz)
    end_local = start_local + relativedelta(months=1)
    return start_local.astimezone(timezone.utc), end_local.astimezone(timezone.utc)


def week_start(now: datetime) -> datetime:
    """Midnight of the most recent Sunday, in now's timezone."""
    days_since_sunday = (now.weekday() + 1) % 7
    start = now - timedelta(days=days_since_sunday)
    return start.replace(hour=0, minute=0, second=0, microsecond=0)


def month_summary(appointments: Iterable) -> dict:
    """Counts for the calendar header: meetings, calls, demos (presentations count as demos)."""
    rows = list(appointments)
    return {
        "total": len(rows),
        "meetings": sum(1 for a in rows if a.type == "meeting"),
        "calls": sum(1 for a in rows if a.type == "call"),
        "demos": sum(1 for a in rows if a.type in ("demo", "presentation")),
    }
