"""Profile repository: user records, manager hierarchy, and push tokens."""
import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Appointment, Contact, Profile

logger = logging.getLogger(__name__)


async def get(session: AsyncSession, profile_id: UUID) -> Optional[Profile]:
    """Return the Profile with this id, or None."""
    result = await session.execute(select(Profile).where(Profile.id == profile_id))
    return result.scalar_one_or_none()


async def list_all(session: AsyncSession) -> list[Profile]:
    """Return every profile ordered by name."""
    result = await session.execute(
        select(Profile).order_by(Profile.full_name.asc().nulls_last())
    )
    return list(result.scalars().all())


async def find_by_email_or_phone(
    session: AsyncSession,
    email: Optional[str],
    phone: Optional[str],
    exclude_id: Optional[UUID] = None,
) -> Optional[Profile]:
    """Return a profile already using this email or phone, or None."""
    clauses = []
    if email:
        clauses.append(func.lower(Profile.email) == email.lower().strip())
    if phone:
        clauses.append(Profile.phone == phone.strip())
    if not clauses:
        return None
    stmt = select(Profile).where(or_(*clauses))
    if exclude_id is not None:
        stmt = stmt.where(Profile.id != exclude_id)
    result = await session.execute(stmt.limit(1))
    return result.scalar_one_or_none()


async def create(session: AsyncSession, data: dict) -> Profile:
    """Insert a profile row.

    data dict keys: id (auth user id), full_name, email, phone, role,
    status, manager_id
    """
    profile = Profile(**data)
    session.add(profile)
    await session.flush()
    return profile


async def update_fields(
    session: AsyncSession, profile_id: UUID, values: dict
) -> Optional[Profile]:
    """Update the given columns and return the profile, or None if unknown."""
    result = await session.execute(
        update(Profile)
        .where(Profile.id == profile_id)
        .values(**values, updated_at=func.now())
        .returning(Profile)
    )
    await session.flush()
    return result.scalar_one_or_none()


async def delete_profile(session: AsyncSession, profile_id: UUID) -> bool:
    """Delete a profile. Returns False when no row matched."""
    result = await session.execute(delete(Profile).where(Profile.id == profile_id))
    await session.flush()
    return result.rowcount > 0


async def managed_sales_ids(session: AsyncSession, manager_id: UUID) -> list[UUID]:
    """Return ids of the sales users reporting to this manager."""
    result = await session.execute(
        select(Profile.id)
        .where(Profile.manager_id == manager_id)
        .where(Profile.role == "sales")
    )
    return [row[0] for row in result.all()]


async def names_by_id(session: AsyncSession, ids: list[UUID]) -> dict[UUID, str]:
    """Map profile ids to display names (falls back to email)."""
    if not ids:
        return {}
    result = await session.execute(
        select(Profile.id, Profile.full_name, Profile.email).where(Profile.id.in_(ids))
    )
    return {row.id: row.full_name or row.email or "" for row in result.all()}


async def set_fcm_token(
    session: AsyncSession, profile_id: UUID, token: Optional[str]
) -> Optional[Profile]:
    return await update_fields(session, profile_id, {"fcm_token": token})


async def clear_fcm_token(session: AsyncSession, profile_id: UUID, token: str) -> None:
    """Clear a push token that the messaging service reported as unregistered.

    Only clears the column when it still holds the stale token, so a token
    refreshed in the meantime is left alone.
    """
    await session.execute(
        update(Profile)
        .where(Profile.id == profile_id)
        .where(Profile.fcm_token == token)
        .values(fcm_token=None)
    )
    await session.flush()


async def set_avatar_url(
    session: AsyncSession, profile_id: UUID, avatar_url: str
) -> Optional[Profile]:
    return await update_fields(session, profile_id, {"avatar_url": avatar_url})


async def count_stats_for_user(
    session: AsyncSession,
    user_id: UUID,
    month_start: datetime,
    week_start: datetime,
) -> dict:
    """Per-user counters shown on the settings page.

    Returns:
        Dict with totalContacts, contactsThisMonth, appointmentsThisWeek,
        conversionRate (percent of own contacts that became customers).
    """
    total = await session.scalar(
        select(func.count()).select_from(Contact).where(Contact.created_by == user_id)
    )
    this_month = await session.scalar(
        select(func.count())
        .select_from(Contact)
        .where(Contact.created_by == user_id)
        .where(Contact.created_at >= month_start)
    )
    week_appointments = await session.scalar(
        select(func.count())
        .select_from(Appointment)
        .where(Appointment.created_by == user_id)
        .where(Appointment.created_at >= week_start)
        .where(Appointment.created_at < week_start + timedelta(days=7))
    )
    converted = await session.scalar(
        select(func.count())
        .select_from(Contact)
        .where(Contact.created_by == user_id)
        .where(func.lower(Contact.life_stage) == "customer")
    )
    total = total or 0
    return {
        "totalContacts": total,
        "contactsThisMonth": this_month or 0,
        "appointmentsThisWeek": week_appointments or 0,
        "conversionRate": round((converted or 0) / total * 100, 1) if total else 0,
    }
