"""Contact history repository: calls, emails, meetings and tasks on a contact."""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import ContactHistory, Profile

logger = logging.getLogger(__name__)


async def list_for_contact(session: AsyncSession, contact_id: UUID) -> list[dict]:
    """Return the contact's history newest first, each with the author's name."""
    result = await session.execute(
        select(ContactHistory, Profile.full_name)
        .outerjoin(Profile, Profile.id == ContactHistory.created_by)
        .where(ContactHistory.contact_id == contact_id)
        .order_by(ContactHistory.created_at.desc())
    )
    return [{"entry": entry, "author_name": author} for entry, author in result.all()]


async def add(session: AsyncSession, data: dict) -> ContactHistory:
    """Insert a history entry.

    data dict keys: contact_id, type, content, action_time,
    duration_minutes, location, due_date, created_by
    """
    entry = ContactHistory(**data)
    session.add(entry)
    await session.flush()
    return entry


async def get(session: AsyncSession, history_id: UUID) -> Optional[ContactHistory]:
    result = await session.execute(
        select(ContactHistory).where(ContactHistory.id == history_id)
    )
    return result.scalar_one_or_none()


async def delete_entry(session: AsyncSession, history_id: UUID) -> bool:
    result = await session.execute(
        delete(ContactHistory).where(ContactHistory.id == history_id)
    )
    await session.flush()
    return result.rowcount > 0


async def latest_action_times(
    session: AsyncSession, contact_ids: list[UUID]
) -> dict[UUID, datetime]:
    """Map each contact id to the action_time of its most recent history entry."""
    if not contact_ids:
        return {}
    result = await session.execute(
        select(ContactHistory.contact_id, func.max(ContactHistory.action_time))
        .where(ContactHistory.contact_id.in_(contact_ids))
        .where(ContactHistory.action_time.isnot(None))
        .group_by(ContactHistory.contact_id)
    )
    return {contact_id: latest for contact_id, latest in result.all()}
