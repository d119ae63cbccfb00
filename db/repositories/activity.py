"""Activity log repository: append-only audit trail and filtered listing."""
import logging
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import Text, and_, cast, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import ActivityLog, Contact, Profile

logger = logging.getLogger(__name__)

LIST_LIMIT = 200


async def record(
    session: AsyncSession,
    user_id: Optional[UUID],
    action_type: str,
    target_id: Optional[str] = None,
    target_type: Optional[str] = None,
    detail: Optional[dict[str, Any]] = None,
) -> ActivityLog:
    """Append one activity_log row."""
    entry = ActivityLog(
        user_id=user_id,
        action_type=action_type,
        target_id=str(target_id) if target_id is not None else None,
        target_type=target_type,
        detail=detail,
    )
    session.add(entry)
    await session.flush()
    return entry


async def list_entries(
    session: AsyncSession,
    search: Optional[str] = None,
    action_type: Optional[str] = None,
    user_id: Optional[UUID] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    limit: int = LIST_LIMIT,
) -> list[dict]:
    """Return recent activity newest first, with user and contact names.

    search matches the user's name, the contact's name, or the action type.
    """
    stmt = (
        select(ActivityLog, Profile.full_name, Contact.name)
        .outerjoin(Profile, Profile.id == ActivityLog.user_id)
        .outerjoin(
            Contact,
            and_(
                ActivityLog.target_type == "contact",
                cast(Contact.id, Text) == ActivityLog.target_id,
            ),
        )
    )
    if action_type:
        stmt = stmt.where(ActivityLog.action_type == action_type)
    if user_id is not None:
        stmt = stmt.where(ActivityLog.user_id == user_id)
    if date_from is not None:
        stmt = stmt.where(ActivityLog.created_at >= date_from)
    if date_to is not None:
        stmt = stmt.where(ActivityLog.created_at <= date_to)
    if search:
        pattern = f"%{search.strip()}%"
        stmt = stmt.where(
            or_(
                Profile.full_name.ilike(pattern),
                Contact.name.ilike(pattern),
                ActivityLog.action_type.ilike(pattern),
            )
        )
    result = await session.execute(
        stmt.order_by(ActivityLog.created_at.desc()).limit(limit)
    )
    return [
        {"entry": entry, "user_name": user_name, "contact_name": contact_name}
        for entry, user_name, contact_name in result.all()
    ]
