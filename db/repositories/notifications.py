"""Notification repository: in-app notifications, reminder dedup, and settings."""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Notification, NotificationSetting

logger = logging.getLogger(__name__)

LIST_LIMIT = 10


async def list_for_user(
    session: AsyncSession,
    user_id: UUID,
    status: Optional[str] = None,
    type_: Optional[str] = None,
    priority: Optional[str] = None,
    limit: int = LIST_LIMIT,
) -> list[Notification]:
    """Return the user's notifications newest first.

    status is 'unread', 'read', or None for both.
    """
    stmt = select(Notification).where(Notification.user_id == user_id)
    if status == "unread":
        stmt = stmt.where(Notification.is_read == False)
    elif status == "read":
        stmt = stmt.where(Notification.is_read == True)
    if type_:
        stmt = stmt.where(Notification.type == type_)
    if priority:
        stmt = stmt.where(Notification.priority == priority)
    result = await session.execute(
        stmt.order_by(Notification.created_at.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def stats(session: AsyncSession, user_id: UUID, day_start: datetime) -> dict:
    """Counters for the notification center header."""
    mine = select(func.count()).select_from(Notification).where(Notification.user_id == user_id)
    total = await session.scalar(mine)
    unread = await session.scalar(mine.where(Notification.is_read == False))
    high = await session.scalar(mine.where(Notification.priority == "high"))
    today = await session.scalar(mine.where(Notification.created_at >= day_start))
    return {
        "total": total or 0,
        "unread": unread or 0,
        "highPriority": high or 0,
        "today": today or 0,
    }


async def mark_read(session: AsyncSession, user_id: UUID, notification_id: UUID) -> bool:
    """Mark one of the user's notifications read. Returns False if not found."""
    result = await session.execute(
        update(Notification)
        .where(Notification.id == notification_id)
        .where(Notification.user_id == user_id)
        .values(is_read=True)
    )
    await session.flush()
    return result.rowcount > 0


async def mark_all_read(session: AsyncSession, user_id: UUID) -> int:
    """Mark every unread notification of the user read. Returns rows changed."""
    result = await session.execute(
        update(Notification)
        .where(Notification.user_id == user_id)
        .where(Notification.is_read == False)
        .values(is_read=True)
    )
    await session.flush()
    return result.rowcount


async def already_sent(
    session: AsyncSession, user_id: UUID, type_: str, reference_id: str
) -> bool:
    """Return True if a notification with this (user, type, reference) exists."""
    result = await session.execute(
        select(Notification.id)
        .where(Notification.user_id == user_id)
        .where(Notification.type == type_)
        .where(Notification.reference_id == reference_id)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def record_once(session: AsyncSession, data: dict) -> bool:
    """Insert a notification unless (user_id, type, reference_id) already exists.

    Idempotent, safe to call twice. Returns True when a row was inserted.

    data dict keys: user_id, type, title, message, link, payload, priority,
    actor_id, contact_id, contact_name, reference_id, reminder_stage
    """
    stmt = (
        pg_insert(Notification)
        .values(**data)
        .on_conflict_do_nothing(index_elements=["user_id", "type", "reference_id"])
        .returning(Notification.id)
    )
    result = await session.execute(stmt)
    await session.flush()
    return result.scalar_one_or_none() is not None


async def settings_for_user(session: AsyncSession, user_id: UUID) -> list[NotificationSetting]:
    result = await session.execute(
        select(NotificationSetting)
        .where(NotificationSetting.user_id == user_id)
        .order_by(NotificationSetting.type)
    )
    return list(result.scalars().all())


async def upsert_setting(
    session: AsyncSession, user_id: UUID, type_: str, enabled: bool
) -> NotificationSetting:
    """Create or update the user's on/off switch for a notification type."""
    stmt = (
        pg_insert(NotificationSetting)
        .values(user_id=user_id, type=type_, enabled=enabled)
        .on_conflict_do_update(
            index_elements=["user_id", "type"],
            set_={"enabled": enabled},
        )
        .returning(NotificationSetting)
    )
    result = await session.execute(stmt, execution_options={"populate_existing": True})
    await session.flush()
    return result.scalar_one()
