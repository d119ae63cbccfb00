"""Notification center: list, counters, read state and per-type settings."""
import logging
from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter

import db.repositories.notifications as notifications_repo
from api.dependencies import CurrentProfile, SessionDep, error
from db.serialize import to_dict
from schemas.notification import NotificationSettingUpdate
from settings import crm_timezone

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_notifications(
    session: SessionDep,
    profile: CurrentProfile,
    status: Optional[Literal["read", "unread"]] = None,
    type: Optional[str] = None,
    priority: Optional[str] = None,
    limit: int = notifications_repo.LIST_LIMIT,
):
    rows = await notifications_repo.list_for_user(
        session, profile.id, status=status, type_=type, priority=priority, limit=limit
    )
    return [to_dict(n) for n in rows]


@router.get("/stats")
async def notification_stats(session: SessionDep, profile: CurrentProfile):
    """total, unread, highPriority and today (since local midnight)."""
    day_start = datetime.now(crm_timezone()).replace(hour=0, minute=0, second=0, microsecond=0)
    return await notifications_repo.stats(session, profile.id, day_start)


@router.post("/read-all")
async def read_all(session: SessionDep, profile: CurrentProfile):
    updated = await notifications_repo.mark_all_read(session, profile.id)
    await session.commit()
    return {"success": True, "updated": updated}


@router.post("/{notification_id}/read")
async def read_one(notification_id: UUID, session: SessionDep, profile: CurrentProfile):
    if not await notifications_repo.mark_read(session, profile.id, notification_id):
        return error(404, "Notification not found")
    await session.commit()
    return {"success": True}


@router.get("/settings")
async def get_settings(session: SessionDep, profile: CurrentProfile):
    rows = await notifications_repo.settings_for_user(session, profile.id)
    return {row.type: row.enabled for row in rows}


@router.put("/settings")
async def put_setting(
    body: NotificationSettingUpdate, session: SessionDep, profile: CurrentProfile
):
    setting = await notifications_repo.upsert_setting(session, profile.id, body.type, body.enabled)
    await session.commit()
    logger.info("User %s set %s notifications to %s", profile.id, body.type, body.enabled)
    return {"type": setting.type, "enabled": setting.enabled}
