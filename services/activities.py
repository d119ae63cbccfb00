"""Activity logging shared by the activity endpoint and the write handlers."""
import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

import db.repositories.activity as activity_repo
import db.repositories.contacts as contacts_repo
from db.models import ActivityLog
from services.importer import normalize_life_stage

logger = logging.getLogger(__name__)

STAGE_ACTIONS = ("life_stage_changed", "pipeline_moved")


class InvalidStage(ValueError):
    """detail.to names a life stage that does not exist."""


async def log_activity(
    session: AsyncSession,
    user_id: Optional[UUID],
    action_type: str,
    target_id: Optional[str] = None,
    target_type: Optional[str] = None,
    detail: Optional[dict[str, Any]] = None,
) -> ActivityLog:
    """Record a user action and apply its side effects on the target contact.

    For contact targets the contact's last_updated_by is set to the user;
    stage-changing actions with detail['to'] also move the contact's
    life_stage. The activity_log row is written last.

    Raises:
        InvalidStage: a stage-changing action names an unknown stage.
    """
    if target_type == "contact" and target_id:
        contact_id = UUID(str(target_id))
        if user_id is not None:
            await contacts_repo.touch_last_updated_by(session, contact_id, user_id)
        to_stage = (detail or {}).get("to")
        if action_type in STAGE_ACTIONS and to_stage:
            stage = normalize_life_stage(to_stage)
            if stage is None:
                raise InvalidStage(f"Unknown life stage: {to_stage}")
            await contacts_repo.set_life_stage(session, contact_id, stage)

    entry = await activity_repo.record(
        session,
        user_id=user_id,
        action_type=action_type,
        target_id=target_id,
        target_type=target_type,
        detail=detail,
    )
    logger.info("Logged %s on %s %s by %s", action_type, target_type, target_id, user_id)
    return entry
