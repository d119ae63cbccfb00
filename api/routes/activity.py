"""Activity log: record actions, list them, export them as CSV."""
import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from fastapi import APIRouter
from fastapi.responses import Response
from sqlalchemy.exc import SQLAlchemyError

import db.repositories.activity as activity_repo
from api.dependencies import CurrentProfile, SessionDep, error
from db.serialize import to_dict
from schemas.activity import ActivityLogRequest
from services.activities import InvalidStage, log_activity
from services.exporter import activity_csv, export_filename
from settings import crm_timezone

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/log")
async def log(body: ActivityLogRequest, session: SessionDep, profile: CurrentProfile):
    """Record an action; contact targets also get last_updated_by / life_stage updates.

    user_id defaults to the caller when the body omits it.
    """
    try:
        await log_activity(
            session,
            user_id=body.user_id or profile.id,
            action_type=body.action_type,
            target_id=body.target_id,
            target_type=body.target_type,
            detail=body.detail,
        )
        await session.commit()
    except InvalidStage as exc:
        await session.rollback()
        return error(400, str(exc))
    except ValueError:
        await session.rollback()
        return error(400, "Invalid target_id")
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Activity log failed: %s", exc)
        return error(500, str(exc))
    return {"success": True}


async def _entries(session, search, action_type, user_id, date_from, date_to):
    tz = crm_timezone()
    return await activity_repo.list_entries(
        session,
        search=search,
        action_type=action_type,
        user_id=user_id,
        date_from=date_from.replace(tzinfo=date_from.tzinfo or tz) if date_from else None,
        date_to=date_to.replace(tzinfo=date_to.tzinfo or tz) if date_to else None,
    )


@router.get("")
async def list_activity(
    session: SessionDep,
    profile: CurrentProfile,
    search: Optional[str] = None,
    action_type: Optional[str] = None,
    user_id: Optional[UUID] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
):
    rows = await _entries(session, search, action_type, user_id, date_from, date_to)
    return [
        {**to_dict(r["entry"]), "user_name": r["user_name"], "contact_name": r["contact_name"]}
        for r in rows
    ]


@router.get("/export")
async def export_activity(
    session: SessionDep,
    profile: CurrentProfile,
    search: Optional[str] = None,
    action_type: Optional[str] = None,
    user_id: Optional[UUID] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
):
    rows = await _entries(session, search, action_type, user_id, date_from, date_to)
    filename = export_filename("activity_log", datetime.now(crm_timezone()).date())
    return Response(
        content=activity_csv(rows),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
