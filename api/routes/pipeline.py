"""Kanban pipeline: contacts grouped by life stage, drag-to-move."""
import logging

from fastapi import APIRouter
from sqlalchemy.exc import SQLAlchemyError

import db.repositories.contacts as contacts_repo
from api.dependencies import CurrentProfile, SessionDep, error
from db.models import LIFE_STAGES
from db.serialize import to_dict
from schemas.contact import PipelineMove
from services.access import contact_scope
from services.activities import InvalidStage, log_activity
from services.importer import normalize_life_stage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def board(session: SessionDep, profile: CurrentProfile):
    """Visible contacts bucketed by stage; contacts without a stage sit in subscriber."""
    scope = await contact_scope(session, profile)
    contacts = await contacts_repo.list_for_pipeline(session, scope)
    columns = {stage: [] for stage in LIFE_STAGES}
    for contact in contacts:
        stage = normalize_life_stage(contact.life_stage) or "subscriber"
        columns[stage].append(to_dict(contact))
    return {
        "stages": [
            {"stage": stage, "count": len(items), "contacts": items}
            for stage, items in columns.items()
        ],
        "total": len(contacts),
    }


@router.post("/move")
async def move(body: PipelineMove, session: SessionDep, profile: CurrentProfile):
    contact = await contacts_repo.get(session, body.contact_id)
    if contact is None:
        return error(404, "Contact not found")
    scope = await contact_scope(session, profile)
    if scope is not None and contact.assigned_to not in scope:
        return error(404, "Contact not found")

    previous = normalize_life_stage(contact.life_stage) or "subscriber"
    try:
        await log_activity(
            session, profile.id, "pipeline_moved", str(contact.id), "contact",
            {"from": previous, "to": body.to, "name": contact.name},
        )
        await session.commit()
    except InvalidStage as exc:
        await session.rollback()
        return error(400, str(exc))
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Pipeline move failed for %s: %s", contact.id, exc)
        return error(500, "Failed to move contact")
    return {"success": True, "from": previous, "to": normalize_life_stage(body.to)}
