"""Bilingual dropdown options (industry, company size, data source)."""
import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError

import db.repositories.app_config as config_repo
from api.dependencies import CurrentProfile, SessionDep, error
from db.models import Profile
from db.serialize import to_dict
from schemas.config import ConfigOptionCreate, ConfigOptionUpdate, ConfigType
from services.access import PermissionDenied

logger = logging.getLogger(__name__)

router = APIRouter()


async def admin_only(profile: CurrentProfile) -> Profile:
    if profile.role != "admin":
        logger.warning("Config change denied for user %s (role=%s)", profile.id, profile.role)
        raise PermissionDenied("Only admins can change options")
    return profile


Admin = Annotated[Profile, Depends(admin_only)]


@router.get("")
async def list_options(
    session: SessionDep,
    profile: CurrentProfile,
    type: Optional[ConfigType] = None,
    include_inactive: bool = False,
):
    """Options grouped by type, each ordered by sort_order."""
    rows = await config_repo.list_options(session, type, include_inactive=include_inactive)
    grouped: dict[str, list] = {}
    for row in rows:
        grouped.setdefault(row.type, []).append(to_dict(row))
    return grouped


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_option(body: ConfigOptionCreate, session: SessionDep, profile: Admin):
    try:
        option = await config_repo.create_option(session, body.model_dump())
        await session.commit()
    except IntegrityError:
        await session.rollback()
        return error(409, f"Option '{body.value}' already exists for {body.type}")
    return to_dict(option)


@router.put("/{option_id}")
async def update_option(
    option_id: UUID, body: ConfigOptionUpdate, session: SessionDep, profile: Admin
):
    values = body.model_dump(exclude_unset=True)
    if not values:
        return error(400, "Nothing to update")
    try:
        option = await config_repo.update_option(session, option_id, values)
        if option is None:
            await session.rollback()
            return error(404, "Option not found")
        await session.commit()
    except IntegrityError:
        await session.rollback()
        return error(409, "Option already exists")
    return to_dict(option)


@router.delete("/{option_id}")
async def delete_option(option_id: UUID, session: SessionDep, profile: Admin):
    if not await config_repo.delete_option(session, option_id):
        return error(404, "Option not found")
    await session.commit()
    return {"success": True}
