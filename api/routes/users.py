"""User administration: auth account plus profile row, kept in step."""
import logging
import secrets
import string
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

import db.repositories.profiles as profiles_repo
from api.dependencies import SessionDep, error, permission
from db.models import Profile
from db.serialize import to_dict
from schemas.user import UserCreate, UserDelete, UserUpdate
from services.access import default_permissions
from services.activities import log_activity
from tools.supabase_auth_tools import create_auth_user, delete_auth_user, update_auth_password

logger = logging.getLogger(__name__)

router = APIRouter()

MIN_PASSWORD_LENGTH = 6
_PASSWORD_ALPHABET = string.ascii_letters + string.digits


def _random_password(length: int = 8) -> str:
    return "".join(secrets.choice(_PASSWORD_ALPHABET) for _ in range(length))


@router.get("")
async def list_users(
    session: SessionDep,
    caller: Annotated[Profile, Depends(permission("users", "view"))],
):
    """All profiles with the default permission matrix of their role."""
    profiles = await profiles_repo.list_all(session)
    return [
        {**to_dict(p, exclude=("fcm_token",)), "permissions": default_permissions(p.role)}
        for p in profiles
    ]


@router.post("/create")
async def create_user(
    body: UserCreate,
    session: SessionDep,
    caller: Annotated[Profile, Depends(permission("users", "edit"))],
):
    """Create the auth account, then its profile row."""
    if await profiles_repo.find_by_email_or_phone(session, body.email, body.phone):
        return error(409, "Email or phone already exists")

    password = body.password if body.password and len(body.password) >= MIN_PASSWORD_LENGTH else _random_password()
    auth = await run_in_threadpool(create_auth_user, body.email, password)
    if not auth.get("id"):
        logger.warning("Auth user creation failed for %s: %s", body.email, auth.get("error"))
        return error(400, "Failed to create Auth user!", detail=auth.get("error"))
    uid = auth["id"]

    try:
        await profiles_repo.create(session, {
            "id": uid,
            "full_name": body.name,
            "phone": body.phone,
            "role": body.role,
            "status": body.status,
            "email": body.email,
            "manager_id": body.manager_id,
        })
        await log_activity(
            session, caller.id, "user_created", uid, "user",
            {"email": body.email, "role": body.role},
        )
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Profile insert failed for auth user %s: %s", uid, exc)
        return error(400, "Failed to save profile!", detail=str(exc))

    return {"success": True, "uid": uid}


@router.post("/update")
async def update_user(
    body: UserUpdate,
    session: SessionDep,
    caller: Annotated[Profile, Depends(permission("users", "edit"))],
):
    """Update profile columns that were sent; change the password when one of 6+ chars is given."""
    if body.id is None:
        return error(400, "Missing user ID")

    provided = body.model_fields_set
    column_map = {
        "name": "full_name",
        "email": "email",
        "phone": "phone",
        "role": "role",
        "status": "status",
        "manager_id": "manager_id",
    }
    values = {
        column: getattr(body, field)
        for field, column in column_map.items()
        if field in provided and (getattr(body, field) is not None or field == "manager_id")
    }
    try:
        profile = await profiles_repo.update_fields(session, body.id, values)
        if profile is None:
            await session.rollback()
            return error(400, "Failed to update profile!", detail="User not found")
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Profile update failed for %s: %s", body.id, exc)
        return error(400, "Failed to update profile!", detail=str(exc))

    if body.password and len(body.password) >= MIN_PASSWORD_LENGTH:
        result = await run_in_threadpool(update_auth_password, str(body.id), body.password)
        if not result.get("updated"):
            logger.warning("Password update failed for %s: %s", body.id, result.get("error"))
            return error(400, "Failed to update password!", detail=result.get("error"))

    await log_activity(
        session, caller.id, "user_updated", str(body.id), "user",
        {"fields": sorted(values)},
    )
    await session.commit()
    return {"success": True}


@router.post("/delete")
async def delete_user(
    body: UserDelete,
    session: SessionDep,
    caller: Annotated[Profile, Depends(permission("users", "delete"))],
):
    """Delete the auth account, then the profile row."""
    if body.id is None:
        return error(400, "Missing user id")

    result = await run_in_threadpool(delete_auth_user, str(body.id))
    if not result.get("deleted"):
        logger.warning("Auth user deletion failed for %s: %s", body.id, result.get("error"))
        return error(400, "Failed to delete Auth user!", detail=result.get("error"))

    try:
        deleted = await profiles_repo.delete_profile(session, body.id)
        if not deleted:
            await session.rollback()
            return error(400, "Failed to delete profile!", detail="Profile not found")
        await log_activity(session, caller.id, "user_deleted", str(body.id), "user")
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.error("Profile delete failed for %s: %s", body.id, exc)
        return error(400, "Failed to delete profile!", detail=str(exc))

    return {"success": True}
