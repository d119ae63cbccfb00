"""The caller's own profile: details, password, avatar, push token, stats."""
import logging
import os
import time
from datetime import datetime

from fastapi import APIRouter, File, UploadFile
from starlette.concurrency import run_in_threadpool

import db.repositories.profiles as profiles_repo
from api.dependencies import CurrentProfile, SessionDep, error
from db.serialize import to_dict
from schemas.user import FcmTokenUpdate, PasswordChange, ProfileUpdate
from services.access import default_permissions
from services.dashboard import month_start
from services.scheduling import week_start
from settings import crm_timezone
from tools.storage_tools import upload_avatar
from tools.supabase_auth_tools import update_auth_password

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_AVATAR_BYTES = 1024 * 1024


@router.get("")
async def get_profile(profile: CurrentProfile):
    return {
        **to_dict(profile, exclude=("fcm_token",)),
        "permissions": default_permissions(profile.role),
    }


@router.put("")
async def update_profile(body: ProfileUpdate, session: SessionDep, profile: CurrentProfile):
    values = body.model_dump(exclude_unset=True)
    if not values:
        return error(400, "Nothing to update")
    updated = await profiles_repo.update_fields(session, profile.id, values)
    await session.commit()
    return to_dict(updated, exclude=("fcm_token",))


@router.post("/password")
async def change_password(body: PasswordChange, profile: CurrentProfile):
    if body.password != body.confirm_password:
        return error(400, "Passwords do not match")
    result = await run_in_threadpool(update_auth_password, str(profile.id), body.password)
    if not result.get("updated"):
        logger.warning("Password change failed for %s: %s", profile.id, result.get("error"))
        return error(400, "Failed to update password!", detail=result.get("error"))
    return {"success": True}


@router.post("/avatar")
async def upload_profile_avatar(
    session: SessionDep, profile: CurrentProfile, file: UploadFile = File(...)
):
    """Store an image of at most 1 MB as '<uid>_<unix ms>.<ext>' and point the profile at it."""
    content = await file.read()
    if len(content) > MAX_AVATAR_BYTES:
        return error(400, "Avatar must be 1MB or smaller")
    if file.content_type and not file.content_type.startswith("image/"):
        return error(400, "Avatar must be an image")

    ext = os.path.splitext(file.filename or "")[1].lstrip(".").lower() or "png"
    file_name = f"{profile.id}_{int(time.time() * 1000)}.{ext}"
    result = await run_in_threadpool(
        upload_avatar, file_name, content, file.content_type or "application/octet-stream"
    )
    if not result.get("url"):
        logger.warning("Avatar upload failed for %s: %s", profile.id, result.get("error"))
        return error(400, "Failed to upload avatar!", detail=result.get("error"))

    await profiles_repo.set_avatar_url(session, profile.id, result["url"])
    await session.commit()
    return {"success": True, "avatar_url": result["url"]}


@router.put("/fcm-token")
async def save_fcm_token(body: FcmTokenUpdate, session: SessionDep, profile: CurrentProfile):
    """Register this browser for push reminders; a null token unsubscribes."""
    await profiles_repo.set_fcm_token(session, profile.id, body.token or None)
    await session.commit()
    return {"success": True, "subscribed": bool(body.token)}


@router.get("/stats")
async def profile_stats(session: SessionDep, profile: CurrentProfile):
    now = datetime.now(crm_timezone())
    return await profiles_repo.count_stats_for_user(
        session, profile.id, month_start(now), week_start(now)
    )
