"""FastAPI dependencies: database session, authenticated caller, JSON errors."""
import logging
from typing import Annotated, AsyncIterator, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

import db.repositories.profiles as profiles_repo
from db import get_db
from db.models import Profile
from services.access import require
from tools.supabase_auth_tools import get_user_for_token

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """One session per request; committed on success, rolled back on error."""
    async with get_db() as session:
        yield session


SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_current_profile(
    session: SessionDep,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer)],
) -> Profile:
    """Resolve the bearer access token to the caller's active profile.

    Raises:
        HTTPException 401: token missing, rejected by the auth service, or
            the profile is unknown or inactive.
    """
    if credentials is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing bearer token")
    user = await run_in_threadpool(get_user_for_token, credentials.credentials)
    if not user.get("id"):
        logger.info("Rejected access token: %s", user.get("error"))
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid or expired token")
    profile = await profiles_repo.get(session, UUID(user["id"]))
    if profile is None or profile.status != "active":
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Inactive or unknown user")
    return profile


CurrentProfile = Annotated[Profile, Depends(get_current_profile)]


def permission(area: str, action: str = "view"):
    """Dependency factory: the caller's profile, after a role check."""

    async def _check(profile: CurrentProfile) -> Profile:
        require(profile, area, action)
        return profile

    return _check


def error(status_code: int, message: str, **extra) -> JSONResponse:
    """JSON error body in the {'error': ...} shape the dashboard expects."""
    return JSONResponse(status_code=status_code, content={"error": message, **extra})
