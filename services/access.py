"""Role-based visibility and permissions."""
import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from db.models import Profile
import db.repositories.profiles as profiles_repo

logger = logging.getLogger(__name__)

_NONE = {"view": False, "edit": False, "delete": False}

ROLE_PERMISSIONS: dict[str, dict[str, dict[str, bool]]] = {
    "admin": {
        "contacts": {"view": True, "edit": True, "delete": True},
        "pipeline": {"view": True, "edit": True, "delete": False},
        "analytics": {"view": True, "edit": False, "delete": False},
        "users": {"view": True, "edit": True, "delete": True},
        "export": {"view": True, "edit": True, "delete": False},
    },
    "manager": {
        "contacts": {"view": True, "edit": True, "delete": False},
        "pipeline": {"view": True, "edit": True, "delete": False},
        "analytics": {"view": True, "edit": False, "delete": False},
        "users": {"view": True, "edit": False, "delete": False},
        "export": dict(_NONE),
    },
    "sales": {
        "contacts": {"view": True, "edit": True, "delete": False},
        "pipeline": {"view": True, "edit": True, "delete": False},
        "analytics": {"view": True, "edit": False, "delete": False},
        "users": dict(_NONE),
        "export": dict(_NONE),
    },
}


class PermissionDenied(Exception):
    """Raised when the caller's role does not allow an action."""


def default_permissions(role: Optional[str]) -> dict[str, dict[str, bool]]:
    """Permission matrix for a role; unknown roles get the sales matrix."""
    return ROLE_PERMISSIONS.get((role or "").lower(), ROLE_PERMISSIONS["sales"])


def has_permission(role: Optional[str], area: str, action: str = "view") -> bool:
    return default_permissions(role).get(area, _NONE).get(action, False)


def require(profile: Profile, area: str, action: str = "view") -> None:
    """Raise PermissionDenied unless the profile's role allows area/action."""
    if not has_permission(profile.role, area, action):
        logger.warning(
            "Denied %s:%s for user %s (role=%s)", area, action, profile.id, profile.role
        )
        raise PermissionDenied(f"Role '{profile.role}' cannot {action} {area}")


async def contact_scope(session: AsyncSession, profile: Profile) -> Optional[list[UUID]]:
    """Assignee ids whose contacts the profile may see.

    sales see their own contacts, managers see their own plus their sales
    team's, admins see everything (None).
    """
    role = (profile.role or "").lower()
    if role == "admin":
        return None
    if role == "manager":
        team = await profiles_repo.managed_sales_ids(session, profile.id)
        return [profile.id, *team]
    return [profile.id]
