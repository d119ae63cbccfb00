"""Hosted Auth admin tools for user administration.

Calls the Auth REST API directly with the service-role key (admin
endpoints are not exposed to the browser client).
"""
from typing import Any, Dict

import requests

from settings import service_role_key, supabase_url


def _headers() -> Dict[str, str]:
    key = service_role_key()
    return {"apikey": key, "Authorization": f"Bearer {key}"}


def create_auth_user(email: str, password: str) -> Dict[str, Any]:
    """Create a confirmed auth user.

    Args:
        email: Login email.
        password: Initial password.

    Returns:
        Dict with 'id' of the new user, or 'id': None and 'error'.
    """
    try:
        resp = requests.post(
            f"{supabase_url()}/auth/v1/admin/users",
            headers=_headers(),
            json={"email": email, "password": password, "email_confirm": True},
            timeout=10,
        )
        resp.raise_for_status()
        user = resp.json()
        return {"id": user.get("id"), "email": user.get("email", email)}
    except Exception as exc:
        return {"id": None, "error": str(exc)}


def update_auth_password(user_id: str, password: str) -> Dict[str, Any]:
    """Set a new password for an auth user.

    Returns:
        Dict with 'updated' bool (and 'error' on failure).
    """
    try:
        resp = requests.put(
            f"{supabase_url()}/auth/v1/admin/users/{user_id}",
            headers=_headers(),
            json={"password": password},
            timeout=10,
        )
        resp.raise_for_status()
        return {"updated": True, "id": user_id}
    except Exception as exc:
        return {"updated": False, "id": user_id, "error": str(exc)}


def delete_auth_user(user_id: str) -> Dict[str, Any]:
    """Delete an auth user.

    Returns:
        Dict with 'deleted' bool (and 'error' on failure).
    """
    try:
        resp = requests.delete(
            f"{supabase_url()}/auth/v1/admin/users/{user_id}",
            headers=_headers(),
            timeout=10,
        )
        resp.raise_for_status()
        return {"deleted": True, "id": user_id}
    except Exception as exc:
        return {"deleted": False, "id": user_id, "error": str(exc)}


def get_user_for_token(access_token: str) -> Dict[str, Any]:
    """Resolve a browser session access token to its auth user.

    Returns:
        Dict with 'id' and 'email', or 'id': None and 'error' when the
        token is invalid or expired.
    """
    try:
        resp = requests.get(
            f"{supabase_url()}/auth/v1/user",
            headers={"apikey": service_role_key(), "Authorization": f"Bearer {access_token}"},
            timeout=10,
        )
        resp.raise_for_status()
        user = resp.json()
        return {"id": user.get("id"), "email": user.get("email")}
    except Exception as exc:
        return {"id": None, "error": str(exc)}
