"""Push messaging tools: web push through the FCM HTTP v1 API.

Calls the REST endpoint directly, authenticating with a service-account
OAuth2 token from google-auth.
"""
from typing import Any, Dict, Optional

import requests
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from settings import app_badge_url, app_icon_url, firebase_credentials_path, firebase_project_id


SCOPES = ["https://www.googleapis.com/auth/firebase.messaging"]
FCM_BASE = "https://fcm.googleapis.com/v1"
WEBPUSH_TAG = "crm-appointment"
WEBPUSH_TTL_SECONDS = 900

_credentials = None


def _access_token() -> str:
    global _credentials
    if _credentials is None:
        _credentials = service_account.Credentials.from_service_account_file(
            firebase_credentials_path(), scopes=SCOPES
        )
    if not _credentials.valid:
        _credentials.refresh(Request())
    return _credentials.token


def _is_unregistered(status_code: int, error: Dict[str, Any]) -> bool:
    if status_code == 404 or error.get("status") == "NOT_FOUND":
        return True
    for detail in error.get("details", []):
        if detail.get("errorCode") == "UNREGISTERED":
            return True
    return "registration-token-not-registered" in error.get("message", "")


def build_webpush_message(
    token: str,
    title: str,
    body: str,
    url: str,
    data: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Build the v1 message body for a single-device web push.

    Data values are stringified since FCM only accepts string maps.
    """
    data_str = {k: "" if v is None else str(v) for k, v in (data or {}).items()}
    data_str.setdefault("url", url)
    return {
        "message": {
            "token": token,
            "notification": {"title": title, "body": body},
            "data": data_str,
            "webpush": {
                "headers": {"TTL": str(WEBPUSH_TTL_SECONDS), "Urgency": "high"},
                "notification": {
                    "title": title,
                    "body": body,
                    "icon": app_icon_url(),
                    "badge": app_badge_url(),
                    "requireInteraction": True,
                    "tag": WEBPUSH_TAG,
                    "data": {"url": url},
                },
                "fcm_options": {"link": url},
            },
        }
    }


def send_webpush(
    token: str,
    title: str,
    body: str,
    url: str,
    data: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Send one web push notification to a device token.

    Args:
        token: FCM registration token stored on the user's profile.
        title: Notification title.
        body: Notification body text.
        url: Page opened when the notification is clicked.
        data: Extra key/values delivered with the message.

    Returns:
        Dict with 'sent' bool, 'message_id', 'unregistered' (token is dead
        and should be cleared), and 'error' on failure.
    """
    try:
        resp = requests.post(
            f"{FCM_BASE}/projects/{firebase_project_id()}/messages:send",
            headers={"Authorization": f"Bearer {_access_token()}"},
            json=build_webpush_message(token, title, body, url, data),
            timeout=10,
        )
        if resp.status_code >= 400:
            try:
                error = resp.json().get("error", {})
            except ValueError:
                error = {"message": resp.text}
            return {
                "sent": False,
                "message_id": None,
                "unregistered": _is_unregistered(resp.status_code, error),
                "error": error.get("message") or f"HTTP {resp.status_code}",
            }
        return {
            "sent": True,
            "message_id": resp.json().get("name"),
            "unregistered": False,
        }
    except Exception as exc:
        return {"sent": False, "message_id": None, "unregistered": False, "error": str(exc)}
