"""Hosted object-storage tools for profile avatars."""
from typing import Any, Dict

import requests

from settings import service_role_key, supabase_url

AVATAR_BUCKET = "avatars"


def public_url(file_name: str, bucket: str = AVATAR_BUCKET) -> str:
    return f"{supabase_url()}/storage/v1/object/public/{bucket}/{file_name}"


def upload_avatar(
    file_name: str, content: bytes, content_type: str = "application/octet-stream"
) -> Dict[str, Any]:
    """Upload (or overwrite) an avatar image in the avatars bucket.

    Args:
        file_name: Object name inside the bucket, e.g. '<uid>_<ts>.png'.
        content: Raw image bytes.
        content_type: MIME type sent to storage.

    Returns:
        Dict with 'url' (public URL) on success, or 'url': None and 'error'.
    """
    key = service_role_key()
    try:
        resp = requests.post(
            f"{supabase_url()}/storage/v1/object/{AVATAR_BUCKET}/{file_name}",
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": content_type,
                "x-upsert": "true",
            },
            data=content,
            timeout=30,
        )
        resp.raise_for_status()
        return {"url": public_url(file_name), "file_name": file_name}
    except Exception as exc:
        return {"url": None, "file_name": file_name, "error": str(exc)}
