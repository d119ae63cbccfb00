from .supabase_auth_tools import (
    create_auth_user,
    update_auth_password,
    delete_auth_user,
    get_user_for_token,
)
from .storage_tools import upload_avatar, public_url
from .fcm_tools import send_webpush, build_webpush_message

__all__ = [
    "create_auth_user", "update_auth_password", "delete_auth_user", "get_user_for_token",
    "upload_avatar", "public_url",
    "send_webpush", "build_webpush_message",
]
