"""Environment configuration for the CRM backend.

Values are read from the process environment (and a local .env file via
python-dotenv). Optional values fall back to defaults; credentials for the
hosted services are looked up lazily so that modules can be imported
without them.
"""
import os
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()

DEFAULT_TIMEZONE = "Asia/Ho_Chi_Minh"


def supabase_url() -> str:
    return os.environ["SUPABASE_URL"].rstrip("/")


def service_role_key() -> str:
    return os.environ["SUPABASE_SERVICE_ROLE_KEY"]


def firebase_credentials_path() -> str:
    return os.environ["FIREBASE_CREDENTIALS"]


def firebase_project_id() -> str:
    return os.environ["FIREBASE_PROJECT_ID"]


def app_base_url() -> str:
    return os.environ.get("APP_BASE_URL", "http://localhost:3000").rstrip("/")


def app_icon_url() -> str:
    return os.environ.get("APP_ICON_URL", f"{app_base_url()}/icons/icon-192x192.png")


def app_badge_url() -> str:
    return os.environ.get("APP_BADGE_URL", f"{app_base_url()}/icons/badge-72x72.png")


def crm_timezone() -> ZoneInfo:
    """Timezone used for display strings and month/week boundaries."""
    return ZoneInfo(os.environ.get("CRM_TIMEZONE", DEFAULT_TIMEZONE))


def cors_origins() -> list[str]:
    raw = os.environ.get("CORS_ORIGINS", "http://localhost:3000")
    return [o.strip() for o in raw.split(",") if o.strip()]


def reminder_interval_seconds() -> int:
    return int(os.environ.get("REMINDER_INTERVAL_SECONDS", "30"))
