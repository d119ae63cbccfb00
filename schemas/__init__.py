from .user import (
    Role,
    UserCreate,
    UserUpdate,
    UserDelete,
    ProfileUpdate,
    PasswordChange,
    FcmTokenUpdate,
)
from .contact import (
    HistoryType,
    ContactCreate,
    ContactUpdate,
    HistoryCreate,
    PipelineMove,
    ImportContactsRequest,
    ImportContactsResult,
)
from .activity import ActivityLogRequest
from .appointment import AppointmentStatus, AppointmentCreate, AppointmentUpdate
from .notification import NotificationSettingUpdate
from .config import ConfigType, ConfigOptionCreate, ConfigOptionUpdate
from .dashboard import StatCard, LifeStageItem, ActivityPoint, DashboardResponse

__all__ = [
    "Role", "UserCreate", "UserUpdate", "UserDelete",
    "ProfileUpdate", "PasswordChange", "FcmTokenUpdate",
    "HistoryType", "ContactCreate", "ContactUpdate", "HistoryCreate",
    "PipelineMove", "ImportContactsRequest", "ImportContactsResult",
    "ActivityLogRequest",
    "AppointmentStatus", "AppointmentCreate", "AppointmentUpdate",
    "NotificationSettingUpdate",
    "ConfigType", "ConfigOptionCreate", "ConfigOptionUpdate",
    "StatCard", "LifeStageItem", "ActivityPoint", "DashboardResponse",
]
