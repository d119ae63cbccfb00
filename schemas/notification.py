"""Notification center schemas."""
from pydantic import BaseModel, Field


class NotificationSettingUpdate(BaseModel):
    type: str = Field(min_length=1)
    enabled: bool
