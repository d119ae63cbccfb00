"""Activity log schemas."""
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class ActivityLogRequest(BaseModel):
    user_id: Optional[UUID] = None
    action_type: str = Field(min_length=1)
    target_id: Optional[str] = None
    target_type: Optional[str] = None
    detail: Optional[dict[str, Any]] = None
