"""Dropdown option (app_config) schemas."""
from typing import Literal, Optional

from pydantic import BaseModel, Field


ConfigType = Literal["industry", "company_size", "data_source"]


class ConfigOptionCreate(BaseModel):
    type: ConfigType
    value: str = Field(min_length=1)  # English label
    label_vi: Optional[str] = None
    sort_order: int = 0
    active: bool = True


class ConfigOptionUpdate(BaseModel):
    value: Optional[str] = Field(default=None, min_length=1)
    label_vi: Optional[str] = None
    sort_order: Optional[int] = None
    active: Optional[bool] = None
