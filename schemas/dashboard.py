"""Dashboard response schemas."""
from typing import List, Literal, Union

from pydantic import BaseModel


class StatCard(BaseModel):
    title: str
    vietnamese: str
    value: Union[int, str]
    change: str
    changeType: Literal["positive", "negative"]
    icon: str


class LifeStageItem(BaseModel):
    name: str
    value: int


class ActivityPoint(BaseModel):
    month: str
    contacts: int
    appointments: int


class DashboardResponse(BaseModel):
    stats: List[StatCard]
    lifeStageData: List[LifeStageItem]
    activityData: List[ActivityPoint]
