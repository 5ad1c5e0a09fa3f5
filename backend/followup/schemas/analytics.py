from pydantic import BaseModel
from datetime import datetime


class PriorityBucket(BaseModel):
    key: str
    name: str
    value: int
    color: str


class DelayBucket(BaseModel):
    key: str
    name: str
    value: int


class EffectivenessItem(BaseModel):
    key: str
    name: str
    value: int


class AnalyticsSummary(BaseModel):
    priority_distribution: list[PriorityBucket]
    delay_distribution: list[DelayBucket]
    effectiveness: list[EffectivenessItem]
    window_days: int
    generated_at: datetime
