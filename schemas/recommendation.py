from typing import Any, Dict, List, Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field

from schemas.activity import ActivityStatusEnum


class StrategyPreferenceEnum(str, Enum):
    BALANCED = "balanced"
    REVENUE = "revenue"
    TRAFFIC = "traffic"


class DateRangeEnum(str, Enum):
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


class GenerateRequest(BaseModel):
    preference: Optional[StrategyPreferenceEnum] = Field(
        None, description="Strategy preference; service default when omitted"
    )
    statuses: Optional[List[ActivityStatusEnum]] = Field(
        None, description="Activity statuses to include; all but ended when omitted"
    )


class StrategySummarySchema(BaseModel):
    id: int
    name: str
    description: str
    is_recommended: bool
    score: float
    created_at: datetime
    applied_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StrategySchema(StrategySummarySchema):
    request_id: int
    advantages: List[str]
    disadvantages: List[str]
    steps: List[str]
    notes: List[str]
    activity_ids: List[int]
    metrics: Dict[str, Any]
    applied_by: Optional[str] = None


class StrategyHistorySchema(BaseModel):
    strategy_id: int
    strategy_name: str
    description: str
    is_recommended: bool
    applied_at: datetime
    applied_by: str
    activity_count: int
