"""Pydantic schemas for OTA promotional activities."""
from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, List
from enum import Enum


class ActivityStatusEnum(str, Enum):
    UPCOMING = "upcoming"
    ACTIVE = "active"
    ENDED = "ended"
    UNDECIDED = "undecided"


class ActivityCreate(BaseModel):
    """Activity creation schema."""
    platform: str = Field(..., min_length=1, description="OTA platform name")
    name: str = Field(..., min_length=1, description="Activity name")
    description: Optional[str] = Field(None, description="Activity description")
    discount: str = Field(..., description="Discount descriptor, e.g. 8.5折")
    commission_rate: str = Field(..., description="Commission rate, e.g. 8%")
    start_date: Optional[date] = Field(None, description="First day of the activity")
    end_date: Optional[date] = Field(None, description="Last day of the activity")
    status: ActivityStatusEnum = Field(ActivityStatusEnum.UNDECIDED, description="Activity status")
    room_types: List[str] = Field(default_factory=list, description="Participating room types")
    minimum_stay: Optional[int] = Field(None, ge=1, description="Minimum nights")
    tag: Optional[str] = Field(None, description="Free-form tag, e.g. 热门")

    class Config:
        json_schema_extra = {
            "example": {
                "platform": "携程",
                "name": "暑期特惠",
                "discount": "8.5折",
                "commission_rate": "8%",
                "start_date": "2026-07-01",
                "end_date": "2026-08-31",
                "status": "active",
                "room_types": ["豪华大床房", "行政套房"],
                "minimum_stay": 2,
                "tag": "热门"
            }
        }


class ActivityResponse(BaseModel):
    """Activity response schema."""
    id: int
    platform: str
    name: str
    description: Optional[str]
    discount: str
    commission_rate: str
    start_date: Optional[date]
    end_date: Optional[date]
    status: ActivityStatusEnum
    room_types: Optional[List[str]]
    minimum_stay: Optional[int]
    tag: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
