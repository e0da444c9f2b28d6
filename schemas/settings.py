"""Pydantic schemas for model settings."""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from enum import Enum


class AIModelEnum(str, Enum):
    R1_PLUS = "DeepSeek-R1-Plus"
    R1 = "DeepSeek-R1"
    CODER = "DeepSeek-Coder"


class AISettingsResponse(BaseModel):
    """Effective model settings. The API key itself is never returned."""
    configured: bool
    model: str
    api_url: str
    timeout_seconds: float
    max_attempts: int
    source: str = Field(..., description="'saved' when an operator saved settings, else 'environment'")
    updated_at: Optional[datetime] = None
    updated_by: Optional[str] = None


class AISettingsUpdate(BaseModel):
    """Save a key and model. Omitting api_key keeps the saved key."""
    api_key: Optional[str] = Field(None, min_length=1, description="Model service API key")
    model: AIModelEnum = Field(AIModelEnum.R1_PLUS, description="Model used for generation")


class ConnectionTestRequest(BaseModel):
    """Optional candidate settings to test before saving."""
    api_key: Optional[str] = Field(None, min_length=1)
    model: Optional[AIModelEnum] = None


class ConnectionTestResponse(BaseModel):
    success: bool
    message: str
    model: Optional[str] = None
