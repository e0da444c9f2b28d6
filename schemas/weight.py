"""Pydantic schemas for strategy weight parameters."""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class WeightResponse(BaseModel):
    """Weight parameter response schema."""
    key: str
    label: str
    description: str
    value: int
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WeightUpdate(BaseModel):
    """
    Single weight update.

    Range checking happens in the weight store so that out-of-range
    values are reported as 400 rather than a schema error.
    """
    value: float = Field(..., description="New value, integer between 0 and 10")


class WeightBulkItem(BaseModel):
    key: str
    value: float
