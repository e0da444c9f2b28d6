"""Pydantic schemas for weight templates."""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Dict, Optional


class TemplateCreate(BaseModel):
    """
    Create a template from explicit values, or from the current weights
    when `weights` is omitted.
    """
    name: str = Field(..., min_length=1, max_length=200, description="Template name")
    description: str = Field("", description="What the weight set is meant for")
    weights: Optional[Dict[str, float]] = Field(
        None, description="Weight values by parameter key; current weights when omitted"
    )
    apply_now: bool = Field(False, description="Also write the values into the current weights")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "旺季收益优先",
                "description": "旺季减少折扣，提升远期预定",
                "weights": {
                    "future_booking_weight": 9,
                    "cost_optimization_weight": 8,
                    "visibility_optimization_weight": 4,
                    "daily_occupancy_weight": 3
                },
                "apply_now": False
            }
        }


class TemplateFromStrategy(BaseModel):
    """Save the current weights under a generated strategy's name."""
    strategy_id: int
    name: Optional[str] = Field(None, max_length=200, description="Defaults to the strategy name")


class TemplateResponse(BaseModel):
    id: int
    name: str
    description: str
    weights: Dict[str, int]
    added_by: str
    strategy_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True
