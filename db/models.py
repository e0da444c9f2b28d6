"""SQLAlchemy ORM models for the OTA strategy service."""
from sqlalchemy import (
    Column, String, Integer, Float, Date, ForeignKey,
    Enum, Text, Index, TIMESTAMP, Boolean, CheckConstraint
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from datetime import datetime

from db.base import Base
from domain.activities import ActivityStatus


class StrategyParameter(Base):
    """Weight parameters (0-10) that bias strategy generation."""
    __tablename__ = "strategy_parameters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    param_key = Column(String(100), nullable=False, unique=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    value = Column(Integer, nullable=False, default=5)
    created_at = Column(TIMESTAMP(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(TIMESTAMP(timezone=True), default=datetime.utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("value >= 0 AND value <= 10", name="value_range"),
    )


class Activity(Base):
    """OTA promotional activity known to the hotel."""
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, autoincrement=True)
    platform = Column(String(100), nullable=False)  # e.g. "携程", "飞猪"
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    discount = Column(String(100), nullable=False)  # e.g. "8.5折"
    commission_rate = Column(String(50), nullable=False)  # e.g. "8%"
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    status = Column(Enum(ActivityStatus), nullable=False, default=ActivityStatus.UNDECIDED)
    room_types = Column(JSONB, nullable=True)  # List of room type names
    minimum_stay = Column(Integer, nullable=True)
    tag = Column(String(50), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index("ix_activities_status", "status"),
    )


class GenerationRequest(Base):
    """Inputs of one strategy generation run, stored as copies."""
    __tablename__ = "recommendation_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    requested_by = Column(String(200), nullable=False)
    weights = Column(JSONB, nullable=False)  # Weight snapshot
    activities = Column(JSONB, nullable=False)  # Activity snapshot
    preference = Column(String(50), nullable=False)
    model = Column(String(100), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), default=datetime.utcnow, nullable=False)

    # Relationships
    strategies = relationship("StrategyRecord", back_populates="request")


class StrategyRecord(Base):
    """Generated strategy. Only applied_at/applied_by change after insert."""
    __tablename__ = "strategies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(Integer, ForeignKey("recommendation_requests.id"), nullable=False)
    name = Column(String(300), nullable=False)
    description = Column(Text, nullable=False)
    advantages = Column(JSONB, nullable=False, default=list)
    disadvantages = Column(JSONB, nullable=False, default=list)
    steps = Column(JSONB, nullable=False, default=list)
    notes = Column(JSONB, nullable=False, default=list)
    activity_ids = Column(JSONB, nullable=False, default=list)
    metrics = Column(JSONB, nullable=False, default=dict)
    is_recommended = Column(Boolean, nullable=False, default=False)
    score = Column(Float, nullable=False, default=0.0)
    created_at = Column(TIMESTAMP(timezone=True), default=datetime.utcnow, nullable=False)
    applied_at = Column(TIMESTAMP(timezone=True), nullable=True)
    applied_by = Column(String(200), nullable=True)

    # Relationships
    request = relationship("GenerationRequest", back_populates="strategies")

    __table_args__ = (
        Index("ix_strategies_created_at", "created_at"),
        Index("ix_strategies_applied_at", "applied_at"),
        Index("ix_strategies_request_id", "request_id"),
    )


class WeightTemplateRecord(Base):
    """Named weight set that can be written back into strategy_parameters."""
    __tablename__ = "weight_templates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    weights = Column(JSONB, nullable=False)  # {param_key: value}
    added_by = Column(String(200), nullable=False)
    strategy_id = Column(Integer, ForeignKey("strategies.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), default=datetime.utcnow, nullable=False)


class AISettingsRecord(Base):
    """Operator-saved model credential and model choice, one row per service."""
    __tablename__ = "ai_settings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    service = Column(String(50), nullable=False, unique=True)
    api_key = Column(Text, nullable=False)
    model = Column(String(100), nullable=False)
    updated_by = Column(String(200), nullable=True)
    updated_at = Column(TIMESTAMP(timezone=True), default=datetime.utcnow, nullable=False)
