"""Insight domain models and enums."""

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from fairshare.domain.task import TaskCategory


class InsightKind(StrEnum):
    """What an insight is about."""

    PREDICTION = "prediction"
    ANOMALY = "anomaly"
    SUGGESTION = "suggestion"


class InsightAction(StrEnum):
    """Action the caller is invited to take."""

    CREATE_TASK = "create_task"
    REMIND_USER = "remind_user"
    ASSIGN_TASK = "assign_task"


class InsightStatus(StrEnum):
    """Lifecycle status of a persisted insight."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    SNOOZED = "snoozed"


class Insight(BaseModel):
    """Generated observation about household task patterns."""

    id: str | None = Field(default=None, description="Store ID once persisted")
    kind: InsightKind = Field(..., description="prediction, anomaly, or suggestion")
    title: str = Field(..., description="Short headline")
    description: str = Field(..., description="Human-readable explanation")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Confidence between 0 and 1")
    related_member_id: str | None = Field(default=None, description="Member the insight is about")
    related_task_id: str | None = Field(default=None, description="Task the insight is about")
    category: TaskCategory | None = Field(default=None, description="Category a prediction refers to")
    action: InsightAction | None = Field(default=None, description="Suggested follow-up action")
    status: InsightStatus | None = Field(default=None, description="Store status, None until persisted")
    created_at: datetime | None = Field(default=None, description="When the insight was persisted")
