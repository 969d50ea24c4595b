"""Pydantic models for service layer inputs and return types.

These are derived values: the engine computes them on demand from task
history and never persists them.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from fairshare.domain.task import Task, TaskCategory


class FairnessStats(BaseModel):
    """Completed-work summary for one member of a space."""

    member_id: str
    space_id: str
    total_points: int = 0
    tasks_completed: int = 0
    easy_tasks: int = 0
    medium_tasks: int = 0
    hard_tasks: int = 0
    avg_difficulty: float = 0.0
    last_task_date: datetime | None = None


class MemberPreferences(BaseModel):
    """Category preferences a member has declared."""

    preferred_categories: list[TaskCategory] = Field(default_factory=list)
    avoided_categories: list[TaskCategory] = Field(default_factory=list)


class MemberHistory(BaseModel):
    """Everything the recommendation scorer knows about the requesting member."""

    member_id: str
    stats: FairnessStats
    recent_tasks: list[Task] = Field(default_factory=list, description="Recent completions, most recent first")
    preferences: MemberPreferences | None = None


class TaskRecommendation(BaseModel):
    """Suitability of one open task for one member."""

    task: Task
    score: float = Field(..., ge=0.0, le=100.0)
    reason: str
    reasons: list[str] = Field(default_factory=list, description="Every contributing reason, in scoring order")


class CategoryFrequency(BaseModel):
    """Typical recurrence interval of a chore category."""

    category: TaskCategory
    gaps_days: list[float]
    average_days: float
    last_completed: datetime


class UserHabit(BaseModel):
    """Inferred completion pattern of one member."""

    member_id: str
    preferred_categories: list[TaskCategory] = Field(default_factory=list)
    average_days_between_tasks: float = 0.0
    usual_time_of_day: str | None = None
    consistency_score: float = Field(default=0.0, ge=0.0, le=100.0)
