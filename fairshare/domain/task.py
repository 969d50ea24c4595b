"""Task domain models and enums."""

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field, field_validator

from fairshare.core.config import Constants


class TaskCategory(StrEnum):
    """Fixed household chore categories."""

    WASHROOM = "washroom"
    SWEEPING = "sweeping"
    KITCHEN = "kitchen"
    TRASH = "trash"
    DUSTING = "dusting"
    LAUNDRY = "laundry"
    DISHES = "dishes"
    OTHER = "other"


CATEGORY_LABELS: dict[TaskCategory, str] = {
    TaskCategory.WASHROOM: "Washroom",
    TaskCategory.SWEEPING: "Sweeping",
    TaskCategory.KITCHEN: "Kitchen",
    TaskCategory.TRASH: "Trash",
    TaskCategory.DUSTING: "Dusting",
    TaskCategory.LAUNDRY: "Laundry",
    TaskCategory.DISHES: "Dishes",
    TaskCategory.OTHER: "Other",
}


class TaskStatus(StrEnum):
    """Task lifecycle status."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    PENDING_VERIFICATION = "pending_verification"
    DONE = "done"


class DifficultyBand(StrEnum):
    """Difficulty band used for workload balancing."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


def difficulty_band(difficulty: int) -> DifficultyBand:
    """Classify a difficulty: easy up to 3, hard from 7, medium in between."""
    if difficulty <= Constants.EASY_MAX_DIFFICULTY:
        return DifficultyBand.EASY
    if difficulty >= Constants.HARD_MIN_DIFFICULTY:
        return DifficultyBand.HARD
    return DifficultyBand.MEDIUM


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def resolve_now(now: datetime | None) -> datetime:
    """Reference time for time-dependent calculations, as aware UTC."""
    return ensure_utc(now) if now is not None else datetime.now(UTC)


class Task(BaseModel):
    """Task data transfer object, read-only input to the engine."""

    id: str = Field(..., description="Unique task ID")
    space_id: str = Field(..., description="Space (household) the task belongs to")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")
    category: TaskCategory = Field(default=TaskCategory.OTHER, description="Chore category")
    difficulty: int = Field(
        ...,
        ge=Constants.MIN_DIFFICULTY,
        le=Constants.MAX_DIFFICULTY,
        description="Difficulty 1-10, also the point value on completion",
    )
    status: TaskStatus = Field(default=TaskStatus.TODO, description="Lifecycle status")
    assigned_to: str | None = Field(default=None, description="Assigned member ID")
    created_at: datetime = Field(..., description="Creation timestamp")
    due_date: datetime | None = Field(default=None, description="Optional due timestamp")
    completed_at: datetime | None = Field(default=None, description="Completion timestamp, when recorded")

    @field_validator("created_at", "due_date", "completed_at")
    @classmethod
    def normalize_timezone(cls, v: datetime | None) -> datetime | None:
        """Store every timestamp as an aware UTC datetime."""
        return ensure_utc(v) if v is not None else None

    @property
    def is_done(self) -> bool:
        """Whether the task has been completed."""
        return self.status == TaskStatus.DONE

    @property
    def completed_on(self) -> datetime:
        """Completion timestamp, falling back to creation time when none was recorded."""
        return self.completed_at or self.created_at

    @property
    def band(self) -> DifficultyBand:
        """Difficulty band of this task."""
        return difficulty_band(self.difficulty)
