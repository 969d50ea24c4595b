"""Domain models and DTOs."""

from fairshare.domain.insight import Insight, InsightAction, InsightKind, InsightStatus
from fairshare.domain.member import Member, MemberRole
from fairshare.domain.task import CATEGORY_LABELS, DifficultyBand, Task, TaskCategory, TaskStatus, difficulty_band


__all__ = [
    "CATEGORY_LABELS",
    "DifficultyBand",
    "Insight",
    "InsightAction",
    "InsightKind",
    "InsightStatus",
    "Member",
    "MemberRole",
    "Task",
    "TaskCategory",
    "TaskStatus",
    "difficulty_band",
]
