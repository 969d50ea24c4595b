"""Configuration management for fairshare."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Insight store
    sqlite_db_path: str = Field(default="fairshare.db", description="SQLite file backing the insight store")

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="production", description="Deployment environment reported to Logfire")

    # Insight policy
    insight_window_hours: int = Field(
        default=24, description="Hours a pending insight is reused before the analyzer runs again"
    )
    category_overdue_factor: float = Field(
        default=1.2, description="Multiple of a category's usual interval after which it is predicted as needed"
    )
    falling_behind_ratio: float = Field(
        default=0.7, description="Fraction of the group's average points below which a member is falling behind"
    )
    inactivity_days: int = Field(default=7, description="Days without a completion before suggesting a reminder")

    # Recommendations
    recent_history_size: int = Field(
        default=5, description="Number of recent completions checked for category repetition"
    )


# Scoring Constants
class Constants:
    """Engine-wide scoring constants."""

    # Difficulty bands (difficulty doubles as point value)
    MIN_DIFFICULTY: int = 1
    MAX_DIFFICULTY: int = 10
    EASY_MAX_DIFFICULTY: int = 3
    HARD_MIN_DIFFICULTY: int = 7

    # Recommendation score
    BASE_SCORE: float = 50.0
    MIN_SCORE: float = 0.0
    MAX_SCORE: float = 100.0
    WORKLOAD_BONUS_CAP: float = 20.0
    WORKLOAD_AHEAD_THRESHOLD: float = -10.0
    WORKLOAD_AHEAD_PENALTY: float = 10.0
    FRESH_CATEGORY_BONUS: float = 15.0
    REPEATED_CATEGORY_MIN_COUNT: int = 2
    REPEATED_CATEGORY_PENALTY: float = 10.0
    HARD_RATIO_THRESHOLD: float = 0.3
    HARD_TASK_BONUS: float = 15.0
    EASY_TASK_PENALTY: float = 15.0
    PREFERRED_CATEGORY_BONUS: float = 10.0
    AVOIDED_CATEGORY_PENALTY: float = 20.0
    DUE_SOON_HOURS: int = 24
    DUE_SOON_BONUS: float = 10.0

    # Fairness score
    FAIRNESS_MAX: int = 100
    FAIRNESS_DEVIATION_MULTIPLIER: float = 50.0
    FAIRNESS_POINTS_WEIGHT: float = 0.6
    FAIRNESS_DIFFICULTY_WEIGHT: float = 0.4

    # Insight confidences
    PREDICTION_CONFIDENCE: float = 0.8
    FALLING_BEHIND_CONFIDENCE: float = 0.9
    INACTIVITY_CONFIDENCE: float = 0.7

    # Habits
    HABIT_TOP_CATEGORIES: int = 3
    MORNING_START_HOUR: int = 5
    AFTERNOON_START_HOUR: int = 12
    EVENING_START_HOUR: int = 17

    # Insight store
    INSIGHTS_COLLECTION: str = "insights"
    DEFAULT_PER_PAGE_LIMIT: int = 100


def get_settings() -> Settings:
    """Get engine settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
