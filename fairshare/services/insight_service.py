"""Habit and insight analysis over a space's completion history.

Two analyses make up an insight run:
- Category predictions: each category's typical interval between completions
  is compared with the time since its last completion. Categories overdue by
  more than the configured factor are predicted as needed soon.
- Member anomalies: members whose points sit well below the group average
  are flagged as falling behind, and members with no completion for a week
  get a reminder suggestion.

Sparse data never produces an insight: categories need at least two
completions, and members with no completions at all are skipped.
"""

import logging
import statistics
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import datetime

from fairshare.core.config import Constants, settings
from fairshare.core.logging import span
from fairshare.domain.insight import Insight, InsightAction, InsightKind
from fairshare.domain.member import Member
from fairshare.domain.task import CATEGORY_LABELS, Task, TaskCategory, resolve_now
from fairshare.models.service_models import CategoryFrequency, UserHabit
from fairshare.services.stats_service import average_points, completed_tasks_for, compute_member_stats


logger = logging.getLogger(__name__)

_SECONDS_PER_DAY = 24 * 60 * 60


def _days_between(later: datetime, earlier: datetime) -> float:
    return (later - earlier).total_seconds() / _SECONDS_PER_DAY


def _gaps_in_days(timestamps: Sequence[datetime]) -> list[float]:
    """Gaps between consecutive timestamps given newest first."""
    return [_days_between(timestamps[i], timestamps[i + 1]) for i in range(len(timestamps) - 1)]


def analyze_category_frequency(tasks: Iterable[Task]) -> dict[TaskCategory, CategoryFrequency]:
    """Estimate how often each category gets done.

    Args:
        tasks: Task history (only done tasks are considered)

    Returns:
        CategoryFrequency per category with at least two completions, in
        category declaration order
    """
    by_category: dict[TaskCategory, list[datetime]] = {}
    for task in tasks:
        if task.is_done:
            by_category.setdefault(task.category, []).append(task.completed_on)

    frequencies: dict[TaskCategory, CategoryFrequency] = {}
    for category in TaskCategory:
        timestamps = sorted(by_category.get(category, []), reverse=True)
        if len(timestamps) < 2:  # noqa: PLR2004
            continue
        gaps = _gaps_in_days(timestamps)
        frequencies[category] = CategoryFrequency(
            category=category,
            gaps_days=gaps,
            average_days=sum(gaps) / len(gaps),
            last_completed=timestamps[0],
        )
    return frequencies


def predict_category_needs(tasks: Iterable[Task], *, now: datetime | None = None) -> list[Insight]:
    """Predict categories that are probably needed again soon."""
    now = resolve_now(now)
    insights = []

    for category, freq in analyze_category_frequency(tasks).items():
        days_since = _days_between(now, freq.last_completed)
        if days_since <= freq.average_days * settings.category_overdue_factor:
            continue

        insights.append(
            Insight(
                kind=InsightKind.PREDICTION,
                title=f"{CATEGORY_LABELS[category]} might be needed",
                description=(
                    f"Usually done every {round(freq.average_days)} days. Last done {round(days_since)} days ago."
                ),
                confidence=Constants.PREDICTION_CONFIDENCE,
                category=category,
                action=InsightAction.CREATE_TASK,
            )
        )

    logger.debug("Predicted %d category needs", len(insights))
    return insights


def detect_member_anomalies(
    tasks: Iterable[Task],
    members: Sequence[Member],
    *,
    now: datetime | None = None,
) -> list[Insight]:
    """Flag members who are falling behind or have gone quiet."""
    now = resolve_now(now)
    stats = compute_member_stats(tasks, members)
    avg_points = average_points(stats)
    names = {m.user_id: m.name for m in members}
    insights = []

    for stat in stats:
        # No completions means no signal
        if stat.tasks_completed == 0:
            continue

        name = names[stat.member_id]
        if stat.total_points < avg_points * settings.falling_behind_ratio:
            insights.append(
                Insight(
                    kind=InsightKind.ANOMALY,
                    title=f"{name} is falling behind",
                    description=(
                        f"Points are significantly below average ({stat.total_points} vs {round(avg_points)})."
                    ),
                    confidence=Constants.FALLING_BEHIND_CONFIDENCE,
                    related_member_id=stat.member_id,
                    action=InsightAction.REMIND_USER,
                )
            )

        if stat.last_task_date is not None:
            days_inactive = _days_between(now, stat.last_task_date)
            if days_inactive > settings.inactivity_days:
                insights.append(
                    Insight(
                        kind=InsightKind.SUGGESTION,
                        title=f"Remind {name} to help out",
                        description=f"Hasn't completed a task in {round(days_inactive)} days.",
                        confidence=Constants.INACTIVITY_CONFIDENCE,
                        related_member_id=stat.member_id,
                        action=InsightAction.REMIND_USER,
                    )
                )

    logger.debug("Detected %d member anomalies among %d members", len(insights), len(stats))
    return insights


def analyze_insights(
    tasks: Iterable[Task],
    members: Iterable[Member],
    *,
    space_id: str | None = None,
    now: datetime | None = None,
) -> list[Insight]:
    """Run both analyses for one space.

    Args:
        tasks: Task history of the space
        members: Member roster of the space
        space_id: When given, tasks and members of other spaces are ignored
        now: Reference time (defaults to current UTC time)

    Returns:
        Category predictions followed by member anomalies and suggestions
    """
    with span("insight_service.analyze_insights"):
        now = resolve_now(now)
        task_list = [t for t in tasks if space_id is None or t.space_id == space_id]
        roster = [m for m in members if space_id is None or m.space_id == space_id]

        insights = predict_category_needs(task_list, now=now) + detect_member_anomalies(task_list, roster, now=now)
        logger.info(
            "Generated %d insights",
            len(insights),
            extra={"space_id": space_id, "task_count": len(task_list), "member_count": len(roster)},
        )
        return insights


def _time_of_day(moment: datetime) -> str:
    hour = moment.hour
    if Constants.MORNING_START_HOUR <= hour < Constants.AFTERNOON_START_HOUR:
        return "morning"
    if Constants.AFTERNOON_START_HOUR <= hour < Constants.EVENING_START_HOUR:
        return "afternoon"
    return "evening"


def _consistency_score(gaps: list[float]) -> float:
    """100 for perfectly regular intervals, falling with their relative spread."""
    if len(gaps) < 2:  # noqa: PLR2004
        return 0.0
    mean_gap = statistics.fmean(gaps)
    if mean_gap == 0:
        return 100.0
    variation = statistics.pstdev(gaps) / mean_gap
    return min(100.0, max(0.0, 100.0 - 100.0 * variation))


def derive_user_habit(tasks: Iterable[Task], member_id: str) -> UserHabit:
    """Infer a member's completion habits from their done tasks.

    Preferred categories are the most frequently completed ones (ties favor the
    more recently completed category). Time of day uses UTC hours.
    """
    done = completed_tasks_for(tasks, member_id)
    if not done:
        return UserHabit(member_id=member_id)

    timestamps = [t.completed_on for t in done]
    gaps = _gaps_in_days(timestamps)
    category_counts = Counter(t.category for t in done)
    time_buckets = Counter(_time_of_day(ts) for ts in timestamps)

    return UserHabit(
        member_id=member_id,
        preferred_categories=[c for c, _ in category_counts.most_common(Constants.HABIT_TOP_CATEGORIES)],
        average_days_between_tasks=statistics.fmean(gaps) if gaps else 0.0,
        usual_time_of_day=time_buckets.most_common(1)[0][0],
        consistency_score=_consistency_score(gaps),
    )


def generate_reminder_message(insight: Insight) -> str:
    """Turn an insight into a friendly reminder message."""
    if insight.kind == InsightKind.PREDICTION:
        return f"Hey! It looks like {insight.title}. {insight.description} Want to create a task for it?"
    if insight.kind == InsightKind.ANOMALY:
        return f"{insight.title}. {insight.description} A gentle nudge might help!"
    return insight.description
