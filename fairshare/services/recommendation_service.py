"""Task recommendations for a single member.

Each open task starts at a base score of 50 and is adjusted independently for:
- Workload balance: members below the group's average points get a boost,
  members well ahead get a penalty
- Category diversity: categories absent from the last few completions are
  favored, repeated ones discouraged
- Difficulty balance: hard tasks for members who rarely take them, fewer easy
  tasks for members who mostly take easy ones
- Preferences: declared preferred/avoided categories
- Urgency: tasks due within a day

Every adjustment records a reason. The first reason is the one surfaced; a
trailing "+N points" note guarantees there is always one.
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta

from fairshare.core.config import Constants, settings
from fairshare.core.logging import span
from fairshare.domain.task import DifficultyBand, Task, ensure_utc, resolve_now
from fairshare.models.service_models import FairnessStats, MemberHistory, TaskRecommendation
from fairshare.services.stats_service import average_points, completed_tasks_for


logger = logging.getLogger(__name__)


def recent_completed_tasks(tasks: Iterable[Task], member_id: str, limit: int | None = None) -> list[Task]:
    """Return a member's most recent completed tasks, newest first."""
    limit = settings.recent_history_size if limit is None else limit
    return completed_tasks_for(tasks, member_id)[:limit]


def _workload_adjustment(points_deficit: float) -> tuple[float, str | None]:
    if points_deficit > 0:
        return min(Constants.WORKLOAD_BONUS_CAP, points_deficit / 2), "You're below average on points"
    if points_deficit < Constants.WORKLOAD_AHEAD_THRESHOLD:
        return -Constants.WORKLOAD_AHEAD_PENALTY, "You're ahead on points - others may need this"
    return 0.0, None


def _diversity_adjustment(task: Task, recent_categories: list[str]) -> tuple[float, str | None]:
    category_count = recent_categories.count(task.category)
    if category_count == 0:
        return Constants.FRESH_CATEGORY_BONUS, f"You haven't done {task.category} recently"
    if category_count >= Constants.REPEATED_CATEGORY_MIN_COUNT:
        return -Constants.REPEATED_CATEGORY_PENALTY, f"You've done {task.category} often recently"
    return 0.0, None


def _difficulty_adjustment(task: Task, stats: FairnessStats) -> tuple[float, str | None]:
    hard_ratio = stats.hard_tasks / max(stats.tasks_completed, 1)
    if task.band == DifficultyBand.HARD and hard_ratio < Constants.HARD_RATIO_THRESHOLD:
        return Constants.HARD_TASK_BONUS, "Taking this hard task will balance your workload"
    if task.band == DifficultyBand.EASY and stats.easy_tasks > stats.hard_tasks * 2:
        return -Constants.EASY_TASK_PENALTY, "You've been taking mostly easy tasks"
    return 0.0, None


def _is_due_soon(task: Task, now: datetime) -> bool:
    # Overdue tasks count as due soon
    if task.due_date is None:
        return False
    return task.due_date - now < timedelta(hours=Constants.DUE_SOON_HOURS)


def score_task(
    task: Task,
    history: MemberHistory,
    points_deficit: float,
    recent_categories: list[str],
    *,
    now: datetime,
) -> TaskRecommendation:
    """Score one open task for the member described by `history`."""
    now = ensure_utc(now)
    score = Constants.BASE_SCORE
    reasons: list[str] = []

    for delta, reason in (
        _workload_adjustment(points_deficit),
        _diversity_adjustment(task, recent_categories),
        _difficulty_adjustment(task, history.stats),
    ):
        score += delta
        if reason:
            reasons.append(reason)

    if history.preferences is not None:
        if task.category in history.preferences.preferred_categories:
            score += Constants.PREFERRED_CATEGORY_BONUS
            reasons.append("Matches your preferences")
        if task.category in history.preferences.avoided_categories:
            score -= Constants.AVOIDED_CATEGORY_PENALTY
            reasons.append("You've marked this as avoided")

    if _is_due_soon(task, now):
        score += Constants.DUE_SOON_BONUS
        reasons.append("Due soon!")

    reasons.append(f"+{task.difficulty} points")

    return TaskRecommendation(
        task=task,
        score=min(Constants.MAX_SCORE, max(Constants.MIN_SCORE, score)),
        reason=reasons[0],
        reasons=reasons,
    )


def recommend_tasks(
    available_tasks: Sequence[Task],
    history: MemberHistory,
    all_stats: Sequence[FairnessStats],
    *,
    now: datetime | None = None,
) -> list[TaskRecommendation]:
    """Rank open tasks for one member.

    Args:
        available_tasks: Open (unassigned, todo) tasks of the space
        history: The requesting member's stats, recent completions and preferences
        all_stats: Stats of every member of the space
        now: Reference time for due-date urgency (defaults to current UTC time)

    Returns:
        One recommendation per task, sorted by score descending; equal scores
        keep their input order
    """
    with span("recommendation_service.recommend_tasks"):
        now = resolve_now(now)
        points_deficit = average_points(all_stats) - history.stats.total_points
        recent_categories = [t.category for t in history.recent_tasks[: settings.recent_history_size]]

        recommendations = [
            score_task(task, history, points_deficit, recent_categories, now=now) for task in available_tasks
        ]
        recommendations.sort(key=lambda r: r.score, reverse=True)

        logger.debug(
            "Ranked %d tasks for member %s (deficit %.1f)",
            len(recommendations),
            history.member_id,
            points_deficit,
        )
        return recommendations
