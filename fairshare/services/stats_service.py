"""Statistics aggregation over a space's task history.

Every member gets a FairnessStats built only from tasks that are done and
assigned to them. Empty input yields zeroed stats, never an error.
"""

import logging
from collections.abc import Iterable, Sequence

from fairshare.core.logging import span
from fairshare.domain.member import Member
from fairshare.domain.task import DifficultyBand, Task
from fairshare.models.service_models import FairnessStats


logger = logging.getLogger(__name__)


def completed_tasks_for(tasks: Iterable[Task], member_id: str) -> list[Task]:
    """Return the member's completed tasks, most recent completion first."""
    done = [t for t in tasks if t.is_done and t.assigned_to == member_id]
    return sorted(done, key=lambda t: t.completed_on, reverse=True)


def compute_stats(tasks: Iterable[Task], member_id: str, space_id: str) -> FairnessStats:
    """Compute FairnessStats for a single member.

    Args:
        tasks: All tasks of the space (any status)
        member_id: Member to summarize
        space_id: Space the stats belong to

    Returns:
        FairnessStats; a member with no completions gets zero points and
        avg_difficulty 0.0
    """
    done = completed_tasks_for(tasks, member_id)

    bands = {band: 0 for band in DifficultyBand}
    for task in done:
        bands[task.band] += 1

    total_points = sum(t.difficulty for t in done)
    return FairnessStats(
        member_id=member_id,
        space_id=space_id,
        total_points=total_points,
        tasks_completed=len(done),
        easy_tasks=bands[DifficultyBand.EASY],
        medium_tasks=bands[DifficultyBand.MEDIUM],
        hard_tasks=bands[DifficultyBand.HARD],
        avg_difficulty=total_points / max(len(done), 1),
        last_task_date=done[0].completed_on if done else None,
    )


def compute_member_stats(tasks: Iterable[Task], members: Iterable[Member]) -> list[FairnessStats]:
    """Compute FairnessStats for every member of the roster, in roster order."""
    with span("stats_service.compute_member_stats"):
        task_list = list(tasks)
        stats = [compute_stats(task_list, m.user_id, m.space_id) for m in members]
        logger.debug("Computed stats for %d members from %d tasks", len(stats), len(task_list))
        return stats


def average_points(stats: Sequence[FairnessStats]) -> float:
    """Mean total_points across members, 0.0 for an empty group."""
    if not stats:
        return 0.0
    return sum(s.total_points for s in stats) / len(stats)
