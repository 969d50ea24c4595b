"""Bulk auto-assignment of open tasks across members.

Greedy single pass: members are ordered neediest first (fewest points),
tasks hardest first, and tasks are dealt round-robin starting with the
neediest member. No rebalancing happens after assignment.
"""

import logging
from collections.abc import Sequence

from fairshare.core.logging import span
from fairshare.domain.task import Task
from fairshare.models.service_models import FairnessStats


logger = logging.getLogger(__name__)


def auto_assign(tasks: Sequence[Task], all_stats: Sequence[FairnessStats]) -> dict[str, str]:
    """Assign every task to a member.

    Args:
        tasks: Open tasks to distribute
        all_stats: Stats of every member eligible for assignment

    Returns:
        Mapping of task ID to member ID covering every task exactly once,
        in assignment order (hardest task first)

    Raises:
        ValueError: If there are no members to assign to
    """
    with span("allocation_service.auto_assign"):
        if not all_stats:
            logger.error("Auto-assign requested with no members", extra={"task_count": len(tasks)})
            msg = "Cannot auto-assign tasks: no members to assign to"
            raise ValueError(msg)

        members = sorted(all_stats, key=lambda s: s.total_points)
        ordered_tasks = sorted(tasks, key=lambda t: t.difficulty, reverse=True)

        assignments: dict[str, str] = {}
        for index, task in enumerate(ordered_tasks):
            assignments[task.id] = members[index % len(members)].member_id

        logger.info("Auto-assigned %d tasks across %d members", len(assignments), len(members))
        return assignments
