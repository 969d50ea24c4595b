"""Fairness score of one member relative to the group."""

import logging
from collections.abc import Sequence

from fairshare.core.config import Constants
from fairshare.models.service_models import FairnessStats
from fairshare.services.stats_service import average_points


logger = logging.getLogger(__name__)


def _deviation_score(value: float, average: float) -> float:
    """Map a relative deviation from the average onto 0..100."""
    deviation = abs(value - average) / max(average, 1)
    return max(0.0, Constants.FAIRNESS_MAX - Constants.FAIRNESS_DEVIATION_MULTIPLIER * deviation)


def fairness_score(member_stats: FairnessStats, all_stats: Sequence[FairnessStats]) -> int:
    """Score how close a member's workload sits to the group average.

    Points deviation weighs 60%, average-difficulty deviation 40%. Each
    deviation is relative to the group mean (denominator at least 1) and costs
    50 points per 100% of deviation.

    Args:
        member_stats: Stats of the member being scored
        all_stats: Stats of every member of the space

    Returns:
        Integer 0-100; always 100 for a group of fewer than two members
    """
    if len(all_stats) < 2:  # noqa: PLR2004
        return Constants.FAIRNESS_MAX

    avg_difficulty = sum(s.avg_difficulty for s in all_stats) / len(all_stats)

    points_score = _deviation_score(member_stats.total_points, average_points(all_stats))
    difficulty_score = _deviation_score(member_stats.avg_difficulty, avg_difficulty)

    score = round(
        Constants.FAIRNESS_POINTS_WEIGHT * points_score + Constants.FAIRNESS_DIFFICULTY_WEIGHT * difficulty_score
    )
    logger.debug("Fairness score for member %s: %d", member_stats.member_id, score)
    return min(Constants.FAIRNESS_MAX, max(0, score))
