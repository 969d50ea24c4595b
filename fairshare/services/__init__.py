from fairshare.services import (
    allocation_service,
    fairness_service,
    insight_cache_service,
    insight_service,
    recommendation_service,
    stats_service,
)


__all__ = [
    "allocation_service",
    "fairness_service",
    "insight_cache_service",
    "insight_service",
    "recommendation_service",
    "stats_service",
]
