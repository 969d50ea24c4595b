"""Insight cache and de-duplication for one member of a space.

Repeated calls within the insight window return the member's pending
insights verbatim instead of re-running the analyzer. The lookup and the
writes are not atomic: two concurrent first calls can both persist a fresh
set, which callers treat as harmless duplicates.

Store failures propagate to the caller. insight_service.analyze_insights()
remains usable on its own when the store is down.
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import Any

from dateutil import parser as dateutil_parser

from fairshare.core import db_client
from fairshare.core.config import Constants, settings
from fairshare.core.db_client import sanitize_param
from fairshare.core.logging import log_with_context, log_with_space_context, span
from fairshare.domain.insight import Insight, InsightStatus
from fairshare.domain.member import Member
from fairshare.domain.task import Task, ensure_utc, resolve_now
from fairshare.services import insight_service


logger = logging.getLogger(__name__)

_CLOSED_STATUSES = frozenset({InsightStatus.ACCEPTED, InsightStatus.REJECTED, InsightStatus.SNOOZED})


def to_store_timestamp(moment: datetime) -> str:
    """Format a timestamp so that string order matches chronological order."""
    return ensure_utc(moment).isoformat(timespec="microseconds").replace("+00:00", "Z")


def _record_to_insight(record: dict[str, Any]) -> Insight:
    return Insight(
        id=record["id"],
        kind=record["kind"],
        title=record["title"],
        description=record["description"],
        confidence=record["confidence"],
        related_member_id=record.get("related_member_id"),
        related_task_id=record.get("related_task_id"),
        category=record.get("category"),
        action=record.get("action"),
        status=record["status"],
        created_at=dateutil_parser.isoparse(record["created_at"]),
    )


async def _find_pending_insights(*, space_id: str, member_id: str, since: datetime) -> list[Insight]:
    records = await db_client.list_records(
        collection=Constants.INSIGHTS_COLLECTION,
        filter_query=(
            f'space_id = "{sanitize_param(space_id)}" && member_id = "{sanitize_param(member_id)}" '
            f'&& status = "{InsightStatus.PENDING}" && created_at > "{to_store_timestamp(since)}"'
        ),
        sort="id ASC",
        per_page=Constants.DEFAULT_PER_PAGE_LIMIT,
    )
    return [_record_to_insight(r) for r in records]


async def _persist_insight(*, insight: Insight, space_id: str, member_id: str, now: datetime) -> Insight:
    timestamp = to_store_timestamp(now)
    record = await db_client.create_record(
        collection=Constants.INSIGHTS_COLLECTION,
        data={
            "created_at": timestamp,
            "updated_at": timestamp,
            "space_id": space_id,
            "member_id": member_id,
            "kind": insight.kind.value,
            "title": insight.title,
            "description": insight.description,
            "confidence": insight.confidence,
            "related_member_id": insight.related_member_id,
            "related_task_id": insight.related_task_id,
            "category": insight.category.value if insight.category else None,
            "action": insight.action.value if insight.action else None,
            "status": InsightStatus.PENDING.value,
        },
    )
    return _record_to_insight(record)


async def get_insights(
    *,
    space_id: str,
    member_id: str,
    tasks: Iterable[Task],
    members: Iterable[Member],
    now: datetime | None = None,
) -> list[Insight]:
    """Get insights for a member, reusing pending ones from the current window.

    Args:
        space_id: Space to analyze
        member_id: Member requesting insights
        tasks: Task history of the space
        members: Member roster of the space
        now: Reference time (defaults to current UTC time)

    Returns:
        Pending insights created within the window, or freshly generated and
        persisted insights when there are none

    Raises:
        RuntimeError: If the insight store fails
    """
    with span("insight_cache_service.get_insights"):
        now = resolve_now(now)
        since = now - timedelta(hours=settings.insight_window_hours)

        existing = await _find_pending_insights(space_id=space_id, member_id=member_id, since=since)
        if existing:
            log_with_space_context(
                logger, "debug", "Reusing pending insights", space_id=space_id, member_id=member_id, count=len(existing)
            )
            return existing

        generated = insight_service.analyze_insights(tasks, members, space_id=space_id, now=now)

        persisted = []
        for insight in generated:
            persisted.append(await _persist_insight(insight=insight, space_id=space_id, member_id=member_id, now=now))

        log_with_space_context(
            logger, "info", "Persisted new insights", space_id=space_id, member_id=member_id, count=len(persisted)
        )
        return persisted


async def update_insight_status(
    *,
    insight_id: str,
    status: InsightStatus,
    now: datetime | None = None,
) -> Insight:
    """Close a pending insight as accepted, rejected, or snoozed.

    Args:
        insight_id: Store ID of the insight
        status: New status
        now: Time of the change (defaults to current UTC time)

    Returns:
        The updated insight

    Raises:
        KeyError: If the insight does not exist
        ValueError: If the insight is not pending or the target status is not a closing one
    """
    with span("insight_cache_service.update_insight_status"):
        status = InsightStatus(status)
        record = await db_client.get_record(collection=Constants.INSIGHTS_COLLECTION, record_id=insight_id)

        current = InsightStatus(record["status"])
        if current != InsightStatus.PENDING or status not in _CLOSED_STATUSES:
            msg = f"Cannot transition insight {insight_id} from {current} to {status}"
            raise ValueError(msg)

        updated = await db_client.update_record(
            collection=Constants.INSIGHTS_COLLECTION,
            record_id=insight_id,
            data={"status": status.value, "updated_at": to_store_timestamp(resolve_now(now))},
        )
        log_with_context(logger, "info", "Insight status updated", insight_id=insight_id, status=status.value)
        return _record_to_insight(updated)
