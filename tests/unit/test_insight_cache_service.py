"""Unit tests for insight_cache_service module."""

from datetime import timedelta

import pytest

from fairshare.domain.insight import InsightKind, InsightStatus
from fairshare.domain.task import TaskCategory
from fairshare.services import insight_cache_service
from tests.unit.conftest import NOW, SPACE_ID


@pytest.fixture
def kitchen_history(make_done):
    """History that yields exactly one kitchen prediction and nothing else."""
    return [
        *[make_done("alice", category=TaskCategory.KITCHEN, days_ago=d) for d in (30, 25, 20)],
        make_done("alice", category=TaskCategory.TRASH, days_ago=1),
    ]


@pytest.fixture
def solo(members):
    """Single-member roster so no member insights are produced."""
    return members[:1]


async def _get(tasks, roster, *, member_id="alice", now=NOW):
    return await insight_cache_service.get_insights(
        space_id=SPACE_ID, member_id=member_id, tasks=tasks, members=roster, now=now
    )


@pytest.mark.unit
class TestToStoreTimestamp:
    """Tests for to_store_timestamp function."""

    def test_utc_with_microseconds(self):
        """Timestamps are fixed-width UTC with a Z suffix."""
        assert insight_cache_service.to_store_timestamp(NOW) == "2026-03-16T12:00:00.000000Z"

    def test_string_order_is_chronological(self):
        """Later moments sort after earlier ones as plain strings."""
        earlier = insight_cache_service.to_store_timestamp(NOW)
        later = insight_cache_service.to_store_timestamp(NOW + timedelta(microseconds=1))
        assert earlier < later

    def test_naive_is_read_as_utc(self):
        """Naive moments are formatted as if they were UTC."""
        assert insight_cache_service.to_store_timestamp(NOW.replace(tzinfo=None)) == "2026-03-16T12:00:00.000000Z"


@pytest.mark.unit
class TestGetInsights:
    """Tests for get_insights function."""

    async def test_first_call_persists_generated_insights(self, patched_db, kitchen_history, solo):
        """Fresh insights are stored as pending and returned with their ids."""
        [insight] = await _get(kitchen_history, solo)

        assert insight.id == "1000"
        assert insight.kind == InsightKind.PREDICTION
        assert insight.status == InsightStatus.PENDING
        assert insight.created_at == NOW

        [record] = patched_db.insights()
        assert record["space_id"] == SPACE_ID
        assert record["member_id"] == "alice"
        assert record["category"] == "kitchen"
        assert record["status"] == "pending"

    async def test_second_call_within_window_is_cached(self, patched_db, kitchen_history, solo, monkeypatch):
        """Repeated calls return the same insights without re-running the analyzer."""
        first = await _get(kitchen_history, solo)

        def _fail(*args, **kwargs):
            raise AssertionError("analyzer should not run")

        monkeypatch.setattr(insight_cache_service.insight_service, "analyze_insights", _fail)
        second = await _get(kitchen_history, solo, now=NOW + timedelta(hours=23))

        assert [i.id for i in second] == [i.id for i in first]
        assert second == first
        assert patched_db.create_calls == 1

    async def test_expired_window_regenerates(self, patched_db, kitchen_history, solo):
        """Insights older than the window are not reused."""
        first = await _get(kitchen_history, solo)
        second = await _get(kitchen_history, solo, now=NOW + timedelta(hours=25))

        assert [i.id for i in first] == ["1000"]
        assert [i.id for i in second] == ["1001"]
        assert len(patched_db.insights()) == 2

    async def test_window_is_configurable(self, patched_db, kitchen_history, solo, policy):
        """A shorter window expires sooner."""
        policy(insight_window_hours=1)
        await _get(kitchen_history, solo)
        second = await _get(kitchen_history, solo, now=NOW + timedelta(hours=2))

        assert [i.id for i in second] == ["1001"]

    async def test_cache_is_per_member(self, patched_db, kitchen_history, solo):
        """Another member of the same space gets their own insights."""
        await _get(kitchen_history, solo)
        bobs = await _get(kitchen_history, solo, member_id="bob")

        assert [i.id for i in bobs] == ["1001"]
        assert [r["member_id"] for r in patched_db.insights()] == ["alice", "bob"]

    async def test_closed_insights_are_not_reused(self, patched_db, kitchen_history, solo):
        """Once handled, an insight no longer blocks fresh analysis."""
        [first] = await _get(kitchen_history, solo)
        await insight_cache_service.update_insight_status(insight_id=first.id, status=InsightStatus.ACCEPTED)

        [second] = await _get(kitchen_history, solo)

        assert second.id != first.id
        assert second.status == InsightStatus.PENDING

    async def test_nothing_to_report_is_not_persisted(self, patched_db, solo):
        """An empty analysis stores nothing, so the next call analyzes again."""
        assert await _get([], solo) == []
        assert await _get([], solo) == []

        assert patched_db.create_calls == 0
        assert patched_db.list_calls == 2

    async def test_preserves_generation_order(self, patched_db, members, make_done):
        """Persisted insights come back in the analyzer's order."""
        tasks = [make_done("alice", category=TaskCategory.KITCHEN, difficulty=10, days_ago=d) for d in (30, 25, 20)]
        tasks += [
            make_done("bob", category=TaskCategory.TRASH, difficulty=10, days_ago=1),
            make_done("bob", category=TaskCategory.DISHES, difficulty=10, days_ago=1),
            make_done("carol", category=TaskCategory.LAUNDRY, difficulty=1, days_ago=1),
        ]

        first = await _get(tasks, members)
        cached = await _get(tasks, members)

        assert [i.kind for i in first] == [InsightKind.PREDICTION, InsightKind.SUGGESTION, InsightKind.ANOMALY]
        assert [i.id for i in cached] == [i.id for i in first]

    async def test_naive_now_is_treated_as_utc(self, patched_db, kitchen_history, solo):
        """A reference time without a timezone is stored and compared as UTC."""
        naive_now = NOW.replace(tzinfo=None)

        [first] = await _get(kitchen_history, solo, now=naive_now)
        second = await _get(kitchen_history, solo, now=naive_now + timedelta(hours=1))

        assert first.created_at == NOW
        assert patched_db.insights()[0]["created_at"] == "2026-03-16T12:00:00.000000Z"
        assert second == [first]

    async def test_store_failure_propagates(self, patched_db, kitchen_history, solo, monkeypatch):
        """Store errors are not swallowed."""

        async def _down(**kwargs):
            raise RuntimeError("Failed to list records from insights: database is locked")

        monkeypatch.setattr("fairshare.core.db_client.list_records", _down)

        with pytest.raises(RuntimeError, match="database is locked"):
            await _get(kitchen_history, solo)


@pytest.mark.unit
class TestUpdateInsightStatus:
    """Tests for update_insight_status function."""

    @pytest.fixture
    async def pending(self, patched_db, kitchen_history, solo):
        [insight] = await _get(kitchen_history, solo)
        return insight

    @pytest.mark.parametrize("status", [InsightStatus.ACCEPTED, InsightStatus.REJECTED, InsightStatus.SNOOZED])
    async def test_pending_can_be_closed(self, patched_db, pending, status):
        """Pending insights move to any closing status."""
        updated = await insight_cache_service.update_insight_status(insight_id=pending.id, status=status)

        assert updated.id == pending.id
        assert updated.status == status
        assert patched_db.insights()[0]["status"] == status.value

    async def test_accepts_plain_strings(self, patched_db, pending):
        """Status values may be passed as their string form."""
        updated = await insight_cache_service.update_insight_status(insight_id=pending.id, status="snoozed")
        assert updated.status == InsightStatus.SNOOZED

    async def test_change_time_is_stamped(self, patched_db, pending):
        """The given change time is written as updated_at."""
        await insight_cache_service.update_insight_status(
            insight_id=pending.id, status=InsightStatus.ACCEPTED, now=NOW + timedelta(hours=1)
        )

        [record] = patched_db.insights()
        assert record["updated_at"] == "2026-03-16T13:00:00.000000Z"
        assert record["created_at"] == "2026-03-16T12:00:00.000000Z"

    async def test_unknown_insight(self, patched_db):
        """Missing insights raise KeyError."""
        with pytest.raises(KeyError):
            await insight_cache_service.update_insight_status(insight_id="999", status=InsightStatus.ACCEPTED)

    async def test_closed_insight_cannot_change_again(self, patched_db, pending):
        """Closing statuses are terminal."""
        await insight_cache_service.update_insight_status(insight_id=pending.id, status=InsightStatus.REJECTED)

        with pytest.raises(ValueError, match="Cannot transition"):
            await insight_cache_service.update_insight_status(insight_id=pending.id, status=InsightStatus.ACCEPTED)

    async def test_cannot_reopen(self, patched_db, pending):
        """Pending is not a valid target status."""
        with pytest.raises(ValueError, match="Cannot transition"):
            await insight_cache_service.update_insight_status(insight_id=pending.id, status=InsightStatus.PENDING)

    async def test_unknown_status_value(self, patched_db, pending):
        """Values outside the status enum are rejected."""
        with pytest.raises(ValueError):
            await insight_cache_service.update_insight_status(insight_id=pending.id, status="done")
