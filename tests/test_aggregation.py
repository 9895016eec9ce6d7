"""Tests for dashboard count aggregation and batch resolution."""

from datetime import timedelta
from uuid import UUID

import pytest

from leadpool.schemas.common import Category, DeletionState, GroupKey, Origin, Pool
from leadpool.schemas.engine import PoolCounts
from leadpool.schemas.record import Record, ShareGrant
from leadpool.services.aggregation import aggregate, resolve_batch, todays_activity


@pytest.fixture
def snapshot(make_record, make_comment, employee, other_employee, outsider, team_lead):
    """A mixed set of records across owners, pools and recycle tiers."""
    return [
        make_record(record_id="r1", comments=[make_comment(Category.HOT)]),
        make_record(record_id="r2"),
        make_record(record_id="r3", hours_since_assignment=25),
        make_record(
            record_id="r4",
            assigned_to=other_employee.user_id,
            comments=[make_comment(Category.FOLLOW_UP)],
        ),
        make_record(
            record_id="r5",
            assigned_to=outsider.user_id,
            comments=[make_comment(Category.GENERAL)],
        ),
        make_record(
            record_id="r6",
            deletion_state=DeletionState.TEAM_LEAD_RECYCLE,
            deleted_by=employee.user_id,
        ),
        make_record(
            record_id="r7",
            assigned_to=outsider.user_id,
            deletion_state=DeletionState.ADMIN_RECYCLE,
            deleted_by=team_lead.user_id,
        ),
        make_record(
            record_id="r8",
            assigned_to=None,
            assigned_at=None,
            comments=[make_comment(Category.HOT)],
        ),
    ]


class TestAggregateCounts:
    def test_team_lead_counts_own_team(
        self, snapshot, team_lead, employee, other_employee, now
    ):
        result = aggregate(snapshot, team_lead, now=now)
        assert set(result.counts) == {employee.user_id, other_employee.user_id}
        assert result.counts[employee.user_id] == PoolCounts(
            prime=1, uncategorized=2, assigned=1, recycled=1, total=4
        )
        assert result.counts[other_employee.user_id] == PoolCounts(active=1, total=1)
        assert result.skipped == 0

    def test_admin_counts_everyone(
        self, snapshot, admin, employee, other_employee, outsider, now
    ):
        result = aggregate(snapshot, admin, now=now)
        assert result.counts[employee.user_id] == PoolCounts(
            prime=1, uncategorized=2, assigned=1, total=3
        )
        assert result.counts[outsider.user_id] == PoolCounts(
            general=1, recycled=1, total=2
        )
        assert result.counts["unassigned"] == PoolCounts(prime=1, total=1)
        assert list(result.counts) == sorted(result.counts)

    def test_employee_counts_only_self(self, snapshot, employee, now):
        result = aggregate(snapshot, employee, now=now)
        assert list(result.counts) == [employee.user_id]
        assert result.counts[employee.user_id].total == 3
        assert result.counts[employee.user_id].recycled == 0

    def test_stale_record_counted_but_not_assigned(self, make_record, employee, now):
        """Assigned 25 hours ago with no comments."""
        result = aggregate([make_record(hours_since_assignment=25)], employee, now=now)
        counts = result.counts[employee.user_id]
        assert counts.uncategorized == 1
        assert counts.assigned == 0

    def test_group_by_origin(self, make_record, make_comment, admin, employee, now):
        lead = make_record(
            record_id="s1",
            origin=Origin.SHARED_LEAD,
            assigned_to=None,
            assigned_at=None,
            comments=[make_comment(Category.HOT)],
        )
        result = aggregate(
            [make_record(), lead],
            admin,
            GroupKey.ORIGIN,
            grants=[ShareGrant(lead_id="s1", employee_id=employee.user_id)],
            now=now,
        )
        assert list(result.counts) == ["company", "shared_lead"]
        assert result.counts["shared_lead"].prime == 1

    def test_group_by_none(self, snapshot, admin, now):
        result = aggregate(snapshot, admin, "none", now=now)
        assert list(result.counts) == ["all"]
        assert result.counts["all"].total == 7

    def test_shared_lead_grouped_under_grant_holder(
        self, make_record, make_comment, team_lead, other_employee, now
    ):
        lead = make_record(
            record_id="s1",
            origin=Origin.SHARED_LEAD,
            assigned_to=None,
            assigned_at=None,
            comments=[make_comment(Category.FOLLOW_UP)],
        )
        grants = [
            ShareGrant(
                lead_id="s1",
                employee_id=other_employee.user_id,
                shared_at=now - timedelta(days=1),
            )
        ]
        result = aggregate([lead], team_lead, grants=grants, now=now)
        assert result.counts == {other_employee.user_id: PoolCounts(active=1, total=1)}


class TestAggregateProperties:
    def test_idempotent(self, snapshot, admin, now):
        first = aggregate(snapshot, admin, now=now)
        second = aggregate(snapshot, admin, now=now)
        assert first == second

    def test_order_independent(self, snapshot, team_lead, now):
        forward = aggregate(snapshot, team_lead, now=now)
        backward = aggregate(list(reversed(snapshot)), team_lead, now=now)
        assert forward.model_dump() == backward.model_dump()

    def test_each_record_counted_once(self, snapshot, admin, now):
        result = aggregate(snapshot, admin, now=now)
        assert sum(c.total for c in result.counts.values()) == 7

    def test_empty_input(self, admin, now):
        result = aggregate([], admin, now=now)
        assert result.counts == {}
        assert result.skipped == 0


class TestMalformedInput:
    def test_malformed_records_are_skipped_and_reported(
        self, make_record, employee, now
    ):
        broken = Record(
            id="broken",
            origin=Origin.COMPANY,
            assigned_to=employee.user_id,
            created_at=now,
            deletion_state=DeletionState.INACTIVE,
        )
        raw_bad_category = {
            "id": "raw-1",
            "origin": "company",
            "assigned_to_id": employee.user_id,
            "created_at": now,
            "comments": [{"id": 1, "category": "urgent", "created_at": now}],
        }
        result = aggregate(
            [broken, make_record(), raw_bad_category], employee, now=now
        )
        assert result.skipped == 2
        assert {f.record_id for f in result.failures} == {"broken", "raw-1"}
        assert result.counts[employee.user_id].total == 1

    def test_raw_store_rows_are_normalized(self, employee, now):
        row = {
            "id": UUID("9b2f6f0e-0c55-4c39-9d0b-0a1c2d3e4f50"),
            "origin": "company",
            "assigned_to_id": UUID(employee.user_id),
            "assigned_at": (now - timedelta(days=2)).replace(tzinfo=None),
            "created_at": (now - timedelta(days=3)).replace(tzinfo=None),
            "deletion_state": None,
            "comments": [
                {
                    "id": 5,
                    "user_id": UUID(employee.user_id),
                    "comment_text": "Call back Tuesday",
                    "category": "hot",
                    "created_at": (now - timedelta(hours=3)).replace(tzinfo=None),
                }
            ],
        }
        result = aggregate([row], employee, now=now)
        assert result.counts[employee.user_id] == PoolCounts(prime=1, total=1)

    def test_unicode_digit_comment_id_does_not_sink_batch(
        self, make_record, make_comment, admin, employee, now
    ):
        stamp = now - timedelta(hours=2)
        good = make_record(record_id="g1", comments=[make_comment(Category.HOT)])
        odd = make_record(
            record_id="g2",
            comments=[
                make_comment(Category.BLOCK, created_at=stamp, comment_id="7"),
                make_comment(Category.FOLLOW_UP, created_at=stamp, comment_id="²"),
            ],
        )
        result = aggregate([good, odd], admin, now=now)
        assert result.skipped == 0
        assert result.counts[employee.user_id] == PoolCounts(
            prime=1, active=1, total=2
        )


class TestResolveBatch:
    def test_collects_successes_and_failures(self, make_record, make_comment, now):
        good = make_record(comments=[make_comment(Category.HOT)])
        bad = {"id": "raw-2", "origin": "company"}
        result = resolve_batch([good, bad])
        assert [(r.record.id, r.pool) for r in result.succeeded] == [
            (good.id, Pool.PRIME)
        ]
        assert [f.record_id for f in result.failed] == ["raw-2"]


class TestTodaysActivity:
    def test_counts_records_commented_today(
        self, make_record, make_comment, employee, other_employee, team_lead, now
    ):
        records = [
            make_record(comments=[make_comment(Category.HOT, hours_ago=1)]),
            make_record(comments=[make_comment(Category.GENERAL, hours_ago=20)]),
            make_record(
                deletion_state=DeletionState.INACTIVE,
                comments=[make_comment(Category.BLOCK, hours_ago=1)],
            ),
            make_record(
                assigned_to=other_employee.user_id,
                comments=[make_comment(Category.FOLLOW_UP, hours_ago=2)],
            ),
        ]
        assert todays_activity(records, employee, now=now) == 1
        assert todays_activity(records, team_lead, now=now) == 2
