"""Tests for pool resolution from deletion state and comment history."""

from datetime import timedelta

import pytest
from pydantic import ValidationError

from leadpool.core.exceptions import DataIntegrityError
from leadpool.schemas.common import Category, DeletionState, Pool
from leadpool.schemas.record import Comment
from leadpool.services.category_resolver import (
    category_to_pool,
    latest_comment,
    resolve_pool,
)


class TestCategoryToPool:
    @pytest.mark.parametrize(
        "category,pool",
        [
            (Category.HOT, Pool.PRIME),
            (Category.FOLLOW_UP, Pool.ACTIVE),
            (Category.BLOCK, Pool.INACTIVE),
            (Category.GENERAL, Pool.GENERAL),
            (Category.PAID, Pool.GENERAL),
            (Category.SEO, Pool.GENERAL),
        ],
    )
    def test_mapping(self, category, pool):
        assert category_to_pool(category) == pool

    def test_accepts_raw_string_value(self):
        assert category_to_pool("follow_up") == Pool.ACTIVE

    def test_unknown_category_raises(self):
        with pytest.raises(DataIntegrityError):
            category_to_pool("urgent")


class TestLatestComment:
    def test_empty_history(self):
        assert latest_comment([]) is None

    def test_picks_most_recent_regardless_of_order(self, make_comment):
        old = make_comment(Category.FOLLOW_UP, hours_ago=48)
        new = make_comment(Category.HOT, hours_ago=1)
        assert latest_comment([new, old]) is new
        assert latest_comment([old, new]) is new

    def test_tie_on_timestamp_goes_to_highest_id(self, make_comment, now):
        stamp = now - timedelta(hours=3)
        low = make_comment(Category.BLOCK, created_at=stamp, comment_id="9")
        high = make_comment(Category.HOT, created_at=stamp, comment_id="10")
        # numeric ids compare numerically, not lexically
        assert latest_comment([high, low]) is high
        assert latest_comment([low, high]) is high

    def test_numeric_ids_rank_below_string_ids(self, make_comment, now):
        stamp = now - timedelta(hours=3)
        numeric = make_comment(Category.BLOCK, created_at=stamp, comment_id="500")
        uuid_like = make_comment(
            Category.GENERAL, created_at=stamp, comment_id="a1b2c3"
        )
        assert latest_comment([uuid_like, numeric]) is uuid_like

    def test_unicode_digit_ids_are_not_numeric(self, make_comment, now):
        stamp = now - timedelta(hours=3)
        numeric = make_comment(Category.BLOCK, created_at=stamp, comment_id="900")
        superscript = make_comment(Category.HOT, created_at=stamp, comment_id="²")
        assert latest_comment([superscript, numeric]) is superscript
        assert latest_comment([numeric, superscript]) is superscript

    def test_identical_keys_fall_back_to_position(self, make_comment, now):
        stamp = now - timedelta(hours=3)
        first = make_comment(Category.BLOCK, created_at=stamp, comment_id="7")
        second = make_comment(Category.HOT, created_at=stamp, comment_id="7")
        assert latest_comment([first, second]) is second

    def test_repeated_calls_are_stable(self, make_comment):
        comments = [
            make_comment(Category.GENERAL, hours_ago=5),
            make_comment(Category.HOT, hours_ago=2),
            make_comment(Category.FOLLOW_UP, hours_ago=9),
        ]
        first = latest_comment(comments)
        assert all(latest_comment(comments) is first for _ in range(5))


class TestResolvePool:
    def test_no_comments_is_uncategorized(self, make_record):
        assert resolve_pool(make_record()) == Pool.UNCATEGORIZED

    def test_latest_comment_wins(self, make_record, make_comment):
        """FOLLOW_UP yesterday then HOT today lands in PRIME."""
        record = make_record(
            comments=[
                make_comment(Category.FOLLOW_UP, hours_ago=26),
                make_comment(Category.HOT, hours_ago=2),
            ]
        )
        assert resolve_pool(record) == Pool.PRIME

    def test_newer_general_demotes_from_prime(self, make_record, make_comment):
        record = make_record(
            comments=[
                make_comment(Category.GENERAL, hours_ago=1),
                make_comment(Category.HOT, hours_ago=30),
            ]
        )
        assert resolve_pool(record) == Pool.GENERAL

    def test_block_comment_on_active_record_is_inactive_pool(
        self, make_record, make_comment
    ):
        record = make_record(comments=[make_comment(Category.BLOCK)])
        assert record.is_active
        assert resolve_pool(record) == Pool.INACTIVE

    def test_inactive_state_overrides_hot_comment(self, make_record, make_comment):
        record = make_record(
            deletion_state=DeletionState.INACTIVE,
            comments=[make_comment(Category.HOT, hours_ago=1)],
        )
        assert resolve_pool(record) == Pool.INACTIVE

    def test_inactive_without_comments(self, make_record):
        record = make_record(deletion_state=DeletionState.INACTIVE)
        assert resolve_pool(record) == Pool.INACTIVE

    @pytest.mark.parametrize(
        "state", [DeletionState.TEAM_LEAD_RECYCLE, DeletionState.ADMIN_RECYCLE]
    )
    def test_recycle_states_resolve_to_recycled(
        self, make_record, make_comment, state
    ):
        record = make_record(
            deletion_state=state, comments=[make_comment(Category.HOT)]
        )
        assert resolve_pool(record) == Pool.RECYCLED

    def test_unknown_category_rejected_at_construction(self, now):
        with pytest.raises(ValidationError):
            Comment(
                id="1",
                text="?",
                category="urgent",
                created_at=now,
            )

    def test_bad_category_reports_record_id(self, make_record, now):
        """A category that slipped past validation still fails loudly."""
        bogus = Comment.model_construct(
            id="1", author_id=None, text="", category="urgent", created_at=now
        )
        record = make_record(record_id="c-42").model_copy(
            update={"comments": [bogus]}
        )
        with pytest.raises(DataIntegrityError) as exc_info:
            resolve_pool(record)
        assert exc_info.value.record_id == "c-42"
