"""
Tests for the retention filter.

Tests verify which tags a policy selects for deletion and in what order.
"""

from datetime import timedelta

import pytest

from registry_prune.error_utils import ErrorKind, PruneError
from registry_prune.retention import RetentionPolicy, filter_tags, parse_duration, sort_by_recency


@pytest.fixture
def five_tags(make_tag):
    """t5 newest .. t1 oldest, one day apart, given oldest first"""
    return [make_tag(f"t{i}", age=timedelta(days=5 - i)) for i in range(1, 6)]


def names(tags):
    return [tag.name for tag in tags]


class TestParseDuration:
    """Tests for parse_duration"""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("3d", timedelta(days=3)),
            ("12h", timedelta(hours=12)),
            ("1w 2d", timedelta(days=9)),
            ("12h30m", timedelta(hours=12, minutes=30)),
            ("2M", timedelta(days=60)),
            ("1y", timedelta(days=365)),
            ("3 days", timedelta(days=3)),
            ("90s", timedelta(seconds=90)),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "   ", "d3", "3", "3x", "3d garbage", "0d", "99999999999999y"])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_duration(text)


class TestRetentionPolicy:
    """Tests for RetentionPolicy validation"""

    def test_rejects_negative_keep_last(self):
        with pytest.raises(ValueError):
            RetentionPolicy(keep_last=-1)

    def test_describe(self):
        assert RetentionPolicy().describe() == "keep nothing"
        assert "keep last 2" in RetentionPolicy(keep_last=2).describe()


class TestFilterTags:
    """Tests for filter_tags"""

    def test_keep_last_keeps_most_recent(self, five_tags, now):
        plan = filter_tags(RetentionPolicy(keep_last=2), five_tags, now=now)
        assert names(plan) == ["t3", "t2", "t1"]

    @pytest.mark.parametrize("keep_last", [0, 1, 2, 3, 4])
    def test_keep_last_plan_size_and_order(self, five_tags, now, keep_last):
        plan = filter_tags(RetentionPolicy(keep_last=keep_last), five_tags, now=now)
        retained = [tag for tag in five_tags if tag not in plan]

        assert len(plan) == len(five_tags) - keep_last
        assert len(retained) == keep_last
        for deleted in plan:
            for kept in retained:
                assert deleted.updated_at < kept.updated_at

    def test_plan_is_newest_first(self, five_tags, now):
        plan = filter_tags(RetentionPolicy(keep_last=0), five_tags, now=now)
        assert names(plan) == ["t5", "t4", "t3", "t2", "t1"]
        assert isinstance(plan, tuple)

    def test_no_policy_deletes_everything(self, five_tags, now):
        plan = filter_tags(RetentionPolicy(), five_tags, now=now)
        assert len(plan) == 5

    def test_keep_last_at_least_tag_count_is_no_match(self, five_tags, now):
        for keep_last in (5, 10):
            with pytest.raises(PruneError) as exc_info:
                filter_tags(RetentionPolicy(keep_last=keep_last), five_tags, now=now)
            assert exc_info.value.kind is ErrorKind.NO_MATCHING_IMAGE_TAGS

    def test_empty_tag_list(self, now):
        with pytest.raises(PruneError) as exc_info:
            filter_tags(RetentionPolicy(keep_last=1), [], now=now)
        assert exc_info.value.kind is ErrorKind.NO_IMAGE_TAGS

    def test_keep_within_only(self, five_tags, now):
        # t5 (0d) and t4 (1d) are within 36h; t3 (2d) is not
        plan = filter_tags(RetentionPolicy(keep_within=timedelta(hours=36)), five_tags, now=now)
        assert names(plan) == ["t3", "t2", "t1"]

    def test_keep_within_boundary_is_deleted(self, five_tags, now):
        # t4 is exactly 1 day old: not strictly within 1 day
        plan = filter_tags(RetentionPolicy(keep_within=timedelta(days=1)), five_tags, now=now)
        assert names(plan) == ["t4", "t3", "t2", "t1"]

    def test_either_rule_retains(self, five_tags, now):
        # keep_last=1 keeps t5, keep_within=3.5d keeps t5..t2
        policy = RetentionPolicy(keep_last=1, keep_within=timedelta(days=3, hours=12))
        plan = filter_tags(policy, five_tags, now=now)
        assert names(plan) == ["t1"]

    def test_keep_last_retains_old_tags_outside_keep_within(self, five_tags, now):
        policy = RetentionPolicy(keep_last=3, keep_within=timedelta(hours=1))
        plan = filter_tags(policy, five_tags, now=now)
        assert names(plan) == ["t2", "t1"]

    def test_ties_keep_input_order(self, make_tag, now):
        a = make_tag("a", tag_id="a")
        b = make_tag("b", tag_id="b")
        c = make_tag("c", tag_id="c")
        assert names(sort_by_recency([a, b, c])) == ["a", "b", "c"]
        assert names(sort_by_recency([c, a, b])) == ["c", "a", "b"]
