from datetime import UTC, datetime

import pytest

from activity_ledger.core.batching import chunked
from activity_ledger.services.activity_service import (
    ConflictPolicy,
    collapse_duplicates,
    merge_activity,
    merge_text,
)
from activity_ledger.services.scoring import effective_points


class TestMergeText:
    """Tests for MERGE_TEXT text accumulation."""

    @pytest.mark.parametrize(
        ("existing", "incoming", "expected"),
        [
            (None, "x", "x"),
            ("", "x", "x"),
            ("x", None, "x"),
            ("x", "", "x"),
            ("x", "x", "x"),
            ("a", "b", "a\n\nb"),
            ("a\n\nb", "a\n\nb", "a\n\nb"),
            (None, None, None),
        ],
    )
    def test_merge_text(self, existing, incoming, expected) -> None:
        assert merge_text(existing, incoming) == expected


class TestMergeActivity:
    """Tests for folding two records with the same slug."""

    def test_keeps_earliest_timestamp(self, make_activity) -> None:
        early = make_activity(occurred_at=datetime(2024, 5, 10, 8, 0, tzinfo=UTC), text="a")
        late = make_activity(occurred_at=datetime(2024, 5, 10, 17, 0, tzinfo=UTC), text="b")

        merged = merge_activity(late, early)

        assert merged.occurred_at == datetime(2024, 5, 10, 8, 0, tzinfo=UTC)
        assert merged.text == "b\n\na"

    def test_other_fields_come_from_incoming(self, make_activity) -> None:
        merged = merge_activity(
            make_activity(title="old", text="a"),
            make_activity(title="new", text="a"),
        )
        assert merged.title == "new"
        assert merged.text == "a"


class TestCollapseDuplicates:
    """Tests for same-call duplicate slugs."""

    def test_replace_keeps_last(self, make_activity) -> None:
        activities = [
            make_activity(slug="s1", title="first"),
            make_activity(slug="s2"),
            make_activity(slug="s1", title="second"),
        ]
        collapsed = collapse_duplicates(activities, ConflictPolicy.REPLACE)
        assert [a.slug for a in collapsed] == ["s1", "s2"]
        assert collapsed[0].title == "second"

    def test_merge_text_folds(self, make_activity) -> None:
        activities = [
            make_activity(slug="s1", text="a"),
            make_activity(slug="s1", text="a"),
            make_activity(slug="s1", text="b"),
        ]
        collapsed = collapse_duplicates(activities, ConflictPolicy.MERGE_TEXT)
        assert len(collapsed) == 1
        assert collapsed[0].text == "a\n\nb"


class TestEffectivePoints:
    """Tests for point resolution."""

    def test_override_wins(self) -> None:
        assert effective_points(15, 7) == 15

    def test_zero_override_is_kept(self) -> None:
        assert effective_points(0, 7) == 0

    def test_falls_back_to_definition(self) -> None:
        assert effective_points(None, 7) == 7

    def test_missing_everything_is_zero(self) -> None:
        assert effective_points(None, None) == 0


class TestChunked:
    """Tests for the batching utility."""

    def test_splits_into_tuples(self) -> None:
        assert list(chunked([1, 2, 3, 4, 5], 2)) == [(1, 2), (3, 4), (5,)]

    def test_empty_input(self) -> None:
        assert list(chunked([], 3)) == []

    def test_rejects_non_positive_size(self) -> None:
        with pytest.raises(ValueError):
            list(chunked([1], 0))
