import pytest

from activity_ledger.normalizers.base import find_duplicate_slugs, latest_per_key
from activity_ledger.normalizers.github import (
    activities_from_comments,
    activities_from_commits,
    activities_from_issues,
    activities_from_pull_requests,
    scoped_slug,
)


@pytest.fixture
def merged_pr() -> dict:
    return {
        "number": 42,
        "title": "Add ledger",
        "url": "https://github.com/acme/ledger/pull/42",
        "author": "alice",
        "created_at": "2024-05-01T10:00:00Z",
        "merged_at": "2024-05-02T10:00:00Z",
        "merged_by": "bob",
        "reviews": [
            {
                "id": "R1",
                "author": "bob",
                "state": "APPROVED",
                "submitted_at": "2024-05-01T12:00:00Z",
                "html_url": "https://github.com/acme/ledger/pull/42#R1",
            },
            {
                "id": "R2",
                "author": "carol",
                "state": "DISMISSED",
                "submitted_at": "2024-05-01T13:00:00Z",
            },
            {"id": "R3", "author": "dave", "state": "PENDING"},
        ],
    }


class TestPullRequests:
    """Tests for pull request normalization."""

    def test_opened_merged_and_reviewed(self, merged_pr: dict) -> None:
        result = activities_from_pull_requests([merged_pr], "ledger")

        slugs = [a.slug for a in result.activities]
        assert slugs == [
            "pr_opened_ledger#42",
            "pr_merged_ledger#42",
            "pr_reviewed_ledger#42_APPROVED_R1",
        ]
        assert result.dropped == 0

    def test_merge_credited_to_author(self, merged_pr: dict) -> None:
        result = activities_from_pull_requests([merged_pr], "ledger")
        merged = next(a for a in result.activities if a.activity_definition == "pr_merged")
        assert merged.contributor == "alice"

    def test_dismissed_and_pending_reviews_dropped(self, merged_pr: dict) -> None:
        result = activities_from_pull_requests([merged_pr], "ledger")
        reviewers = {a.contributor for a in result.activities if a.activity_definition == "pr_reviewed"}
        assert reviewers == {"bob"}

    def test_slugs_are_deterministic(self, merged_pr: dict) -> None:
        first = activities_from_pull_requests([merged_pr], "ledger")
        second = activities_from_pull_requests([dict(merged_pr)], "ledger")
        assert [a.slug for a in first.activities] == [a.slug for a in second.activities]

    def test_unmerged_pr_has_no_merge_activity(self, merged_pr: dict) -> None:
        merged_pr.update(merged_at=None, merged_by=None, reviews=[])
        result = activities_from_pull_requests([merged_pr], "ledger")
        assert [a.activity_definition for a in result.activities] == ["pr_opened"]

    def test_malformed_pr_does_not_affect_siblings(self, merged_pr: dict) -> None:
        no_author = {**merged_pr, "number": 43, "author": None}
        no_number = {"title": "Broken", "url": "x", "created_at": "2024-05-01T10:00:00Z"}

        result = activities_from_pull_requests([no_author, merged_pr, no_number], "ledger")

        assert result.dropped == 2
        assert {m.kind for m in result.malformed} == {"pull_request"}
        assert "pr_opened_ledger#42" in [a.slug for a in result.activities]

    def test_bot_authors_collected(self, merged_pr: dict) -> None:
        bot_pr = {
            **merged_pr,
            "number": 50,
            "author": "renovate",
            "author_type": "Bot",
            "reviews": [],
        }
        result = activities_from_pull_requests([merged_pr, bot_pr], "ledger")
        assert result.bot_logins == {"renovate"}

    def test_meta_is_tagged_github(self, merged_pr: dict) -> None:
        result = activities_from_pull_requests([merged_pr], "ledger")
        review = result.activities[-1]
        assert review.meta.platform == "github"
        assert review.meta.review_state == "APPROVED"
        assert review.meta.number == 42


class TestIssues:
    """Tests for issue normalization."""

    @pytest.fixture
    def issue(self) -> dict:
        return {
            "number": 7,
            "title": "Crash on start",
            "url": "https://github.com/acme/ledger/issues/7",
            "author": "carol",
            "created_at": "2024-05-01T09:00:00Z",
            "closed": True,
            "closed_at": "2024-05-03T09:00:00Z",
            "closed_by": "bob",
            "assign_events": [
                {"createdAt": "2024-05-02T15:00:00Z", "assignee": "alice"},
                {"createdAt": "2024-05-02T09:00:00Z", "assignee": "alice"},
                {"createdAt": "2024-05-02T12:00:00Z", "assignee": "alice"},
            ],
        }

    def test_latest_assignment_wins(self, issue: dict) -> None:
        result = activities_from_issues([issue], "ledger")

        assigned = [a for a in result.activities if a.activity_definition == "issue_assigned"]
        assert len(assigned) == 1
        assert assigned[0].slug == "issue_assigned_ledger#7_alice"
        assert assigned[0].occurred_at.isoformat() == "2024-05-02T15:00:00+00:00"

    def test_latest_assignment_ignores_arrival_order(self, issue: dict) -> None:
        shuffled = {**issue, "assign_events": list(reversed(issue["assign_events"]))}
        result = activities_from_issues([shuffled], "ledger")
        assigned = next(a for a in result.activities if a.activity_definition == "issue_assigned")
        assert assigned.occurred_at.hour == 15

    def test_one_assignment_per_assignee(self, issue: dict) -> None:
        issue["assign_events"].append({"createdAt": "2024-05-02T10:00:00Z", "assignee": "dave"})
        result = activities_from_issues([issue], "ledger")
        assignees = sorted(
            a.contributor for a in result.activities if a.activity_definition == "issue_assigned"
        )
        assert assignees == ["alice", "dave"]

    def test_closed_credited_to_closer(self, issue: dict) -> None:
        result = activities_from_issues([issue], "ledger")
        closed = next(a for a in result.activities if a.activity_definition == "issue_closed")
        assert closed.contributor == "bob"
        assert closed.slug == "issue_closed_ledger#7"

    def test_assignment_without_assignee_is_malformed(self, issue: dict) -> None:
        issue["assign_events"] = [{"createdAt": "2024-05-02T10:00:00Z", "assignee": None}]
        result = activities_from_issues([issue], "ledger")
        assert result.dropped == 1
        assert result.malformed[0].kind == "issue_assignment"
        assert [a.activity_definition for a in result.activities] == [
            "issue_opened",
            "issue_closed",
        ]


class TestCommentsAndCommits:
    """Tests for comment and commit normalization."""

    def test_comment_slug(self) -> None:
        comment = {
            "id": "C1",
            "issue_number": 7,
            "body": "Looks good",
            "created_at": "2024-05-01T09:00:00Z",
            "author": "bob",
        }
        result = activities_from_comments([comment], "ledger")
        assert result.activities[0].slug == "comment_created_ledger#7_C1"

    def test_comment_without_issue_number_dropped(self) -> None:
        comment = {"id": "C2", "created_at": "2024-05-01T09:00:00Z", "author": "bob"}
        result = activities_from_comments([comment], "ledger")
        assert result.activities == []
        assert result.malformed[0].event_id == "C2"

    def test_commit_slug_scoped_by_branch(self) -> None:
        commit = {
            "commitId": "abc123",
            "branchName": "main",
            "author": "alice",
            "committedDate": "2024-05-01T09:00:00Z",
            "commitMessage": "Fix typo",
        }
        result = activities_from_commits([commit])
        activity = result.activities[0]
        assert activity.slug == "commit_created_main_abc123"
        assert activity.text == "Fix typo"

    def test_results_combine(self) -> None:
        commit = {
            "commitId": "abc123",
            "branchName": "main",
            "author": "alice",
            "committedDate": "2024-05-01T09:00:00Z",
        }
        broken = {"commitId": "def456", "branchName": "main", "author": None}
        combined = activities_from_commits([commit]) + activities_from_commits([broken])
        assert len(combined.activities) == 1
        assert combined.dropped == 1


class TestFolding:
    """Tests for the generic folding helpers."""

    def test_latest_per_key_keeps_latest(self) -> None:
        items = [("a", 3), ("a", 1), ("b", 2), ("a", 2)]
        latest = latest_per_key(items, key=lambda i: i[0], timestamp=lambda i: i[1])
        assert latest == {"a": ("a", 3), "b": ("b", 2)}

    def test_find_duplicate_slugs(self, make_activity) -> None:
        activities = [
            make_activity(slug="x"),
            make_activity(slug="y"),
            make_activity(slug="x"),
        ]
        assert find_duplicate_slugs(activities) == ["x"]


class TestScopedSlug:
    """Tests for repository-scoped slugs shared by pull requests, issues and comments."""

    def test_issue_and_comment_slugs(self) -> None:
        from activity_ledger.db.models.activity import ActivityType

        assert scoped_slug(ActivityType.ISSUE_OPENED, "ledger", 7) == "issue_opened_ledger#7"
        assert scoped_slug(ActivityType.COMMENT_CREATED, "ledger", "9") == "comment_created_ledger#9"
