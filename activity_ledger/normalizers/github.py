"""Version-control events to ledger activities.

Slug formats (the idempotency contract; never change them for existing types):

    pr_opened_{repo}#{number}
    pr_merged_{repo}#{number}
    pr_reviewed_{repo}#{number}_{state}_{review_id}
    issue_opened_{repo}#{number}
    issue_closed_{repo}#{number}
    issue_assigned_{repo}#{number}_{assignee}
    comment_created_{repo}#{issue_number}_{comment_id}
    commit_created_{branch}_{sha}
"""

from collections.abc import Iterable
from typing import Any

from activity_ledger.api.schemas.activity import ActivityRecord, GitHubMeta
from activity_ledger.api.schemas.events import (
    Comment,
    Commit,
    Issue,
    IssueAssignEvent,
    PullRequest,
    PullRequestReview,
)
from activity_ledger.core.exceptions import MalformedEvent
from activity_ledger.core.timeutils import ensure_utc
from activity_ledger.db.models.activity import ActivityType
from activity_ledger.normalizers.base import (
    NormalizationResult,
    coerce_event,
    latest_per_key,
    require_author,
)

REVIEW_TITLES = {
    "COMMENTED": "Reviewed PR",
    "APPROVED": "Approved PR",
    "CHANGES_REQUESTED": "Changes requested on PR",
}


def scoped_slug(activity_type: ActivityType, repo: str, number: int | str) -> str:
    return f"{activity_type.value}_{repo}#{number}"


# =============================================================================
# Pull requests
# =============================================================================


def activities_from_pull_requests(
    pull_requests: Iterable[PullRequest | dict[str, Any]],
    repo: str,
) -> NormalizationResult:
    """PR opened, PR merged (credited to the author) and review activities."""
    result = NormalizationResult()

    for raw in pull_requests:
        try:
            pr = coerce_event(PullRequest, raw, "pull_request")
            author = require_author(pr.author, "pull_request", f"{repo}#{pr.number}")
        except MalformedEvent as exc:
            result.reject(exc)
            continue

        result.note_actor(pr.author, pr.author_type)
        meta = GitHubMeta(repository=repo, number=pr.number)

        result.add(
            ActivityRecord(
                slug=scoped_slug(ActivityType.PR_OPENED, repo, pr.number),
                contributor=author,
                activity_definition=ActivityType.PR_OPENED.value,
                title=f"Opened pull request #{pr.number}",
                text=pr.title,
                occurred_at=pr.created_at,
                link=pr.url,
                meta=meta,
            )
        )

        if pr.merged_at and pr.merged_by:
            result.add(
                ActivityRecord(
                    slug=scoped_slug(ActivityType.PR_MERGED, repo, pr.number),
                    contributor=author,
                    activity_definition=ActivityType.PR_MERGED.value,
                    title=f"Merged pull request #{pr.number}",
                    text=pr.title,
                    occurred_at=pr.merged_at,
                    link=pr.url,
                    meta=meta,
                )
            )

        for review in pr.reviews:
            try:
                activity = _review_activity(pr, review, repo, result)
            except MalformedEvent as exc:
                result.reject(exc)
                continue
            if activity is not None:
                result.add(activity)

    return result


def _review_activity(
    pr: PullRequest,
    review: PullRequestReview,
    repo: str,
    result: NormalizationResult,
) -> ActivityRecord | None:
    title_prefix = REVIEW_TITLES.get(review.state)
    if title_prefix is None:
        # DISMISSED, PENDING
        return None

    reviewer = require_author(review.author, "review", review.id)
    if review.submitted_at is None:
        raise MalformedEvent("review", "missing submitted_at", event_id=review.id)
    result.note_actor(review.author, review.author_type)

    return ActivityRecord(
        slug=f"{scoped_slug(ActivityType.PR_REVIEWED, repo, pr.number)}_{review.state}_{review.id}",
        contributor=reviewer,
        activity_definition=ActivityType.PR_REVIEWED.value,
        title=f"{title_prefix} #{pr.number}",
        text=pr.title,
        occurred_at=review.submitted_at,
        link=review.html_url,
        meta=GitHubMeta(repository=repo, number=pr.number, review_state=review.state),
    )


# =============================================================================
# Issues
# =============================================================================


def activities_from_issues(
    issues: Iterable[Issue | dict[str, Any]],
    repo: str,
) -> NormalizationResult:
    """Issue opened, closed and assigned activities.

    An issue can be assigned to the same person several times; only the
    latest assignment per (issue, assignee) pair is emitted.
    """
    result = NormalizationResult()
    assignments: list[tuple[str, Issue, IssueAssignEvent]] = []

    for raw in issues:
        try:
            issue = coerce_event(Issue, raw, "issue")
            author = require_author(issue.author, "issue", f"{repo}#{issue.number}")
        except MalformedEvent as exc:
            result.reject(exc)
            continue

        result.note_actor(issue.author, issue.author_type)
        meta = GitHubMeta(repository=repo, number=issue.number)

        result.add(
            ActivityRecord(
                slug=scoped_slug(ActivityType.ISSUE_OPENED, repo, issue.number),
                contributor=author,
                activity_definition=ActivityType.ISSUE_OPENED.value,
                title=f"Opened issue #{issue.number}",
                text=issue.title,
                occurred_at=issue.created_at,
                link=issue.url,
                meta=meta,
            )
        )

        for event in issue.assign_events:
            if not event.assignee:
                result.reject(
                    MalformedEvent(
                        "issue_assignment",
                        "missing assignee",
                        event_id=f"{repo}#{issue.number}",
                    )
                )
                continue
            slug = (
                f"{scoped_slug(ActivityType.ISSUE_ASSIGNED, repo, issue.number)}_{event.assignee}"
            )
            assignments.append((slug, issue, event))

        if issue.closed and issue.closed_at and issue.closed_by:
            result.add(
                ActivityRecord(
                    slug=scoped_slug(ActivityType.ISSUE_CLOSED, repo, issue.number),
                    contributor=issue.closed_by,
                    activity_definition=ActivityType.ISSUE_CLOSED.value,
                    title=f"Closed issue #{issue.number}",
                    text=issue.title,
                    occurred_at=issue.closed_at,
                    link=issue.url,
                    meta=meta,
                )
            )

    latest = latest_per_key(
        assignments,
        key=lambda item: item[0],
        timestamp=lambda item: ensure_utc(item[2].created_at),
    )
    for slug, (_, issue, event) in latest.items():
        result.add(
            ActivityRecord(
                slug=slug,
                contributor=event.assignee,
                activity_definition=ActivityType.ISSUE_ASSIGNED.value,
                title=f"Issue #{issue.number} assigned",
                text=issue.title,
                occurred_at=event.created_at,
                link=issue.url,
                meta=GitHubMeta(repository=repo, number=issue.number),
            )
        )

    return result


# =============================================================================
# Comments and commits
# =============================================================================


def activities_from_comments(
    comments: Iterable[Comment | dict[str, Any]],
    repo: str,
) -> NormalizationResult:
    result = NormalizationResult()

    for raw in comments:
        try:
            comment = coerce_event(Comment, raw, "comment")
            author = require_author(comment.author, "comment", comment.id)
            if comment.issue_number is None:
                raise MalformedEvent("comment", "missing issue number", event_id=comment.id)
        except MalformedEvent as exc:
            result.reject(exc)
            continue

        result.note_actor(comment.author, comment.author_type)
        result.add(
            ActivityRecord(
                slug=(
                    f"{scoped_slug(ActivityType.COMMENT_CREATED, repo, comment.issue_number)}"
                    f"_{comment.id}"
                ),
                contributor=author,
                activity_definition=ActivityType.COMMENT_CREATED.value,
                title=f"Commented on #{comment.issue_number}",
                occurred_at=comment.created_at,
                link=comment.html_url,
                meta=GitHubMeta(repository=repo, number=comment.issue_number),
            )
        )

    return result


def activities_from_commits(
    commits: Iterable[Commit | dict[str, Any]],
    repo: str | None = None,
) -> NormalizationResult:
    """Commit activities; the slug is scoped by branch and sha only."""
    result = NormalizationResult()

    for raw in commits:
        try:
            commit = coerce_event(Commit, raw, "commit")
            author = require_author(commit.author, "commit", commit.commit_id)
            if commit.committed_date is None:
                raise MalformedEvent("commit", "missing committed date", event_id=commit.commit_id)
        except MalformedEvent as exc:
            result.reject(exc)
            continue

        result.note_actor(commit.author, commit.author_type)
        result.add(
            ActivityRecord(
                slug=(
                    f"{ActivityType.COMMIT_CREATED.value}_{commit.branch_name}_{commit.commit_id}"
                ),
                contributor=author,
                activity_definition=ActivityType.COMMIT_CREATED.value,
                title=f"Pushed commit to {commit.branch_name}",
                text=commit.commit_message,
                occurred_at=commit.committed_date,
                link=commit.url,
                meta=GitHubMeta(repository=repo, branch=commit.branch_name),
            )
        )

    return result
