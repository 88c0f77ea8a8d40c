from activity_ledger.normalizers.base import (
    NormalizationResult,
    find_duplicate_slugs,
    latest_per_key,
)
from activity_ledger.normalizers.chat import (
    StagingBatch,
    eod_activity,
    group_messages_by_day,
    is_valid_eod_message,
    pending_messages_from_chat,
)
from activity_ledger.normalizers.github import (
    activities_from_comments,
    activities_from_commits,
    activities_from_issues,
    activities_from_pull_requests,
)

__all__ = [
    "NormalizationResult",
    "StagingBatch",
    "activities_from_comments",
    "activities_from_commits",
    "activities_from_issues",
    "activities_from_pull_requests",
    "eod_activity",
    "find_duplicate_slugs",
    "group_messages_by_day",
    "is_valid_eod_message",
    "latest_per_key",
    "pending_messages_from_chat",
]
