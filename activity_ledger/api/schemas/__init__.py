from activity_ledger.api.schemas.activity import (
    ActivityDefinitionData,
    ActivityMeta,
    ActivityRecord,
    ChatMeta,
    GitHubMeta,
    OpaqueMeta,
)
from activity_ledger.api.schemas.contributor import (
    ContributorActivity,
    ContributorDetail,
    ContributorProfile,
)
from activity_ledger.api.schemas.ingestion import (
    EnqueueResult,
    PendingAuthorGroup,
    PendingMessageRecord,
    PromotionResult,
    UpsertResult,
)
from activity_ledger.api.schemas.leaderboard import (
    ActivityGroup,
    ActivityTally,
    ContributorWithPoints,
    DailyActivity,
    LeaderboardEntry,
    LeaderboardResponse,
    TopContributorEntry,
    TopContributorsResponse,
)

__all__ = [
    "ActivityDefinitionData",
    "ActivityMeta",
    "ActivityRecord",
    "ChatMeta",
    "GitHubMeta",
    "OpaqueMeta",
    "ContributorActivity",
    "ContributorDetail",
    "ContributorProfile",
    "EnqueueResult",
    "PendingAuthorGroup",
    "PendingMessageRecord",
    "PromotionResult",
    "UpsertResult",
    "ActivityGroup",
    "ActivityTally",
    "ContributorWithPoints",
    "DailyActivity",
    "LeaderboardEntry",
    "LeaderboardResponse",
    "TopContributorEntry",
    "TopContributorsResponse",
]
