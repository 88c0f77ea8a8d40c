from activity_ledger.services.activity_service import ActivityService, ConflictPolicy
from activity_ledger.services.contributor_service import ContributorService
from activity_ledger.services.definition_service import ActivityDefinitionService
from activity_ledger.services.leaderboard_service import LeaderboardService, Period, TimeWindow
from activity_ledger.services.message_queue_service import MessageQueueService
from activity_ledger.services.promotion_service import PromotionService
from activity_ledger.services.scoring import effective_points

__all__ = [
    "ActivityService",
    "ConflictPolicy",
    "ContributorService",
    "ActivityDefinitionService",
    "LeaderboardService",
    "Period",
    "TimeWindow",
    "MessageQueueService",
    "PromotionService",
    "effective_points",
]
