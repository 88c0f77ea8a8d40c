from activity_ledger.db.models.activity import Activity, ActivityDefinition, ActivityType
from activity_ledger.db.models.base import Base
from activity_ledger.db.models.contributor import Contributor
from activity_ledger.db.models.pending_message import PendingMessage

__all__ = [
    "Base",
    "Contributor",
    "ActivityDefinition",
    "ActivityType",
    "Activity",
    "PendingMessage",
]
