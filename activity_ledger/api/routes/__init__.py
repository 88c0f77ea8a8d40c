from fastapi import APIRouter

from activity_ledger.api.routes.activities import router as activities_router
from activity_ledger.api.routes.contributors import router as contributors_router
from activity_ledger.api.routes.leaderboard import router as leaderboard_router

router = APIRouter()

router.include_router(leaderboard_router, prefix="/leaderboard", tags=["leaderboard"])
router.include_router(contributors_router, prefix="/contributors", tags=["contributors"])
router.include_router(activities_router, tags=["activities"])
