from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from activity_ledger.api.routes.leaderboard import resolve_excluded_roles, resolve_window
from activity_ledger.api.schemas.activity import ActivityDefinitionData
from activity_ledger.api.schemas.leaderboard import ActivityGroup
from activity_ledger.db import get_db
from activity_ledger.services.definition_service import ActivityDefinitionService
from activity_ledger.services.leaderboard_service import LeaderboardService, TimeWindow

router = APIRouter()


@router.get(
    "/activity-definitions",
    response_model=list[ActivityDefinitionData],
    summary="List activity definitions",
)
async def list_activity_definitions(
    db: AsyncSession = Depends(get_db),
) -> list[ActivityDefinitionData]:
    service = ActivityDefinitionService(db)
    definitions = await service.list_definitions()
    return [ActivityDefinitionData.model_validate(d) for d in definitions]


@router.get(
    "/activities",
    response_model=list[ActivityGroup],
    summary="Recent activities grouped by type",
)
async def list_recent_activities(
    window: TimeWindow = Depends(resolve_window),
    excluded_roles: list[str] | None = Depends(resolve_excluded_roles),
    db: AsyncSession = Depends(get_db),
) -> list[ActivityGroup]:
    service = LeaderboardService(db)
    return await service.recent_activities_by_type(window, excluded_roles)
