from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from activity_ledger.api.schemas.leaderboard import (
    LeaderboardResponse,
    TopContributorsResponse,
)
from activity_ledger.core.config import settings
from activity_ledger.db import get_db
from activity_ledger.services.leaderboard_service import LeaderboardService, Period, TimeWindow

router = APIRouter()

EXCLUDE_ROLES_HELP = (
    "Roles to leave out; defaults to the configured roles. "
    "Pass an empty value to include every role."
)


def resolve_window(
    period: Period = Query(Period.WEEK),
    start: datetime | None = Query(None, description="Overrides period when given with end"),
    end: datetime | None = Query(None),
) -> TimeWindow:
    """Time window from either an explicit range or a named period."""
    if (start is None) != (end is None):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="start and end must be given together",
        )
    if start is None:
        return TimeWindow.for_period(period)
    try:
        return TimeWindow(start=start, end=end)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc


def resolve_excluded_roles(
    exclude_roles: list[str] | None = Query(None, description=EXCLUDE_ROLES_HELP),
) -> list[str] | None:
    if exclude_roles is None:
        return None
    return [role for role in exclude_roles if role]


@router.get(
    "",
    response_model=LeaderboardResponse,
    summary="Get leaderboard for a time window",
)
async def get_leaderboard(
    window: TimeWindow = Depends(resolve_window),
    excluded_roles: list[str] | None = Depends(resolve_excluded_roles),
    page: int = Query(1, ge=1),
    page_size: int = Query(
        settings.api_pagination_default_limit,
        ge=1,
        le=settings.api_pagination_max_limit,
    ),
    db: AsyncSession = Depends(get_db),
) -> LeaderboardResponse:
    """Contributors ranked by points earned in the window."""
    service = LeaderboardService(db)
    entries = await service.compute_leaderboard(window, excluded_roles)
    offset = (page - 1) * page_size
    return LeaderboardResponse(
        start=window.start,
        end=window.end,
        entries=entries[offset : offset + page_size],
        total=len(entries),
        page=page,
        page_size=page_size,
    )


@router.get(
    "/top-by-activity",
    response_model=TopContributorsResponse,
    summary="Get top contributors per activity type",
)
async def get_top_contributors(
    window: TimeWindow = Depends(resolve_window),
    excluded_roles: list[str] | None = Depends(resolve_excluded_roles),
    activities: list[str] | None = Query(
        None, description="Activity definition slugs, in the order to return them"
    ),
    limit: int = Query(settings.top_contributors_limit, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
) -> TopContributorsResponse:
    """Top contributors for each activity type, keyed by activity name."""
    service = LeaderboardService(db)
    top = await service.compute_top_contributors_by_activity(
        window,
        activity_slugs=activities,
        excluded_roles=excluded_roles,
        limit=limit,
    )
    return TopContributorsResponse(start=window.start, end=window.end, activities=top)
