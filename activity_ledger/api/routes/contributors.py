from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from activity_ledger.api.schemas.contributor import ContributorProfile
from activity_ledger.api.schemas.leaderboard import ContributorWithPoints
from activity_ledger.db import get_db
from activity_ledger.services.contributor_service import ContributorService
from activity_ledger.services.leaderboard_service import LeaderboardService

router = APIRouter()


@router.get(
    "",
    response_model=list[ContributorWithPoints],
    summary="List contributors with all-time points",
)
async def list_contributors(
    exclude_roles: list[str] | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> list[ContributorWithPoints]:
    service = LeaderboardService(db)
    if exclude_roles is not None:
        exclude_roles = [role for role in exclude_roles if role]
    return await service.list_contributors_with_points(exclude_roles)


@router.get(
    "/{username}",
    response_model=ContributorProfile,
    summary="Get contributor profile",
)
async def get_contributor_profile(
    username: str,
    db: AsyncSession = Depends(get_db),
) -> ContributorProfile:
    """All-time activities, points and calendar counts for a contributor."""
    service = ContributorService(db)
    profile = await service.compute_contributor_profile(username)
    if profile.contributor is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Contributor {username} not found",
        )
    return profile
