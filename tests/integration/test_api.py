from datetime import UTC, datetime

import pytest
from httpx import AsyncClient

from activity_ledger.services.activity_service import ActivityService

WINDOW_PARAMS = {"start": "2024-05-01T00:00:00Z", "end": "2024-05-31T23:59:59Z"}


@pytest.fixture
async def ledger(db_session, make_activity) -> None:
    await ActivityService(db_session).upsert_activities(
        [
            make_activity(
                slug="pr_merged_ledger#1",
                occurred_at=datetime(2024, 5, 10, 12, 0, tzinfo=UTC),
            ),
            make_activity(
                slug="pr_reviewed_ledger#1_APPROVED_R1",
                contributor="bob",
                activity_definition="pr_reviewed",
                occurred_at=datetime(2024, 5, 11, 12, 0, tzinfo=UTC),
            ),
        ]
    )


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    """Test health check endpoint."""
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"


@pytest.mark.asyncio
async def test_get_leaderboard_empty(client: AsyncClient) -> None:
    """Test getting the weekly leaderboard when the ledger is empty."""
    response = await client.get("/api/v1/leaderboard", params={"period": "week"})
    assert response.status_code == 200
    data = response.json()
    assert data["entries"] == []
    assert data["total"] == 0


@pytest.mark.asyncio
async def test_get_leaderboard_for_range(client: AsyncClient, ledger) -> None:
    """Test leaderboard ranking over an explicit range."""
    response = await client.get("/api/v1/leaderboard", params=WINDOW_PARAMS)
    assert response.status_code == 200
    data = response.json()
    assert [e["username"] for e in data["entries"]] == ["bob", "alice"]
    assert data["entries"][0]["total_points"] == 10
    assert data["entries"][1]["activity_breakdown"]["PR Merged"] == {"count": 1, "points": 7}


@pytest.mark.asyncio
async def test_get_leaderboard_paginated(client: AsyncClient, ledger) -> None:
    """Test leaderboard pagination."""
    response = await client.get(
        "/api/v1/leaderboard", params={**WINDOW_PARAMS, "page": 2, "page_size": 1}
    )
    data = response.json()
    assert data["total"] == 2
    assert [e["username"] for e in data["entries"]] == ["alice"]


@pytest.mark.asyncio
async def test_leaderboard_requires_both_bounds(client: AsyncClient) -> None:
    """Test that a half-open range is rejected."""
    response = await client.get("/api/v1/leaderboard", params={"start": "2024-05-01T00:00:00Z"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_leaderboard_rejects_inverted_range(client: AsyncClient) -> None:
    """Test that start after end is rejected."""
    response = await client.get(
        "/api/v1/leaderboard",
        params={"start": "2024-06-01T00:00:00Z", "end": "2024-05-01T00:00:00Z"},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_get_top_contributors(client: AsyncClient, ledger) -> None:
    """Test top contributors keyed by activity name in requested order."""
    response = await client.get(
        "/api/v1/leaderboard/top-by-activity",
        params={**WINDOW_PARAMS, "activities": ["pr_reviewed", "pr_merged"]},
    )
    assert response.status_code == 200
    activities = response.json()["activities"]
    assert list(activities) == ["PR Reviewed", "PR Merged"]
    assert activities["PR Merged"][0]["username"] == "alice"


@pytest.mark.asyncio
async def test_get_contributor_not_found(client: AsyncClient) -> None:
    """Test getting a non-existent contributor."""
    response = await client.get("/api/v1/contributors/nonexistent_user")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_get_contributor_profile(client: AsyncClient, ledger) -> None:
    """Test getting a contributor profile."""
    response = await client.get("/api/v1/contributors/alice")
    assert response.status_code == 200
    data = response.json()
    assert data["contributor"]["username"] == "alice"
    assert data["total_points"] == 7
    assert data["activity_by_date"] == {"2024-05-10": 1}


@pytest.mark.asyncio
async def test_list_contributors(client: AsyncClient, ledger) -> None:
    """Test listing contributors with all-time points."""
    response = await client.get("/api/v1/contributors")
    assert response.status_code == 200
    assert [(c["username"], c["total_points"]) for c in response.json()] == [
        ("bob", 10),
        ("alice", 7),
    ]


@pytest.mark.asyncio
async def test_list_activity_definitions(client: AsyncClient) -> None:
    """Test the seeded activity catalog."""
    response = await client.get("/api/v1/activity-definitions")
    assert response.status_code == 200
    points = {d["slug"]: d["points"] for d in response.json()}
    assert len(points) == 11
    assert points["pr_reviewed"] == 10
    assert points["eod_update"] == 2


@pytest.mark.asyncio
async def test_list_recent_activities(client: AsyncClient, ledger) -> None:
    """Test activities grouped by type."""
    response = await client.get("/api/v1/activities", params=WINDOW_PARAMS)
    assert response.status_code == 200
    assert [g["activity_definition"] for g in response.json()] == ["pr_merged", "pr_reviewed"]
