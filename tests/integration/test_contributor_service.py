import pytest

from activity_ledger.services.contributor_service import ContributorService

pytestmark = pytest.mark.integration


class TestContributorService:
    """Tests for the identity store."""

    @pytest.mark.asyncio
    async def test_ensure_contributors_counts_new_only(self, db_session) -> None:
        service = ContributorService(db_session)

        assert await service.ensure_contributors(["alice", "bob", "alice"]) == 2
        assert await service.ensure_contributors(["bob", "carol"]) == 1
        assert [c.username for c in await service.list_contributors()] == [
            "alice",
            "bob",
            "carol",
        ]

    @pytest.mark.asyncio
    async def test_list_by_role(self, db_session) -> None:
        service = ContributorService(db_session)
        await service.ensure_contributors(["alice", "dependabot"])
        await service.update_bot_roles(["dependabot"])

        bots = await service.list_contributors(role="bot")
        assert [c.username for c in bots] == ["dependabot"]

    @pytest.mark.asyncio
    async def test_resolve_aliases(self, db_session) -> None:
        service = ContributorService(db_session)
        await service.set_platform_alias("alice", "slack_user_id", "U1")
        await service.set_platform_alias("bob", "slack_user_id", "U2")
        await service.set_platform_alias("carol", "discord_id", "U3")

        resolved = await service.resolve_aliases(["U1", "U2", "U3", "U9"])

        assert resolved == {"U1": "alice", "U2": "bob"}

    @pytest.mark.asyncio
    async def test_set_alias_keeps_other_aliases(self, db_session) -> None:
        service = ContributorService(db_session)
        await service.set_platform_alias("alice", "discord_id", "D1")
        contributor = await service.set_platform_alias("alice", "slack_user_id", "U1")

        assert contributor.platform_aliases == {"discord_id": "D1", "slack_user_id": "U1"}

    @pytest.mark.asyncio
    async def test_update_roles_ignores_unknown(self, db_session) -> None:
        service = ContributorService(db_session)
        await service.ensure_contributors(["alice"])

        assert await service.update_roles(["alice", "ghost"], "maintainer") == 1
        assert (await service.get_contributor("alice")).role == "maintainer"
