#!/usr/bin/env python3
"""
Record chat aliases for contributors.

Reads a JSON object mapping usernames to chat user ids. Contributors that
do not exist yet are created. Staged messages from these aliases are picked
up by the next promotion run.
"""
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from activity_ledger.core.config import settings
from activity_ledger.db.database import create_engine, create_session_maker
from activity_ledger.services.contributor_service import ContributorService


async def sync(path: Path) -> None:
    aliases: dict[str, str] = json.loads(path.read_text(encoding="utf-8"))

    engine = create_engine()
    try:
        async with create_session_maker(engine)() as db:
            service = ContributorService(db)
            for username, alias in sorted(aliases.items()):
                await service.set_platform_alias(username, settings.chat_alias_key, alias)
                print(f"  {username} -> {alias}")
    finally:
        await engine.dispose()

    print(f"Synced {len(aliases)} aliases")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Sync contributor chat aliases")
    parser.add_argument("file", type=Path, help="JSON object of username -> chat user id")
    args = parser.parse_args()

    asyncio.run(sync(args.file))
